from __future__ import annotations

import os
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import anyio

from ..domain.refs import AssetRef, ManifestRef
from ..logging_conf import get_logger

__all__ = [
    "CHUNK_SIZE",
    "PREFETCH_LIMIT",
    "ResolutionError",
    "NotResolved",
    "ReadFailure",
    "ResolvedFile",
    "find_in_roots",
    "open_resolved",
    "resolve",
]

CHUNK_SIZE = 64 * 1024
# Files up to this size are read whole before any response is started.
PREFETCH_LIMIT = 1024 * 1024

logger = get_logger("service.resolver")


# ------------------------
# Errors
# ------------------------
class ResolutionError(Exception):
    """Base class for lookup failures after the grammar check passed.

    The `code` attribute is logged as a stable machine code.
    """

    code: str = "resolution_error"


class NotResolved(ResolutionError):
    """No configured root holds the requested file."""

    code = "not_resolved"


class ReadFailure(ResolutionError):
    """A root claimed the file but opening or reading it failed."""

    code = "read_failure"


# ------------------------
# Resolved file
# ------------------------
@dataclass
class ResolvedFile:
    """A found file whose first bytes have already been read.

    `head` holds everything read so far. When it covers the whole file the
    handle is already closed and set to None.
    """

    path: Path
    size: int
    head: bytes
    handle: Optional[anyio.AsyncFile[bytes]] = None

    async def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield exactly `size` bytes, closing the handle when done or cancelled.

        Errors here happen after the status line went out, so they can only
        abort the connection.
        """
        try:
            if self.head:
                yield self.head
            remaining = self.size - len(self.head)
            while self.handle is not None and remaining > 0:
                chunk = await self.handle.read(min(chunk_size, remaining))
                if not chunk:
                    raise OSError(f"file shrank by {remaining} bytes while streaming")
                remaining -= len(chunk)
                yield chunk
        except OSError:
            logger.exception(
                "Failed to read found file mid-stream",
                extra={"event": "stream_error", "file": str(self.path)},
            )
            raise
        finally:
            await self.aclose()

    async def read_all(self) -> bytes:
        return b"".join([chunk async for chunk in self.iter_chunks()])

    async def aclose(self) -> None:
        if self.handle is None:
            return
        with anyio.CancelScope(shield=True):
            await self.handle.aclose()
        self.handle = None


# ------------------------
# Lookup
# ------------------------
def _stat_is_file(path: Path) -> bool:
    return path.is_file()


async def _is_file(path: Path) -> bool:
    # Abandon the worker thread on cancel so a stalled mount can't outlive a timeout.
    return await anyio.to_thread.run_sync(_stat_is_file, path, abandon_on_cancel=True)


async def _fstat(handle: anyio.AsyncFile[bytes]) -> os.stat_result:
    return await anyio.to_thread.run_sync(
        os.fstat, handle.wrapped.fileno(), abandon_on_cancel=True
    )


async def find_in_roots(roots: Sequence[str], ref: AssetRef | ManifestRef) -> Path:
    """Return `root/<part>/<part>` for the first root where that is a regular file.

    Roots are checked strictly in order and the walk stops at the first hit.

    Raises:
        NotResolved: if no root holds the file.
    """
    parts = ref.relative_parts
    for root in roots:
        candidate = Path(root).joinpath(*parts)
        if await _is_file(candidate):
            logger.debug(
                "resolver.hit",
                extra={"event": "resolver_hit", "root": root, "file": str(candidate)},
            )
            return candidate
    raise NotResolved("/".join(parts))


async def open_resolved(path: Path, prefetch: int = PREFETCH_LIMIT) -> ResolvedFile:
    """Open a file the lookup found and read up to `prefetch` bytes of it.

    Everything that can fail before the first byte is sent happens here, so
    the caller can still answer with a failure status.

    Raises:
        ReadFailure: if the file vanished, cannot be opened, stat'ed or read,
            or holds fewer bytes than fstat reported.
    """
    try:
        handle = await anyio.open_file(path, "rb")
    except OSError as e:
        raise ReadFailure(f"{path}: {e}") from e

    resolved = ResolvedFile(path=path, size=0, head=b"", handle=handle)
    try:
        st = await _fstat(handle)
        want = min(st.st_size, prefetch)
        head = await handle.read(want) if want else b""
        if len(head) < want:
            raise OSError(f"short read: expected {want} bytes, got {len(head)}")
    except BaseException as e:
        await resolved.aclose()
        if isinstance(e, OSError):
            raise ReadFailure(f"{path}: {e}") from e
        raise

    resolved.size = st.st_size
    resolved.head = head
    if len(head) == st.st_size:
        await resolved.aclose()
    return resolved


async def resolve(roots: Sequence[str], ref: AssetRef | ManifestRef) -> ResolvedFile:
    """Find `ref` in `roots` and open it; no caching, every call hits the disk."""
    path = await find_in_roots(roots, ref)
    return await open_resolved(path)
