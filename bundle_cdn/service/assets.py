from __future__ import annotations

from dataclasses import dataclass

import anyio

from ..config import DEFAULT_PEER_HEADER, StorageRoots
from ..domain.grammar import parse_path
from ..domain.refs import RequestKind
from ..logging_conf import get_logger
from .fallback import peer_redirect_location
from .resolver import NotResolved, ReadFailure, ResolvedFile, resolve

__all__ = [
    "Redirect",
    "roots_for",
    "resolve_request",
]

logger = get_logger("service.assets")


@dataclass(frozen=True)
class Redirect:
    location: str


def roots_for(kind: RequestKind, roots: StorageRoots) -> tuple[str, ...]:
    return roots.assetbundles if kind is RequestKind.asset else roots.manifests


async def resolve_request(
    *,
    kind: RequestKind,
    path: str,
    request_path: str,
    roots: StorageRoots,
    peer_base: str | None = None,
    peer_header: str = DEFAULT_PEER_HEADER,
    timeout: float | None = None,
) -> ResolvedFile | Redirect:
    """Run validate -> root search -> peer fallback for one request.

    `path` is the part captured after the route prefix; `request_path` is the
    full URL path used to build a redirect. `peer_base` is the value of the
    `peer_header` request header, None when the client did not send it.

    Raises:
        GrammarViolation: `path` does not match the grammar for `kind`.
        NotResolved: no root has the file and no peer header was sent.
        ReadFailure: the file was found but could not be opened or read, or the
            lookup exceeded `timeout`.
    """
    ref = parse_path(kind, path)
    try:
        with anyio.fail_after(timeout):
            return await resolve(roots_for(kind, roots), ref)
    except NotResolved:
        location = peer_redirect_location(peer_base, request_path, peer_header)
        if location is None:
            raise
        return Redirect(location)
    except TimeoutError as e:
        raise ReadFailure(f"lookup timed out after {timeout}s for {request_path}") from e
