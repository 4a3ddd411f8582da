from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

import httpx

from bundle_cdn.logging_conf import get_logger
from runner.models import FetchResult, FetchError, SmokeError

logger = get_logger("runner.client")


async def wait_for_info(base_url: str, timeout_s: float = 20.0) -> str:
    """Ping /info until it returns 200 or raise after a timeout.

    Returns the banner text so the summary can show which server answered.
    """
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0, verify=False) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/info")
                if r.status_code == 200:
                    logger.info("info.ok", extra={"event": "info_ok", "banner": r.text})
                    return r.text
            except httpx.TransportError:
                pass
            await asyncio.sleep(0.25)
    raise SmokeError("/info did not answer within timeout")


async def fetch_one(
    client: httpx.AsyncClient,
    path: str,
    *,
    headers: dict[str, str] | None = None,
    retries: int = 2,
) -> FetchResult:
    """GET one path without following redirects, with retry on transport errors."""
    last_err: Exception | None = None
    for attempt in range(retries):
        start = time.perf_counter()
        try:
            r = await client.get(path, headers=headers, follow_redirects=False)
        except httpx.TransportError as e:
            last_err = e
            logger.warning(
                "fetch.retry",
                extra={"event": "fetch_retry", "path": path, "attempt": attempt + 1, "error": str(e)},
            )
            continue
        return FetchResult(
            path=path,
            status_code=r.status_code,
            size=len(r.content),
            elapsed_ms=(time.perf_counter() - start) * 1000.0,
            location=r.headers.get("location"),
        )
    raise FetchError(f"GET {path} failed: {last_err}")


async def fetch_all(
    base_url: str,
    paths: Iterable[str],
    *,
    headers: dict[str, str] | None = None,
) -> list[FetchResult]:
    """Fetch paths concurrently; transport failures are logged and skipped."""
    paths = list(paths)
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0, verify=False) as client:
        outcomes = await asyncio.gather(
            *(fetch_one(client, p, headers=headers) for p in paths),
            return_exceptions=True,
        )
    results: list[FetchResult] = []
    for path, res in zip(paths, outcomes):
        if isinstance(res, Exception):
            logger.error("fetch.failed", extra={"event": "fetch_failed", "path": path, "error": str(res)})
            continue
        results.append(res)
    logger.info(
        "fetch.summary",
        extra={"event": "fetch_summary", "requested": len(paths), "answered": len(results)},
    )
    return results
