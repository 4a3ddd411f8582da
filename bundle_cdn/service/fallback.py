from __future__ import annotations

from ..config import DEFAULT_PEER_HEADER
from ..logging_conf import get_logger

__all__ = ["peer_redirect_location"]

logger = get_logger("service.fallback")


def peer_redirect_location(
    peer_base: str | None,
    request_path: str,
    header_name: str = DEFAULT_PEER_HEADER,
) -> str | None:
    """Decide where to send a request no local root could satisfy.

    Returns `peer_base + request_path` when the peer header carried a value,
    else None after logging the unresolved path. A header that was not sent
    at all is also reported on its own, since only outdated clients omit it.
    The target host is whatever the client sent; it is not checked against
    any allow-list.
    """
    if peer_base:
        location = f"{peer_base}{request_path}"
        logger.info(
            "fallback.redirect",
            extra={"event": "peer_redirect", "path": request_path, "location": location},
        )
        return location

    if peer_base is None:
        logger.error(
            f"Missing {header_name} header. Please upgrade the client to the latest version.",
            extra={"event": "peer_header_missing", "header": header_name, "path": request_path},
        )

    logger.warning(
        f"Could not find file for request path {request_path}.",
        extra={
            "event": "not_resolved",
            "path": request_path,
            "peer_header_present": peer_base is not None,
        },
    )
    return None
