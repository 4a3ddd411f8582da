from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FetchResult:
    """Outcome of one GET against the server."""

    path: str
    status_code: int
    size: int
    elapsed_ms: float
    location: str | None = None


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., /info never answers)."""


class FetchError(SmokeError):
    """Raised when a request fails at the transport level after retries."""
