from __future__ import annotations

from bundle_cdn.domain.grammar import GrammarViolation, parse_path
from bundle_cdn.domain.refs import RequestKind
from runner.models import FetchResult

_ROUTES = {
    "/dl/assetbundles/": RequestKind.asset,
    "/dl/manifests/": RequestKind.manifest,
}


def percentile(values: list[float], p: float) -> float:
    """Compute the p-th percentile using linear interpolation."""
    if not values:
        return 0.0
    s = sorted(values)
    k = (len(s) - 1) * p
    f = int(k)
    c = min(f + 1, len(s) - 1)
    if f == c:
        return s[f]
    d0 = s[f] * (c - k)
    d1 = s[c] * (k - f)
    return d0 + d1


def expected_statuses(path: str, accepted: set[int]) -> set[int]:
    """Statuses a correct server may answer `path` with.

    Paths the server's grammar rejects must come back 403; well-formed ones
    must come back with one of `accepted`.
    """
    for prefix, kind in _ROUTES.items():
        if path.startswith(prefix):
            try:
                parse_path(kind, path[len(prefix):])
            except GrammarViolation:
                return {403}
            return accepted
    return {200} if path == "/info" else {404}


def summarize(results: list[FetchResult], requested: int, accepted: set[int]) -> tuple[dict, int]:
    """Compute a summary dict and an exit code."""
    durations = [p.elapsed_ms for p in results]
    by_status: dict[str, int] = {}
    unexpected: list[dict] = []
    for p in results:
        by_status[str(p.status_code)] = by_status.get(str(p.status_code), 0) + 1
        expected = expected_statuses(p.path, accepted)
        if p.status_code not in expected:
            unexpected.append(
                {
                    "path": p.path,
                    "status_code": p.status_code,
                    "expected": sorted(expected),
                    "location": p.location,
                }
            )

    summary = {
        "event": "runner_summary",
        "requested": requested,
        "answered": len(results),
        "by_status": by_status,
        "bytes": sum(p.size for p in results),
        "timings": {
            "avg_ms": round(sum(durations) / len(durations), 2) if durations else 0.0,
            "p95_ms": round(percentile(durations, 0.95), 2),
            "max_ms": round(max(durations), 2) if durations else 0.0,
        },
        "unexpected": unexpected,
    }
    exit_code = 0 if (len(results) == requested and not unexpected) else 1
    return summary, exit_code
