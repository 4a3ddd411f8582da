"""First-run discovery of asset and manifest roots.

Best-effort only: classification is by folder-name markers, so the result is
treated as untrusted input and may be empty.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .logging_conf import get_logger

__all__ = [
    "DiscoveredRoots",
    "discover_roots",
]

logger = get_logger("discovery")

_MANIFEST_DIR_NAMES = frozenset({"manifest", "orchis"})
_ASSET_DIR_NAMES = frozenset({"assetbundles"})
# Markers looked for one level down.
_PLATFORM_MARKERS = frozenset({"Android", "iOS"})
_PREFIX_MARKERS = frozenset({"2A"})
_MANIFEST_ID_MARKERS = frozenset({"y2XM6giU6zz56wCm", "b1HyoeTFegeTexC0"})


@dataclass
class DiscoveredRoots:
    assetbundles: list[str] = field(default_factory=list)
    manifests: list[str] = field(default_factory=list)


def _sorted_entries(directory: Path) -> list[Path]:
    return sorted(directory.iterdir(), key=lambda p: p.name)


def discover_roots(base: Path | str = ".") -> DiscoveredRoots:
    """Scan `base` and its subdirectories for known folder-name markers.

    Rules, per immediate subdirectory (in name order):
    - named `manifest` or `orchis`: manifest root
    - named `assetbundles`: asset root
    - otherwise the first entry inside it that is a marker decides:
      `Android`/`iOS` -> that entry is an asset root,
      `2A` -> the subdirectory is an asset root,
      a known manifest id -> the subdirectory is a manifest root.
    """
    found = DiscoveredRoots()
    base = Path(base)

    try:
        top = _sorted_entries(base)
    except OSError as e:
        logger.warning(
            "discovery.skip",
            extra={"event": "discovery_skip", "dir": str(base), "error": str(e)},
        )
        return found

    for directory in top:
        if not directory.is_dir():
            continue
        name = directory.name
        if name in _MANIFEST_DIR_NAMES:
            found.manifests.append(str(directory))
            continue
        if name in _ASSET_DIR_NAMES:
            found.assetbundles.append(str(directory))
            continue

        try:
            entries = _sorted_entries(directory)
        except OSError as e:
            logger.warning(
                "discovery.skip",
                extra={"event": "discovery_skip", "dir": str(directory), "error": str(e)},
            )
            continue

        for entry in entries:
            if entry.name in _PLATFORM_MARKERS:
                found.assetbundles.append(str(entry))
                break
            if entry.name in _PREFIX_MARKERS:
                found.assetbundles.append(str(directory))
                break
            if entry.name in _MANIFEST_ID_MARKERS:
                found.manifests.append(str(directory))
                break

    logger.info(
        "discovery.done",
        extra={
            "event": "discovery_done",
            "base": str(base),
            "assetbundles": found.assetbundles,
            "manifests": found.manifests,
        },
    )
    return found
