#!/usr/bin/env python3
"""Write a tiny asset/manifest tree plus config.json for local smoke runs.

Usage:
    python tools/fixtures.py
    bundle-cdn --config fixtures/config.json &
    bundle-cdn-smoke $(python tools/fixtures.py --print-paths)
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
FX = ROOT / "fixtures"

# 52 characters from the base32 alphabet; prefix is the first two.
_HASHES = [
    "2AQ7ZKXG4W5MB6YTN3JDRCPVHLSEF2AQ7ZKXG4W5MB6YTN3JDRCP",
    "LRQ2XN7A5B4K3M6JHGF2DCYZWVUTSRQPONLRQ2XN7A5B4K3M6JHG",
]
_MANIFEST_ID = "y2XM6giU6zz56wCm"
_MANIFESTS = ["assetbundle.manifest", "assetbundle.en_us.manifest"]


def _files() -> list[tuple[Path, bytes]]:
    out = []
    for h in _HASHES:
        out.append((FX / "assets" / h[:2] / h, f"bundle {h}\n".encode()))
    for name in _MANIFESTS:
        out.append((FX / "manifests" / _MANIFEST_ID / name, f"{name}\n".encode()))
    return out


def url_paths() -> list[str]:
    paths = [f"/dl/assetbundles/Android/fixture/{h[:2]}/{h}" for h in _HASHES]
    paths += [f"/dl/manifests/Android/{_MANIFEST_ID}/{name}" for name in _MANIFESTS]
    return paths


def main() -> None:
    parser = argparse.ArgumentParser(description="Create local fixtures for bundle-cdn")
    parser.add_argument("--print-paths", action="store_true", help="Only print URL paths")
    args = parser.parse_args()

    if args.print_paths:
        print(" ".join(url_paths()))
        return

    for path, data in _files():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    config = {
        "assetpaths": [str(FX / "assets")],
        "manifestpaths": [str(FX / "manifests")],
        "port": 3000,
        "ssl": False,
        "cert": "",
        "key": "",
    }
    (FX / "config.json").write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")

    created = [str(p.relative_to(ROOT)) for p, _ in _files() if p.exists()]
    print("Created fixtures:")
    for c in created:
        print(" -", c)
    if len(created) != len(_HASHES) + len(_MANIFESTS):
        raise SystemExit(f"Expected {len(_HASHES) + len(_MANIFESTS)} fixtures, found {len(created)}")


if __name__ == "__main__":
    main()
