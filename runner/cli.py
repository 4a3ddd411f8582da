from __future__ import annotations

import argparse
import os

from bundle_cdn.config import DEFAULT_PEER_HEADER


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the smoke runner."""
    parser = argparse.ArgumentParser(description="bundle-cdn smoke runner")
    parser.add_argument("paths", nargs="+", help="URL paths, e.g. /dl/manifests/Android/<id>/assetbundle.manifest")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:3000"))
    parser.add_argument("--timeout", type=float, default=30.0)
    parser.add_argument("--peer", default=None, help="Peer base URL sent in the peer header")
    parser.add_argument("--peer-header", default=DEFAULT_PEER_HEADER)
    parser.add_argument(
        "--expect",
        default="200,308",
        help="Comma-separated status codes accepted for well-formed paths",
    )
    return parser.parse_args(argv)
