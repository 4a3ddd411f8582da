#!/usr/bin/env python3
"""Smoke runner for a live bundle-cdn server.

Steps:
- wait for /info
- GET every path given on the command line concurrently (no redirect following)
- check each status against what the path grammar predicts
- emit a compact JSON summary and exit code
"""
from __future__ import annotations

import asyncio
import sys

from bundle_cdn.logging_conf import get_logger, setup_logging
from runner.cli import parse_args
from runner.client import fetch_all, wait_for_info
from runner.models import SmokeError
from runner.utils import summarize

logger = get_logger("runner")


async def run_smoke(
    *,
    base_url: str,
    paths: list[str],
    accepted: set[int],
    headers: dict[str, str] | None = None,
    timeout_s: float = 30.0,
) -> int:
    try:
        await wait_for_info(base_url, timeout_s=timeout_s)
    except SmokeError as e:
        logger.error(str(e), extra={"event": "runner_abort", "base_url": base_url})
        return 1
    results = await fetch_all(base_url, paths, headers=headers)
    summary, exit_code = summarize(results, requested=len(paths), accepted=accepted)
    logger.info("runner.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = parse_args(sys.argv[1:] if argv is None else argv)
    headers = {args.peer_header: args.peer} if args.peer else None
    accepted = {int(tok) for tok in args.expect.split(",") if tok.strip()}
    code = asyncio.run(
        run_smoke(
            base_url=args.base_url,
            paths=args.paths,
            accepted=accepted,
            headers=headers,
            timeout_s=args.timeout,
        )
    )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
