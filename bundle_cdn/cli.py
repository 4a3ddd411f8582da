"""Process bootstrap: load or create the config, validate it, run uvicorn.

Fatal misconfiguration is logged and turned into exit status 1.
"""
from __future__ import annotations

import argparse
import os
from pathlib import Path

import uvicorn

from .config import (
    ConfigError,
    ServerConfig,
    StorageRoots,
    check_roots,
    default_config_path,
    load_config,
    preflight_tls,
    save_config,
)
from .discovery import discover_roots
from .logging_conf import get_logger, setup_logging
from .main import create_app

logger = get_logger("cli")


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    """Parse CLI arguments for the server."""
    parser = argparse.ArgumentParser(description="Game asset bundle and manifest server")
    parser.add_argument("--config", type=Path, default=default_config_path())
    parser.add_argument("--host", default=None, help="Override the bind host from the config")
    parser.add_argument("--port", type=int, default=None, help="Override the port from the config")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    parser.add_argument(
        "--no-discover",
        action="store_false",
        dest="discover",
        help="Do not scan for roots or write the config file",
    )
    return parser.parse_args(argv)


def load_or_create_config(path: Path, *, discover: bool = True, base_dir: Path | str = ".") -> ServerConfig:
    """Return the config at `path`, creating or topping it up via discovery.

    - Missing file: discover roots under `base_dir`, persist a fresh config.
    - Existing file with no manifest roots: append discovered ones, persist.

    Raises:
        ConfigError: if the file exists but cannot be read or deserialized,
            or if `discover` is off and the file is missing.
    """
    if not path.exists():
        if not discover:
            raise ConfigError(f"Config file {path} not found")
        found = discover_roots(base_dir)
        config = ServerConfig(
            roots=StorageRoots(
                assetbundles=tuple(found.assetbundles),
                manifests=tuple(found.manifests),
            )
        )
        save_config(config, path)
        return config

    config = load_config(path)
    if discover and not config.roots.manifests:
        found = discover_roots(base_dir)
        config = config.with_manifests(found.manifests)
        save_config(config, path)
    return config


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Everything that must hold before binding a socket."""
    config = load_or_create_config(args.config, discover=args.discover)
    config = config.with_overrides(host=args.host, port=args.port)
    check_roots(config)
    preflight_tls(config.server)
    return config


def serve(config: ServerConfig) -> None:
    opts = config.server
    app = create_app(config)
    ssl_kwargs = {}
    if opts.tls:
        ssl_kwargs = {"ssl_certfile": opts.cert, "ssl_keyfile": opts.key}
    logger.info(
        f"Starting {'HTTPS' if opts.tls else 'HTTP'} server on port {opts.port}!",
        extra={"event": "listen", "host": opts.host, "port": opts.port, "tls": opts.tls},
    )
    # log_config=None keeps our JSON handler instead of uvicorn's defaults.
    uvicorn.run(app, host=opts.host, port=opts.port, log_config=None, **ssl_kwargs)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        config = build_server_config(args)
    except ConfigError as e:
        logger.error(str(e), extra={"event": "config_fatal", "code": e.code})
        return 1
    serve(config)
    return 0
