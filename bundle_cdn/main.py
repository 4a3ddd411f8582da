"""FastAPI app factory: request logging middleware plus the asset routes."""
from __future__ import annotations

import os
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response

from .api import router as api_router
from .config import ServerConfig
from .logging_conf import get_logger, setup_logging

logger = get_logger("app")


def create_app(config: ServerConfig) -> FastAPI:
    """Build the ASGI app around an already-validated, immutable config."""
    # Configure logging before anything else.
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "startup",
            extra={
                "event": "startup",
                "assetbundle_roots": list(config.roots.assetbundles),
                "manifest_roots": list(config.roots.manifests),
                "tls": config.server.tls,
            },
        )
        yield
        logger.info("Server is shutting down...", extra={"event": "shutdown"})

    app = FastAPI(
        title="bundle-cdn",
        version=os.getenv("APP_VERSION", "0.1.0"),
        lifespan=lifespan,
    )
    # Routes read the config from here.
    app.state.config = config

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """JSON request logging with correlation id.

        - Propagates a client X-Request-ID, otherwise mints one
        - Logs a start and end event with method/path/status/elapsed_ms
        - Echoes X-Request-ID on the response
        """
        # Reuse incoming X-Request-ID if present; else mint a new one.
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:  # Log and re-raise to let FastAPI handle 500
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "method": request.method,
                    "path": request.url.path,
                    "request_id": request_id,
                },
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        # Attach request id for client correlation
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    # Attach asset routes (/info, /dl/...)
    app.include_router(api_router)

    return app
