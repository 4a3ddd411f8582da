from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse, RedirectResponse, StreamingResponse

from ..config import ServerConfig
from ..domain.grammar import GrammarViolation
from ..domain.refs import RequestKind
from ..logging_conf import get_logger
from ..service.assets import Redirect, resolve_request
from ..service.resolver import NotResolved, ReadFailure

router = APIRouter()
logger = get_logger("api")

INFO_TEXT = "bundle-cdn asset server"
OCTET_STREAM = "application/octet-stream"


def get_config(request: Request) -> ServerConfig:
    """Return the immutable config the app was built with."""
    return request.app.state.config


def _original_path(request: Request) -> str:
    """Return the URL path exactly as the client sent it, without the query."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


async def _serve(kind: RequestKind, path: str, request: Request, config: ServerConfig) -> Response:
    request_path = _original_path(request)
    try:
        outcome = await resolve_request(
            kind=kind,
            path=path,
            request_path=request_path,
            roots=config.roots,
            peer_base=request.headers.get(config.server.peer_header),
            peer_header=config.server.peer_header,
            timeout=config.server.request_timeout,
        )
    except GrammarViolation as e:
        logger.debug("grammar.reject", extra={"event": "grammar_reject", "code": e.code, "path": path})
        return Response(status_code=status.HTTP_403_FORBIDDEN)
    except NotResolved:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    except ReadFailure as e:
        # Reported like an absent file; only the log tells them apart.
        logger.error(
            f"Failed to read found file: {e}",
            extra={"event": "read_failure", "code": e.code, "path": request_path},
        )
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    if isinstance(outcome, Redirect):
        return RedirectResponse(outcome.location, status_code=status.HTTP_308_PERMANENT_REDIRECT)

    return StreamingResponse(
        outcome.iter_chunks(),
        media_type=OCTET_STREAM,
        headers={"Content-Length": str(outcome.size)},
    )


@router.get("/info", response_class=PlainTextResponse, summary="Server banner")
async def info() -> str:
    """Fixed informational text; touches no state."""
    return INFO_TEXT


@router.get("/dl/assetbundles/{path:path}", summary="Fetch an asset bundle")
async def get_assetbundle(
    path: str, request: Request, config: ServerConfig = Depends(get_config)
) -> Response:
    return await _serve(RequestKind.asset, path, request, config)


@router.get("/dl/manifests/{path:path}", summary="Fetch a manifest")
async def get_manifest(
    path: str, request: Request, config: ServerConfig = Depends(get_config)
) -> Response:
    return await _serve(RequestKind.manifest, path, request, config)
