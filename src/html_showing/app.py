"""
Application factory for HTML Showing.
"""
import logging
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import PreviewConfig
from .errors import PreviewError
from .routes import DispatchMiddleware, create_preview_router
from .routes.middleware import error_response
from .service import PreviewService
from .store import KVStore, build_store

logger = logging.getLogger(__name__)


async def _preview_error_handler(request: Request, exc: PreviewError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
    return error_response(exc.message, exc.status_code)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods both fall through to a plain 404
    if exc.status_code in (404, 405):
        return PlainTextResponse("page not found", status_code=404)
    logger.debug(f"{request.method} {request.url.path}: {exc.status_code} {exc.detail}")
    return error_response("invalid request", exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"{request.method} {request.url.path}: invalid request {exc.errors()}")
    return error_response("invalid request", 400)


def create_app(
    config: PreviewConfig | None = None,
    store: KVStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """
    Build the ASGI application.

    Args:
        config: Service configuration; read from the environment if omitted
        store: Key-value store; built from config if omitted
        clock: Returns the current UTC time; used for upload and view stamps

    Returns:
        A FastAPI app with the preview routes mounted at the root
    """
    config = config or PreviewConfig.from_env()
    store = store or build_store(config)
    service = PreviewService(store, config) if clock is None else PreviewService(store, config, clock)

    app = FastAPI(
        title=config.site_title,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.state.service = service

    app.add_middleware(DispatchMiddleware)
    app.add_exception_handler(PreviewError, _preview_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(create_preview_router(service))
    return app
