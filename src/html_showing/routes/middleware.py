"""
Outermost request handling.

- OPTIONS on any path: empty 200 with permissive CORS headers
- Any exception escaping the routes: logged, answered with a generic 500
"""

import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def error_response(message: str, status_code: int) -> JSONResponse:
    """JSON error body in the shared {"error": message} shape."""
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


class DispatchMiddleware(BaseHTTPMiddleware):
    """Answer preflight requests and catch everything the routes let through."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Detail stays in the log, never in the response
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return error_response("internal server error", 500)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        )
        return response
