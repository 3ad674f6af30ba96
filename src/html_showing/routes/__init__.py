"""
HTTP routes for HTML Showing.

The router serves the front end, uploads, previews and stats; the dispatch
middleware answers CORS preflight and turns unhandled errors into 500s.
"""

from .middleware import CORS_HEADERS, DispatchMiddleware
from .preview import create_preview_router

__all__ = ["create_preview_router", "DispatchMiddleware", "CORS_HEADERS"]
