"""
Preview routes.

Routing table:
    GET  / and /index.html   main page
    GET  /style.css          stylesheet
    GET  /script.js          client script
    POST /api/upload         store content, return the preview link
    GET  /preview/{id}       rendered preview (records a view)
    GET  /api/stats/{id}     view statistics as JSON
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from ..errors import ContentTooLargeError
from ..identifiers import client_ip
from ..models import UploadResponse
from ..render import generate_preview_html, templates
from ..service import PreviewService
from ..stats import RequestMeta
from .middleware import CORS_HEADERS

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"

# (value, label) for the type selector
FILE_TYPE_CHOICES = [
    ("html", "HTML"),
    ("css", "CSS"),
    ("javascript", "JavaScript"),
    ("json", "JSON"),
    ("xml", "XML"),
    ("svg", "SVG"),
    ("text", "Plain text"),
]

# File extension -> type, for auto-detection in the browser
FILE_EXTENSIONS = {
    "html": "html",
    "htm": "html",
    "css": "css",
    "js": "javascript",
    "mjs": "javascript",
    "json": "json",
    "xml": "xml",
    "svg": "svg",
    "txt": "text",
    "md": "text",
}

# Worst-case UTF-8 encoding size of one character
MAX_UTF8_BYTES = 4


def _request_meta(request: Request, service: PreviewService) -> RequestMeta:
    """Collect the request details that feed view statistics."""
    peer = request.client.host if request.client else None
    return RequestMeta(
        client_ip=client_ip(request.headers, peer),
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
        now=service.clock(),
    )


def _request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


async def _read_upload_form(request: Request, max_content_length: int) -> FormData:
    """Parse the upload body with a part size limit matching max_content_length.

    Starlette caps each form part at 1 MiB unless told otherwise. The limit
    is in characters, so the byte cap allows the UTF-8 worst case.
    """
    try:
        return await request.form(max_part_size=max_content_length * MAX_UTF8_BYTES)
    except (MultiPartException, StarletteHTTPException) as e:
        detail = getattr(e, "message", None) or getattr(e, "detail", "")
        if "exceeded maximum size" in str(detail):
            raise ContentTooLargeError() from e
        raise


async def _form_text(form: FormData, name: str) -> str | None:
    """Return a form field as text, reading it if it was sent as a file."""
    value = form.get(name)
    if isinstance(value, UploadFile):
        return (await value.read()).decode("utf-8", errors="replace")
    return value


def create_preview_router(service: PreviewService) -> APIRouter:
    """Create the router serving the front end, uploads, previews and stats.

    Args:
        service: Preview operations bound to a store and config
    """
    router = APIRouter(tags=["preview"])
    config = service.config

    # -------------------------------------------------------------------------
    # Front end
    # -------------------------------------------------------------------------

    @router.get("/", response_class=HTMLResponse)
    @router.get("/index.html", response_class=HTMLResponse)
    async def index(request: Request):
        """Render the main page."""
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "site_title": config.site_title,
                "ttl_days": config.ttl_days,
                "max_content_length": config.max_content_length,
                "file_types": FILE_TYPE_CHOICES,
                "extensions": FILE_EXTENSIONS,
                "accept": ",".join(f".{ext}" for ext in FILE_EXTENSIONS),
            },
            headers=CORS_HEADERS,
        )

    @router.get("/style.css")
    async def stylesheet():
        return FileResponse(STATIC_DIR / "style.css", media_type="text/css", headers=CORS_HEADERS)

    @router.get("/script.js")
    async def script():
        return FileResponse(
            STATIC_DIR / "script.js",
            media_type="application/javascript",
            headers=CORS_HEADERS,
        )

    # -------------------------------------------------------------------------
    # API
    # -------------------------------------------------------------------------

    @router.post("/api/upload")
    async def upload(request: Request):
        """Store submitted content and return its preview link.

        Reads `content` (or `html`, the field name used by the first release)
        and `fileType` from a multipart or urlencoded form.
        """
        form = await _read_upload_form(request, config.max_content_length)
        try:
            content = await _form_text(form, "content") or await _form_text(form, "html")
            file_type = await _form_text(form, "fileType")
        finally:
            await form.close()

        _, preview_id = await service.upload(content, file_type)
        body = UploadResponse(
            preview_id=preview_id,
            preview_url=service.preview_url(_request_origin(request), preview_id),
        )
        return JSONResponse(body.model_dump(by_alias=True), headers=CORS_HEADERS)

    @router.get("/api/stats/{preview_id:path}")
    async def preview_stats(preview_id: str):
        """Return view statistics. Visitor hashes are reduced to a count."""
        stats = await service.get_stats(preview_id)
        return JSONResponse(stats.model_dump(mode="json", by_alias=True), headers=CORS_HEADERS)

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    @router.get("/preview/{preview_id:path}", response_class=HTMLResponse)
    async def preview(request: Request, preview_id: str):
        """Render a preview and record the view.

        A failed stats write is logged; the preview is served regardless.
        """
        record = await service.load_preview(preview_id)
        preview_id = preview_id.strip()
        if record is None:
            return templates.TemplateResponse(
                request,
                "not_found.html",
                {"site_title": config.site_title, "ttl_days": config.ttl_days},
                status_code=404,
            )

        result = await service.record_view(preview_id, record, _request_meta(request, service))
        if not result.ok:
            logger.warning(f"Stats update failed for preview {preview_id}: {result.error!r}")

        page = generate_preview_html(
            result.record.content,
            result.record.file_type,
            preview_id,
            site_title=config.site_title,
        )
        return HTMLResponse(page)

    return router
