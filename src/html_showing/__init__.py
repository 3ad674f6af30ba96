"""
Shareable previews for pasted or uploaded code.

Usage:
    from html_showing import PreviewConfig, create_app

    app = create_app(PreviewConfig(
        store_backend="cloudflare",
        cf_account_id="your-account-id",
        cf_namespace_id="your-kv-namespace-id",
        cf_api_token="your-api-token",
    ))

    # or, configured from the environment:
    #   python -m html_showing --port 8000
"""

from .app import create_app
from .config import PreviewConfig
from .models import FileType, Record, Stats
from .render import generate_preview_html
from .service import PreviewService
from .stats import RequestMeta, update_view_stats
from .store import CloudflareKVStore, KVStore, MemoryKVStore

__version__ = "3.0.0"
__all__ = [
    "create_app",
    "PreviewConfig",
    "PreviewService",
    "FileType", "Record", "Stats",
    "RequestMeta", "update_view_stats",
    "generate_preview_html",
    "KVStore", "MemoryKVStore", "CloudflareKVStore",
]
