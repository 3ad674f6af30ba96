"""
Configuration for HTML Showing.
"""
import logging
import os
import warnings
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Workers KV limits
DEFAULT_TTL_SECONDS = 365 * 24 * 60 * 60  # 1 year
MIN_KV_TTL_SECONDS = 60
DEFAULT_MAX_CONTENT_LENGTH = 25 * 1024 * 1024

STORE_BACKENDS = ("memory", "cloudflare")


class ConfigError(ValueError):
    """Raised when the configuration cannot produce a working service."""
    pass


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to default."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass
class PreviewConfig:
    """Configuration for a preview service instance."""

    # Storage
    store_backend: str = "memory"
    cf_account_id: str | None = None
    cf_namespace_id: str | None = None
    cf_api_token: str | None = None

    # Retention and limits
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH

    # Display settings
    public_url: str | None = None  # e.g. "https://preview.example.com"
    site_title: str = "HTML Showing"

    log_level: str = "INFO"

    @property
    def is_cloudflare(self) -> bool:
        """Check if records live in Workers KV."""
        return self.store_backend == "cloudflare"

    @property
    def ttl_days(self) -> int:
        """Retention period in whole days, for display."""
        return self.ttl_seconds // (24 * 60 * 60)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.store_backend = self.store_backend.strip().lower()
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigError(
                f"Unknown store backend {self.store_backend!r}. "
                f"Expected one of: {', '.join(STORE_BACKENDS)}"
            )
        self._validate_cloudflare()
        self._validate_limits()
        if self.public_url:
            self.public_url = self.public_url.rstrip("/")

    def _validate_cloudflare(self) -> None:
        """Require the three Workers KV credentials for the cloudflare backend."""
        if not self.is_cloudflare:
            return

        missing = [
            name for name, value in (
                ("cf_account_id", self.cf_account_id),
                ("cf_namespace_id", self.cf_namespace_id),
                ("cf_api_token", self.cf_api_token),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Cloudflare store requires: {', '.join(missing)}"
            )

    def _validate_limits(self) -> None:
        if self.ttl_seconds <= 0:
            raise ConfigError(f"ttl_seconds must be positive, got {self.ttl_seconds}")
        if self.ttl_seconds < MIN_KV_TTL_SECONDS:
            warnings.warn(
                f"ttl_seconds={self.ttl_seconds} is below the Workers KV minimum "
                f"of {MIN_KV_TTL_SECONDS}s; the cloudflare store will reject writes",
                UserWarning,
                stacklevel=3,
            )
        if self.max_content_length <= 0:
            raise ConfigError(
                f"max_content_length must be positive, got {self.max_content_length}"
            )
        logger.debug(
            f"Store={self.store_backend} ttl={self.ttl_seconds}s "
            f"max_content_length={self.max_content_length}"
        )

    @classmethod
    def from_env(cls) -> "PreviewConfig":
        """Build a config from environment variables.

        Usage:
            HTML_SHOWING_STORE=cloudflare \\
            CF_ACCOUNT_ID=... CF_KV_NAMESPACE_ID=... CF_API_TOKEN=... \\
            python -m html_showing
        """
        return cls(
            store_backend=os.environ.get("HTML_SHOWING_STORE", "memory"),
            cf_account_id=os.environ.get("CF_ACCOUNT_ID") or None,
            cf_namespace_id=os.environ.get("CF_KV_NAMESPACE_ID") or None,
            cf_api_token=os.environ.get("CF_API_TOKEN") or None,
            ttl_seconds=_env_int("HTML_SHOWING_TTL_SECONDS", DEFAULT_TTL_SECONDS),
            max_content_length=_env_int(
                "HTML_SHOWING_MAX_CONTENT_LENGTH", DEFAULT_MAX_CONTENT_LENGTH
            ),
            public_url=os.environ.get("HTML_SHOWING_PUBLIC_URL") or None,
            site_title=os.environ.get("HTML_SHOWING_TITLE", "HTML Showing"),
            log_level=os.environ.get("HTML_SHOWING_LOG_LEVEL", "INFO").upper(),
        )
