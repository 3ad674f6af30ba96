"""
Key-value stores for preview records.

Records are opaque strings keyed by preview identifier and expire after a
TTL. Two backends are provided:

- MemoryKVStore: in-process dict, for local runs and tests
- CloudflareKVStore: Workers KV through the Cloudflare REST API

Neither backend offers a conditional write, so a get followed by a put is
last-write-wins.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable
from urllib.parse import quote

import httpx

from .config import PreviewConfig
from .errors import StoreError

logger = logging.getLogger(__name__)


class KVStore(ABC):
    """Async key-value store with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if missing or expired."""

    @abstractmethod
    async def put(self, key: str, value: str, expiration_ttl: int | None = None) -> None:
        """Store value under key, replacing any previous value."""


class MemoryKVStore(KVStore):
    """In-memory store with lazy TTL expiry.

    Expired entries are dropped when read and swept on every write.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    async def put(self, key: str, value: str, expiration_ttl: int | None = None) -> None:
        async with self._lock:
            now = self._clock()
            expires_at = now + expiration_ttl if expiration_ttl else None
            self._data[key] = (value, expires_at)
            self._cleanup(now)

    def _cleanup(self, now: float) -> None:
        """Remove all expired entries."""
        expired = [
            k for k, (_, exp) in self._data.items()
            if exp is not None and now >= exp
        ]
        for k in expired:
            del self._data[k]


class CloudflareKVStore(KVStore):
    """Client for a Workers KV namespace over the Cloudflare REST API."""

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.api_token = api_token
        self.timeout = timeout
        self._transport = transport
        self.base_url = (
            f"https://api.cloudflare.com/client/v4/accounts/{account_id}"
            f"/storage/kv/namespaces/{namespace_id}"
        )

    def _value_url(self, key: str) -> str:
        return f"{self.base_url}/values/{quote(key, safe='')}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.api_token}"},
        )

    async def get(self, key: str) -> str | None:
        """Read a value. Workers KV answers 404 for missing or expired keys."""
        try:
            async with self._client() as client:
                response = await client.get(self._value_url(key))
        except httpx.HTTPError as e:
            raise StoreError(f"KV read failed for {key}: {e}") from e

        if response.status_code == 404:
            return None
        if response.is_error:
            raise StoreError(
                f"KV read failed for {key}: HTTP {response.status_code} {response.text[:200]}"
            )
        return response.text

    async def put(self, key: str, value: str, expiration_ttl: int | None = None) -> None:
        """Write a value, optionally expiring it after expiration_ttl seconds."""
        params = {"expiration_ttl": str(expiration_ttl)} if expiration_ttl else None
        try:
            async with self._client() as client:
                response = await client.put(
                    self._value_url(key),
                    params=params,
                    content=value.encode("utf-8"),
                    headers={"Content-Type": "text/plain; charset=utf-8"},
                )
        except httpx.HTTPError as e:
            raise StoreError(f"KV write failed for {key}: {e}") from e

        if response.is_error:
            raise StoreError(
                f"KV write failed for {key}: HTTP {response.status_code} {response.text[:200]}"
            )

        data = response.json()
        if not data.get("success"):
            raise StoreError(f"KV write failed for {key}: {data.get('errors')}")


def build_store(config: PreviewConfig) -> KVStore:
    """Create the store selected by config."""
    if config.is_cloudflare:
        logger.info(f"Using Workers KV namespace {config.cf_namespace_id}")
        return CloudflareKVStore(
            account_id=config.cf_account_id,
            namespace_id=config.cf_namespace_id,
            api_token=config.cf_api_token,
        )
    logger.info("Using in-memory store; previews are lost on restart")
    return MemoryKVStore()
