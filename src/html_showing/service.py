"""
Preview operations against the key-value store.

The view path is a plain get followed by a put. Two concurrent views of the
same preview can both read the same record and the later write wins, losing
one view. The stores offer no conditional write, so this is left as is.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from .config import PreviewConfig
from .errors import (
    ContentRequiredError,
    ContentTooLargeError,
    CorruptRecordError,
    InvalidPreviewIdError,
    PreviewNotFoundError,
)
from .identifiers import generate_preview_id
from .models import LegacyHtml, Record, StatsResponse, parse_stored_value
from .stats import RequestMeta, record_view, summarize_stats
from .store import KVStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ViewResult:
    """Outcome of recording a view.

    record is the record to render: the updated one on success, the
    unchanged one when bookkeeping failed (error is then set).
    """

    record: Record
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PreviewService:
    """Upload, view and stats operations for previews."""

    def __init__(
        self,
        store: KVStore,
        config: PreviewConfig,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.config = config
        self.clock = clock

    @staticmethod
    def _require_id(preview_id: str | None) -> str:
        preview_id = (preview_id or "").strip()
        if not preview_id:
            raise InvalidPreviewIdError()
        return preview_id

    async def upload(self, content: str | None, file_type: str | None) -> tuple[Record, str]:
        """Store new content under a fresh identifier. Does not read the store.

        Returns:
            (record, preview_id)

        Raises:
            ContentRequiredError: If content is missing or empty
            ContentTooLargeError: If content exceeds max_content_length
        """
        if not content:
            raise ContentRequiredError()
        if len(content) > self.config.max_content_length:
            raise ContentTooLargeError()

        preview_id = generate_preview_id()
        record = Record.create(content, file_type, self.clock())
        await self.store.put(preview_id, record.to_json(), expiration_ttl=self.config.ttl_seconds)

        logger.info(
            f"Stored preview {preview_id} type={record.file_type} size={record.original_size}"
        )
        return record, preview_id

    async def load_preview(self, preview_id: str) -> Record | None:
        """Load a record for viewing, promoting legacy HTML values.

        Returns None if the store has no entry.
        """
        preview_id = self._require_id(preview_id)
        raw = await self.store.get(preview_id)
        if raw is None:
            return None

        value = parse_stored_value(raw)
        if isinstance(value, LegacyHtml):
            logger.debug(f"Preview {preview_id} is legacy HTML")
            return value.to_record(self.clock())
        return value

    async def record_view(self, preview_id: str, record: Record, meta: RequestMeta) -> ViewResult:
        """Fold a view into the record's stats and write it back.

        Never raises: any failure is returned in the result and the caller
        renders the unchanged record.
        """
        try:
            updated = record_view(record, meta)
            await self.store.put(preview_id, updated.to_json(), expiration_ttl=self.config.ttl_seconds)
        except Exception as e:
            return ViewResult(record=record, error=e)

        logger.debug(f"Preview {preview_id} viewed ({updated.stats.views} views)")
        return ViewResult(record=updated)

    async def get_stats(self, preview_id: str) -> StatsResponse:
        """Read a record's stats without modifying it.

        Raises:
            InvalidPreviewIdError: If preview_id is empty
            PreviewNotFoundError: If the store has no entry
            CorruptRecordError: If the stored value is not a record
        """
        preview_id = self._require_id(preview_id)
        raw = await self.store.get(preview_id)
        if raw is None:
            raise PreviewNotFoundError()

        value = parse_stored_value(raw)
        if not isinstance(value, Record):
            logger.warning(f"Preview {preview_id} holds data that is not a record")
            raise CorruptRecordError()

        return StatsResponse(
            preview_id=preview_id,
            file_type=value.file_type,
            upload_time=value.upload_time,
            original_size=value.original_size,
            stats=summarize_stats(value.stats),
        )

    def preview_url(self, origin: str, preview_id: str) -> str:
        """Build the public link, preferring the configured public_url."""
        base = self.config.public_url or origin.rstrip("/")
        return f"{base}/preview/{preview_id}"
