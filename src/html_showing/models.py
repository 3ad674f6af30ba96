"""
Pydantic models for stored previews.

Records are serialized with camelCase keys so the stored JSON matches what
the front end and earlier deployments read and write.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class FileType(str, Enum):
    """Content types with a dedicated preview page."""

    HTML = "html"
    CSS = "css"
    JAVASCRIPT = "javascript"
    JSON = "json"
    XML = "xml"
    SVG = "svg"
    OTHER = "other"  # any other tag; the record keeps the original string

    @classmethod
    def parse(cls, value: str | None) -> "FileType":
        """Map a submitted type tag onto a known type, or OTHER."""
        tag = normalize_file_type(value)
        try:
            return cls(tag)
        except ValueError:
            return cls.OTHER


FILE_TYPE_ALIASES = {
    "js": "javascript",
    "htm": "html",
}


def normalize_file_type(value: str | None) -> str:
    """Strip a type tag; empty means html.

    Known tags and aliases match in any case and become the canonical
    value. Any other tag keeps its original spelling.
    """
    tag = (value or "").strip()
    if not tag:
        return FileType.HTML.value
    key = tag.lower()
    key = FILE_TYPE_ALIASES.get(key, key)
    try:
        return FileType(key).value
    except ValueError:
        return tag


class CamelModel(BaseModel):
    """Base model reading and writing camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Stored Models
# =============================================================================

class Stats(CamelModel):
    """View statistics embedded in a record. Only the view path mutates it."""

    views: int = 0
    first_viewed: datetime | None = None
    last_viewed: datetime | None = None
    unique_visitors: list[str] = Field(default_factory=list)  # visitor hashes, oldest first
    daily_views: dict[str, int] = Field(default_factory=dict)  # YYYY-MM-DD -> views
    referrers: dict[str, int] = Field(default_factory=dict)  # domain or "direct" -> views
    user_agents: dict[str, int] = Field(default_factory=dict)  # browser label -> views


class Record(CamelModel):
    """The stored envelope for one preview."""

    content: str
    file_type: str = FileType.HTML.value
    upload_time: datetime
    original_size: int
    stats: Stats = Field(default_factory=Stats)

    @property
    def kind(self) -> FileType:
        return FileType.parse(self.file_type)

    @classmethod
    def create(cls, content: str, file_type: str | None, now: datetime) -> "Record":
        """Build a fresh record with zeroed stats."""
        return cls(
            content=content,
            file_type=normalize_file_type(file_type),
            upload_time=now,
            original_size=len(content),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


@dataclass(frozen=True)
class LegacyHtml:
    """A value written before records existed: the bare HTML string."""

    content: str

    def to_record(self, now: datetime) -> Record:
        """Promote to a record with html type and zeroed stats."""
        return Record.create(self.content, FileType.HTML.value, now)


StoredValue = Union[LegacyHtml, Record]


def parse_stored_value(raw: str) -> StoredValue:
    """Classify a raw store value as a record or legacy HTML.

    A value is a record only if it is a JSON object that validates against
    the Record model; anything else is treated as legacy HTML.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        return LegacyHtml(raw)

    if not isinstance(data, dict):
        return LegacyHtml(raw)

    try:
        return Record.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Stored JSON is not a record ({e.error_count()} errors)")
        return LegacyHtml(raw)


# =============================================================================
# API Models
# =============================================================================

class UploadResponse(CamelModel):
    """Response body for a successful upload."""

    success: bool = True
    preview_id: str
    preview_url: str


class StatsSummary(CamelModel):
    """Stats as exposed over the API: visitor hashes reduced to a count."""

    views: int = 0
    first_viewed: datetime | None = None
    last_viewed: datetime | None = None
    unique_visitors: int = 0
    daily_views: dict[str, int] = Field(default_factory=dict)
    referrers: dict[str, int] = Field(default_factory=dict)
    user_agents: dict[str, int] = Field(default_factory=dict)


class StatsResponse(CamelModel):
    """Response body for a stats query."""

    success: bool = True
    preview_id: str
    file_type: str
    upload_time: datetime
    original_size: int
    stats: StatsSummary
