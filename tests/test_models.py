"""Tests for stored records and the legacy HTML format."""

import json
from datetime import datetime, timezone

import pytest
from html_showing.models import (
    FileType,
    LegacyHtml,
    Record,
    normalize_file_type,
    parse_stored_value,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestFileType:
    """Test file type tags."""

    def test_known_types(self):
        assert FileType.parse("json") == FileType.JSON
        assert FileType.parse("svg") == FileType.SVG

    def test_case_and_whitespace(self):
        assert FileType.parse("  CSS ") == FileType.CSS

    def test_aliases(self):
        assert FileType.parse("js") == FileType.JAVASCRIPT
        assert normalize_file_type("htm") == "html"

    def test_empty_is_html(self):
        assert FileType.parse("") == FileType.HTML
        assert FileType.parse(None) == FileType.HTML

    def test_unknown_is_other(self):
        assert FileType.parse("python") == FileType.OTHER
        assert FileType.parse("Markdown") == FileType.OTHER

    def test_unknown_tag_keeps_spelling(self):
        assert normalize_file_type("  Markdown ") == "Markdown"
        assert normalize_file_type("JS") == "javascript"


class TestRecord:
    """Test record creation and serialization."""

    def test_create_zeroed_stats(self):
        record = Record.create("<h1>hi</h1>", "HTML", NOW)

        assert record.file_type == "html"
        assert record.original_size == len("<h1>hi</h1>")
        assert record.upload_time == NOW
        assert record.stats.views == 0
        assert record.stats.first_viewed is None
        assert record.stats.unique_visitors == []

    def test_unknown_type_kept_verbatim(self):
        record = Record.create("# Title", "Markdown", NOW)

        assert record.file_type == "Markdown"
        assert record.kind == FileType.OTHER

    def test_json_uses_camel_case(self):
        data = json.loads(Record.create("a", "css", NOW).to_json())

        assert set(data) == {"content", "fileType", "uploadTime", "originalSize", "stats"}
        assert set(data["stats"]) == {
            "views", "firstViewed", "lastViewed", "uniqueVisitors",
            "dailyViews", "referrers", "userAgents",
        }

    def test_round_trip(self):
        record = Record.create('{"a": 1}', "json", NOW)
        assert parse_stored_value(record.to_json()) == record


class TestParseStoredValue:
    """Test classification of raw store values."""

    def test_plain_html_is_legacy(self):
        assert parse_stored_value("<p>old</p>") == LegacyHtml("<p>old</p>")

    def test_json_array_is_legacy(self):
        assert isinstance(parse_stored_value("[1, 2]"), LegacyHtml)

    def test_json_scalar_is_legacy(self):
        assert isinstance(parse_stored_value("42"), LegacyHtml)

    def test_object_missing_fields_is_legacy(self):
        assert isinstance(parse_stored_value('{"content": "x"}'), LegacyHtml)

    def test_record_without_stats(self):
        raw = json.dumps({
            "content": "<b>x</b>",
            "fileType": "html",
            "uploadTime": "2025-06-01T00:00:00.000Z",
            "originalSize": 8,
        })

        value = parse_stored_value(raw)

        assert isinstance(value, Record)
        assert value.stats.views == 0

    def test_legacy_promotion(self):
        record = LegacyHtml("<p>old</p>").to_record(NOW)

        assert record.content == "<p>old</p>"
        assert record.file_type == "html"
        assert record.upload_time == NOW
        assert record.stats.views == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
