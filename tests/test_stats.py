"""Tests for view statistics and their bounded collections."""

from datetime import date, datetime, timedelta, timezone

import pytest
from html_showing.bounded import AgeBoundedMap, BoundedFifoSet, TopNBoundedMap
from html_showing.identifiers import hash_visitor
from html_showing.models import Record, Stats
from html_showing.stats import (
    MAX_REFERRERS,
    MAX_UNIQUE_VISITORS,
    RequestMeta,
    record_view,
    summarize_stats,
    update_view_stats,
)

CHROME_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
FIREFOX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/119.0"

NOW = datetime(2026, 2, 15, 9, 30, tzinfo=timezone.utc)


def _meta(ip="203.0.113.7", user_agent=CHROME_UA, referrer=None, now=NOW):
    return RequestMeta(client_ip=ip, user_agent=user_agent, referrer=referrer, now=now)


class TestBoundedFifoSet:
    """Test the unique-visitor list policy."""

    def test_add_new_value(self):
        assert BoundedFifoSet(3).add(["a", "b"], "c") == ["a", "b", "c"]

    def test_duplicate_not_added(self):
        assert BoundedFifoSet(3).add(["a", "b"], "a") == ["a", "b"]

    def test_oldest_evicted(self):
        assert BoundedFifoSet(3).add(["a", "b", "c"], "d") == ["b", "c", "d"]

    def test_input_untouched(self):
        items = ["a", "b", "c"]
        BoundedFifoSet(3).add(items, "d")
        assert items == ["a", "b", "c"]

    def test_evict_oversized_list(self):
        assert BoundedFifoSet(2).evict(["a", "b", "c", "d"]) == ["c", "d"]


class TestAgeBoundedMap:
    """Test the daily-views window policy."""

    def test_increment_today(self):
        result = AgeBoundedMap(30).increment({"2026-02-15": 2}, date(2026, 2, 15))
        assert result == {"2026-02-15": 3}

    def test_prune_keeps_window_edge(self):
        counts = {"2026-01-16": 1, "2026-01-15": 1}
        result = AgeBoundedMap(30).prune(counts, date(2026, 2, 15))
        assert result == {"2026-01-16": 1}

    def test_prune_drops_non_dates(self):
        result = AgeBoundedMap(30).prune({"yesterday": 4, "2026-02-14": 1}, date(2026, 2, 15))
        assert result == {"2026-02-14": 1}

    def test_input_untouched(self):
        counts = {"2025-01-01": 1}
        AgeBoundedMap(30).increment(counts, date(2026, 2, 15))
        assert counts == {"2025-01-01": 1}


class TestTopNBoundedMap:
    """Test the referrer/user-agent counter policy."""

    def test_increment(self):
        assert TopNBoundedMap(5).increment({"a": 1}, "a") == {"a": 2}

    def test_new_low_count_key_dropped_when_full(self):
        counts = {f"site{i}.com": 2 for i in range(3)}
        result = TopNBoundedMap(3).increment(counts, "new.com")
        assert len(result) == 3
        assert "new.com" not in result

    def test_new_key_survives_against_lower_counts(self):
        counts = {"a": 5, "b": 1}
        result = TopNBoundedMap(2).prune({**counts, "c": 3})
        assert result == {"a": 5, "c": 3}

    def test_ties_keep_earlier_keys(self):
        result = TopNBoundedMap(2).prune({"a": 1, "b": 1, "c": 1})
        assert list(result) == ["a", "b"]


class TestUpdateViewStats:
    """Test folding a single view into stats."""

    def test_first_view(self):
        stats = update_view_stats(None, _meta())

        assert stats.views == 1
        assert stats.first_viewed == NOW
        assert stats.last_viewed == NOW
        assert stats.unique_visitors == [hash_visitor("203.0.113.7")]
        assert stats.daily_views == {"2026-02-15": 1}
        assert stats.referrers == {"direct": 1}
        assert stats.user_agents == {"Chrome": 1}

    def test_input_not_modified(self):
        before = update_view_stats(None, _meta())
        snapshot = before.model_dump()

        update_view_stats(before, _meta(ip="198.51.100.1", now=NOW + timedelta(hours=1)))

        assert before.model_dump() == snapshot

    def test_first_viewed_fixed_last_viewed_moves(self):
        later = NOW + timedelta(days=2)
        stats = update_view_stats(update_view_stats(None, _meta()), _meta(now=later))

        assert stats.first_viewed == NOW
        assert stats.last_viewed == later
        assert stats.first_viewed <= stats.last_viewed

    def test_views_monotonic(self):
        stats = None
        for expected in range(1, 6):
            stats = update_view_stats(stats, _meta())
            assert stats.views == expected

    def test_repeat_visitor_counted_once(self):
        stats = None
        for _ in range(3):
            stats = update_view_stats(stats, _meta())

        assert stats.views == 3
        assert len(stats.unique_visitors) == 1

    def test_unique_visitors_capped(self):
        stats = None
        for i in range(MAX_UNIQUE_VISITORS + 1):
            stats = update_view_stats(stats, _meta(ip=f"10.0.{i // 256}.{i % 256}"))

        assert len(stats.unique_visitors) == MAX_UNIQUE_VISITORS
        assert hash_visitor("10.0.0.0") not in stats.unique_visitors
        assert stats.unique_visitors[-1] == hash_visitor("10.0.3.232")

    def test_old_days_pruned(self):
        stats = Stats(
            views=7,
            first_viewed=NOW - timedelta(days=45),
            last_viewed=NOW - timedelta(days=26),
            daily_views={"2026-01-01": 5, "2026-01-20": 2},
        )

        result = update_view_stats(stats, _meta())

        assert result.daily_views == {"2026-01-20": 2, "2026-02-15": 1}
        assert result.views == 8

    def test_browser_labels(self):
        stats = update_view_stats(None, _meta(user_agent=CHROME_UA))
        stats = update_view_stats(stats, _meta(ip="198.51.100.1", user_agent=FIREFOX_UA))

        assert stats.user_agents == {"Chrome": 1, "Firefox": 1}

    def test_missing_user_agent(self):
        stats = update_view_stats(None, _meta(user_agent=None))
        assert stats.user_agents == {"unknown": 1}

    def test_referrer_domains(self):
        stats = update_view_stats(None, _meta(referrer="https://www.google.com/search?q=x"))
        stats = update_view_stats(stats, _meta(referrer="https://google.com/"))
        stats = update_view_stats(stats, _meta(referrer=""))

        assert stats.referrers == {"google.com": 2, "direct": 1}

    def test_referrers_capped(self):
        stats = Stats(referrers={f"site{i}.com": 3 for i in range(MAX_REFERRERS)})

        result = update_view_stats(stats, _meta(referrer="https://newcomer.org/"))

        assert len(result.referrers) == MAX_REFERRERS
        assert "newcomer.org" not in result.referrers

    def test_missing_ip_hashes_unknown(self):
        stats = update_view_stats(None, _meta(ip=None))
        assert stats.unique_visitors == [hash_visitor("unknown")]


class TestRecordView:
    """Test applying a view to a whole record."""

    def test_only_stats_change(self):
        record = Record.create("<p>hi</p>", "html", NOW - timedelta(days=1))

        viewed = record_view(record, _meta())

        assert viewed.content == record.content
        assert viewed.upload_time == record.upload_time
        assert viewed.original_size == record.original_size
        assert viewed.stats.views == 1
        assert record.stats.views == 0


class TestSummarizeStats:
    """Test the API projection of stats."""

    def test_visitors_reduced_to_count(self):
        stats = update_view_stats(None, _meta())
        stats = update_view_stats(stats, _meta(ip="198.51.100.1"))

        summary = summarize_stats(stats)

        assert summary.unique_visitors == 2
        assert summary.views == 2
        dumped = summary.model_dump_json(by_alias=True)
        assert hash_visitor("203.0.113.7") not in dumped
        assert '"uniqueVisitors":2' in dumped


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
