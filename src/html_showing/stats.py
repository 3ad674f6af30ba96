"""
View statistics aggregation.

update_view_stats() folds one preview view into a record's stats:

1. views += 1
2. lastViewed = now, firstViewed = now if unset
3. visitor hash added to uniqueVisitors (max 1000, oldest evicted)
4. dailyViews[today] += 1, dates older than 30 days pruned
5. referrers[domain] += 1 (top 100 kept)
6. userAgents[label] += 1 (top 50 kept)

It is pure: the caller decides whether and how to persist the result.
"""
from dataclasses import dataclass
from datetime import datetime

from .bounded import AgeBoundedMap, BoundedFifoSet, TopNBoundedMap
from .identifiers import hash_visitor
from .models import Record, Stats, StatsSummary
from .referrer import referrer_domain
from .user_agent import classify_user_agent

MAX_UNIQUE_VISITORS = 1000
DAILY_VIEWS_DAYS = 30
MAX_REFERRERS = 100
MAX_USER_AGENTS = 50

UNIQUE_VISITORS = BoundedFifoSet(MAX_UNIQUE_VISITORS)
DAILY_VIEWS = AgeBoundedMap(DAILY_VIEWS_DAYS)
REFERRERS = TopNBoundedMap(MAX_REFERRERS)
USER_AGENTS = TopNBoundedMap(MAX_USER_AGENTS)


@dataclass(frozen=True)
class RequestMeta:
    """The parts of a preview request that feed the stats."""

    client_ip: str | None
    user_agent: str | None
    referrer: str | None
    now: datetime


def update_view_stats(stats: Stats | None, meta: RequestMeta) -> Stats:
    """Return stats with one more view recorded. The input is not modified."""
    stats = stats or Stats()

    return Stats(
        views=stats.views + 1,
        first_viewed=stats.first_viewed or meta.now,
        last_viewed=meta.now,
        unique_visitors=UNIQUE_VISITORS.add(
            stats.unique_visitors, hash_visitor(meta.client_ip)
        ),
        daily_views=DAILY_VIEWS.increment(stats.daily_views, meta.now.date()),
        referrers=REFERRERS.increment(stats.referrers, referrer_domain(meta.referrer)),
        user_agents=USER_AGENTS.increment(
            stats.user_agents, classify_user_agent(meta.user_agent)
        ),
    )


def record_view(record: Record, meta: RequestMeta) -> Record:
    """Return a copy of record with the view folded into its stats."""
    return record.model_copy(update={"stats": update_view_stats(record.stats, meta)})


def summarize_stats(stats: Stats) -> StatsSummary:
    """Project stats for the API, reducing visitor hashes to a count."""
    return StatsSummary(
        views=stats.views,
        first_viewed=stats.first_viewed,
        last_viewed=stats.last_viewed,
        unique_visitors=len(stats.unique_visitors),
        daily_views=dict(stats.daily_views),
        referrers=dict(stats.referrers),
        user_agents=dict(stats.user_agents),
    )
