"""
Bounded collections for view statistics.

Each policy works on the plain list/dict that gets serialized into the
record, so the stored JSON stays a simple shape:

- BoundedFifoSet: unique values, oldest evicted past a cap
- AgeBoundedMap: date-keyed counters, entries older than a window pruned
- TopNBoundedMap: counters, lowest counts pruned past a cap

All operations return new containers and leave their input untouched.
"""
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class BoundedFifoSet:
    """Insertion-ordered set capped at max_size, evicting oldest first."""

    max_size: int

    def add(self, items: list[str], value: str) -> list[str]:
        """Append value if absent, then evict from the front down to max_size."""
        result = list(items)
        if value not in result:
            result.append(value)
        return self.evict(result)

    def evict(self, items: list[str]) -> list[str]:
        overflow = len(items) - self.max_size
        return items[overflow:] if overflow > 0 else list(items)


@dataclass(frozen=True)
class AgeBoundedMap:
    """Counters keyed by ISO date, keeping only the last max_age_days."""

    max_age_days: int

    def increment(self, counts: dict[str, int], day: date) -> dict[str, int]:
        """Count one hit on day, then prune relative to day."""
        result = dict(counts)
        key = day.isoformat()
        result[key] = result.get(key, 0) + 1
        return self.prune(result, day)

    def prune(self, counts: dict[str, int], today: date) -> dict[str, int]:
        """Drop every date strictly older than today - max_age_days.

        Keys that are not ISO dates are dropped too.
        """
        cutoff = today - timedelta(days=self.max_age_days)
        result = {}
        for key, value in counts.items():
            try:
                day = date.fromisoformat(key)
            except ValueError:
                continue
            if day >= cutoff:
                result[key] = value
        return result


@dataclass(frozen=True)
class TopNBoundedMap:
    """Counters capped at max_size, keeping the highest counts.

    Ties keep their existing order (stable sort), so earlier keys win.
    """

    max_size: int

    def increment(self, counts: dict[str, int], key: str) -> dict[str, int]:
        result = dict(counts)
        result[key] = result.get(key, 0) + 1
        return self.prune(result)

    def prune(self, counts: dict[str, int]) -> dict[str, int]:
        if len(counts) <= self.max_size:
            return dict(counts)
        ranked = sorted(counts.items(), key=lambda x: x[1], reverse=True)
        return dict(ranked[: self.max_size])
