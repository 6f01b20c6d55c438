"""
Storage interfaces for self-reports and cached insights.

The analysis functions never touch storage: the service reads from these
stores and passes plain lists in. Callers inject their own implementations
(database, file, browser sync); the in-memory versions here are the
defaults and what the tests use.
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, Generic, List, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from .models.records import LifestyleCheckin, MorningReflection

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@runtime_checkable
class DatedRepository(Protocol[T]):
    """
    Protocol for stores holding at most one entry per calendar date.

    Saving an entry for a date that already has one replaces it.
    """

    def upsert(self, entry: T) -> T:
        """Insert or replace the entry for ``entry.date``."""
        ...

    def get(self, day: date) -> Optional[T]:
        """Entry for a date, if any."""
        ...

    def list(self, since: Optional[date] = None, until: Optional[date] = None) -> List[T]:
        """Entries in ascending date order, optionally bounded (inclusive)."""
        ...

    def delete(self, day: date) -> bool:
        """Remove the entry for a date. Returns whether one existed."""
        ...


class InMemoryDatedRepository(Generic[T]):
    """Dict-backed DatedRepository."""

    def __init__(self) -> None:
        self._entries: Dict[date, T] = {}

    def upsert(self, entry: T) -> T:
        if entry.date in self._entries:
            logger.debug(f"Replacing entry for {entry.date.isoformat()}")
        self._entries[entry.date] = entry
        return entry

    def get(self, day: date) -> Optional[T]:
        return self._entries.get(day)

    def list(self, since: Optional[date] = None, until: Optional[date] = None) -> List[T]:
        return [
            self._entries[d]
            for d in sorted(self._entries)
            if (since is None or d >= since) and (until is None or d <= until)
        ]

    def delete(self, day: date) -> bool:
        return self._entries.pop(day, None) is not None

    def __len__(self) -> int:
        return len(self._entries)


class CheckinStore:
    """Evening check-ins and morning reflections, one of each per date."""

    def __init__(
        self,
        evening: Optional[DatedRepository[LifestyleCheckin]] = None,
        morning: Optional[DatedRepository[MorningReflection]] = None,
    ) -> None:
        self.evening = evening if evening is not None else InMemoryDatedRepository()
        self.morning = morning if morning is not None else InMemoryDatedRepository()


@runtime_checkable
class InsightCache(Protocol):
    """Protocol for caching one computed insight per calendar date."""

    def get(self, day: date) -> Optional[object]:
        """Cached insight for a date, if any."""
        ...

    def set(self, day: date, insight: object) -> None:
        """Cache an insight for a date."""
        ...

    def clear(self) -> None:
        """Drop everything."""
        ...


class NullInsightCache:
    """No-op cache: every lookup misses."""

    def get(self, day: date) -> Optional[object]:
        return None

    def set(self, day: date, insight: object) -> None:
        return None

    def clear(self) -> None:
        return None


class DailyInsightCache:
    """
    Keeps the most recent ``max_entries`` daily insights.

    An entry is keyed by its local calendar date, so it stays valid for the
    rest of that day and is never served for a different date.
    """

    def __init__(self, max_entries: int = 30) -> None:
        self.max_entries = max_entries
        self._entries: "OrderedDict[date, object]" = OrderedDict()

    def get(self, day: date) -> Optional[object]:
        return self._entries.get(day)

    def set(self, day: date, insight: object) -> None:
        self._entries[day] = insight
        self._entries.move_to_end(day)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cached insight for {evicted.isoformat()}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
