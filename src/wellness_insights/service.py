"""
Insight service.

Thin stateful wrapper that wires the check-in store and insight cache to
the pure analysis functions. All analysis inputs are passed in explicitly,
including ``today``.
"""

import logging
from datetime import date
from typing import Dict, Mapping, Optional, Sequence

from .analysis.composer import ComposedInsight, compose_daily_insight
from .analysis.lifestyle import EnergyStats, LifestyleAnalysis, analyze_lifestyle_patterns, energy_stats
from .analysis.records import Streak, calculate_calendar_streak
from .config import Settings, get_settings
from .exceptions import ConfigurationError
from .models.goals import Goal, default_goals
from .models.records import DailyRecord, LifestyleCheckin, MorningReflection
from .store import CheckinStore, DailyInsightCache, InsightCache

logger = logging.getLogger(__name__)


def check_settings(settings: Settings) -> None:
    """Reject threshold combinations the analyses cannot satisfy."""
    if settings.min_group_size < 1:
        raise ConfigurationError("min_group_size must be at least 1", setting="min_group_size")
    if settings.min_pairs < settings.min_group_size * 2:
        raise ConfigurationError(
            "min_pairs must allow min_group_size pairs in both groups",
            setting="min_pairs",
        )
    if not 0 < settings.confidence_cap <= 1:
        raise ConfigurationError("confidence_cap must be in (0, 1]", setting="confidence_cap")
    if settings.trend_window < 1:
        raise ConfigurationError("trend_window must be at least 1", setting="trend_window")


class InsightService:
    """
    Daily insights and lifestyle patterns for one user.

    Example:
        service = InsightService()
        insight = service.daily_insight(records, today=date(2025, 3, 1))
    """

    def __init__(
        self,
        checkins: Optional[CheckinStore] = None,
        cache: Optional[InsightCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        check_settings(self.settings)
        self.checkins = checkins if checkins is not None else CheckinStore()
        self.cache = cache if cache is not None else DailyInsightCache(self.settings.insight_cache_size)

    def daily_insight(
        self,
        records: Sequence[DailyRecord],
        today: date,
        goals: Optional[Mapping[str, Goal]] = None,
        force_refresh: bool = False,
    ) -> ComposedInsight:
        """Composed insight for ``today``, served from cache until the date changes."""
        if not force_refresh:
            cached = self.cache.get(today)
            if cached is not None:
                logger.debug(f"Using cached insight for {today.isoformat()}")
                return cached

        insight = compose_daily_insight(records, goals if goals is not None else default_goals(), today)
        self.cache.set(today, insight)
        logger.info(f"Generated insight for {today.isoformat()}: {insight.top_priority_action.title}")
        return insight

    def record_evening_checkin(self, checkin: LifestyleCheckin) -> LifestyleCheckin:
        """Save an evening check-in, replacing any earlier one for that date."""
        return self.checkins.evening.upsert(checkin)

    def record_morning_reflection(self, reflection: MorningReflection) -> MorningReflection:
        """Save a morning reflection, replacing any earlier one for that date."""
        return self.checkins.morning.upsert(reflection)

    def lifestyle_patterns(self, records: Sequence[DailyRecord], today: date) -> LifestyleAnalysis:
        """Run the lifestyle analysis over stored check-ins."""
        return analyze_lifestyle_patterns(self.checkins.evening.list(until=today), records, today)

    def energy_stats(self, today: date, days: int = 30) -> EnergyStats:
        """Morning energy summary over stored reflections."""
        return energy_stats(self.checkins.morning.list(until=today), today, days)

    def checkin_streaks(self, today: date) -> Dict[str, Streak]:
        """Calendar streaks for evening check-ins and morning reflections."""
        return {
            "evening": calculate_calendar_streak(
                (c.date for c in self.checkins.evening.list(until=today)), today
            ),
            "morning": calculate_calendar_streak(
                (r.date for r in self.checkins.morning.list(until=today)), today
            ),
        }
