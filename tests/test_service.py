"""Tests for the insight service, stores and settings checks."""

import pytest
from datetime import date, timedelta

from wellness_insights.config import Settings, get_settings
from wellness_insights.exceptions import ConfigurationError, ErrorCode
from wellness_insights.models.records import Alcohol, LifestyleCheckin, MorningReflection
from wellness_insights.service import InsightService, check_settings
from wellness_insights.store import (
    CheckinStore,
    DailyInsightCache,
    DatedRepository,
    InMemoryDatedRepository,
    InsightCache,
    NullInsightCache,
)


class TestDatedRepository:
    """Tests for the in-memory dated repository."""

    def test_protocol(self):
        """Test that the in-memory store satisfies the protocol."""
        assert isinstance(InMemoryDatedRepository(), DatedRepository)

    def test_upsert_replaces(self, base_date):
        """Test that saving twice for one date keeps the later entry."""
        repo = InMemoryDatedRepository()
        repo.upsert(LifestyleCheckin(date=base_date, alcohol="none"))
        repo.upsert(LifestyleCheckin(date=base_date, alcohol="three_plus"))

        assert len(repo) == 1
        assert repo.get(base_date).alcohol == Alcohol.THREE_PLUS

    def test_list_bounds(self, base_date):
        """Test inclusive date bounds and ascending order."""
        repo = InMemoryDatedRepository()
        for offset in (3, 1, 0, 2):
            repo.upsert(LifestyleCheckin(date=base_date + timedelta(days=offset)))

        listed = repo.list(since=base_date + timedelta(days=1), until=base_date + timedelta(days=2))

        assert [c.date for c in listed] == [base_date + timedelta(days=1), base_date + timedelta(days=2)]
        assert len(repo.list()) == 4

    def test_delete(self, base_date):
        """Test deleting present and absent dates."""
        repo = InMemoryDatedRepository()
        repo.upsert(LifestyleCheckin(date=base_date))

        assert repo.delete(base_date) is True
        assert repo.delete(base_date) is False


class TestInsightCache:
    """Tests for the insight caches."""

    def test_protocol(self):
        """Test that both caches satisfy the protocol."""
        assert isinstance(DailyInsightCache(), InsightCache)
        assert isinstance(NullInsightCache(), InsightCache)

    def test_keyed_by_date(self, base_date):
        """Test that an entry is never served for another date."""
        cache = DailyInsightCache()
        cache.set(base_date, "insight")

        assert cache.get(base_date) == "insight"
        assert cache.get(base_date + timedelta(days=1)) is None

    def test_eviction(self, base_date):
        """Test that the oldest entries are dropped past the limit."""
        cache = DailyInsightCache(max_entries=2)
        for offset in range(3):
            cache.set(base_date + timedelta(days=offset), offset)

        assert len(cache) == 2
        assert cache.get(base_date) is None
        assert cache.get(base_date + timedelta(days=2)) == 2

    def test_null_cache(self, base_date):
        """Test that the null cache never hits."""
        cache = NullInsightCache()
        cache.set(base_date, "insight")
        assert cache.get(base_date) is None


class TestCheckSettings:
    """Tests for settings validation."""

    def test_defaults_valid(self):
        """Test that the default settings pass."""
        check_settings(get_settings())

    def test_min_pairs_too_small(self):
        """Test that min_pairs must leave room for both groups."""
        with pytest.raises(ConfigurationError) as exc_info:
            check_settings(Settings(min_pairs=4, min_group_size=3))

        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR

    def test_confidence_cap(self):
        """Test that the confidence cap must be a probability."""
        with pytest.raises(ConfigurationError):
            check_settings(Settings(confidence_cap=1.5))

    def test_env_override(self, monkeypatch):
        """Test settings read from WELLNESS_ environment variables."""
        monkeypatch.setenv("WELLNESS_MIN_PAIRS", "12")
        get_settings.cache_clear()

        assert get_settings().min_pairs == 12

    def test_service_rejects_bad_settings(self):
        """Test that the service validates its settings on construction."""
        with pytest.raises(ConfigurationError):
            InsightService(settings=Settings(min_group_size=0))


class TestInsightService:
    """Tests for InsightService."""

    def test_daily_insight_cached(self, make_records, base_date):
        """Test that the same date is served from cache until refreshed."""
        service = InsightService(cache=DailyInsightCache())
        records = make_records(hrv=[50] * 10, sleep_score=[80] * 10)
        today = base_date + timedelta(days=9)

        first = service.daily_insight(records, today)
        second = service.daily_insight(records, today)
        refreshed = service.daily_insight(records, today, force_refresh=True)

        assert second is first
        assert refreshed is not first
        assert refreshed.to_dict() == first.to_dict()

    def test_new_date_recomputes(self, make_records, base_date):
        """Test that a new day gets a new insight."""
        service = InsightService(cache=DailyInsightCache())
        records = make_records(sleep_score=[80, 60])

        first = service.daily_insight(records, base_date)
        second = service.daily_insight(records, base_date + timedelta(days=1))

        assert first.date == base_date
        assert second.date == base_date + timedelta(days=1)
        assert second.top_priority_action.type == "sleep"

    def test_checkin_streaks(self):
        """Test evening and morning calendar streaks."""
        service = InsightService()
        for day in (7, 8, 9):
            service.record_evening_checkin(LifestyleCheckin(date=date(2025, 1, day)))
        service.record_morning_reflection(MorningReflection(date=date(2025, 1, 10), energy=4))

        streaks = service.checkin_streaks(date(2025, 1, 10))

        assert streaks["evening"].current == 3
        assert streaks["morning"].current == 1

    def test_lifestyle_patterns_from_store(self, make_records, base_date):
        """Test that the lifestyle analysis reads stored check-ins."""
        checkins = CheckinStore()
        service = InsightService(checkins=checkins)
        for offset in range(5):
            service.record_evening_checkin(LifestyleCheckin(date=base_date + timedelta(days=offset)))

        result = service.lifestyle_patterns(make_records(deep_sleep=[60] * 6), base_date + timedelta(days=5))

        assert result.has_enough_data is False
        assert result.days_tracked == 5
        assert result.days_needed == 9

    def test_energy_stats_from_store(self, base_date):
        """Test the morning energy summary reads stored reflections."""
        service = InsightService()
        for offset, energy in enumerate([3, 4, 5]):
            service.record_morning_reflection(
                MorningReflection(date=base_date + timedelta(days=offset), energy=energy)
            )

        stats = service.energy_stats(base_date + timedelta(days=2))

        assert stats.average == 4.0
        assert stats.distribution[5] == 1
        assert stats.trend is None
