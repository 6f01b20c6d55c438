"""Tests for lifestyle pattern mining."""

import pytest
from datetime import timedelta

from wellness_insights.analysis.lifestyle import (
    FACTORS,
    analyze_lifestyle_patterns,
    best_sleep_factors,
    checkin_trends,
    detect_anomalies,
    energy_stats,
    insight_text,
)
from wellness_insights.models.records import Alcohol, Caffeine, DailyRecord, MorningReflection


@pytest.fixture
def alcohol_history(base_date, make_records, make_checkin):
    """Twenty evenings alternating drinks / no drinks, with next-night outcomes.

    Drinking evenings are followed by 60 min deep sleep and 100 min REM;
    sober evenings by 80 min deep sleep and 90 min REM.
    """
    bad = [i % 2 == 0 for i in range(20)]
    checkins = [
        make_checkin(
            base_date + timedelta(days=i),
            alcohol=Alcohol.ONE_TWO if bad[i] else Alcohol.NONE,
        )
        for i in range(20)
    ]
    records = make_records(
        deep_sleep=[None] + [60 if b else 80 for b in bad],
        rem_sleep=[None] + [100 if b else 90 for b in bad],
    )
    return checkins, records


class TestAnalyzeLifestylePatterns:
    """Tests for analyze_lifestyle_patterns."""

    def test_alcohol_patterns(self, alcohol_history, base_date):
        """Test alcohol against deep sleep and REM, sorted by impact."""
        checkins, records = alcohol_history

        result = analyze_lifestyle_patterns(checkins, records, today=base_date + timedelta(days=20))

        assert result.has_enough_data is True
        assert result.days_tracked == 20
        assert [(p.factor_key, p.metric_key) for p in result.patterns] == [
            ("alcohol", "deep_sleep"),
            ("alcohol", "rem_sleep"),
        ]

        deep, rem = result.patterns
        assert deep.impact_percent == -25
        assert deep.human_text == "Alcohol consumption reduces your deep sleep by 25%"
        assert deep.avg_bad == 60
        assert deep.avg_good == 80
        assert deep.sample_size == 20
        assert deep.confidence == 0.95
        assert rem.impact_percent == 11
        assert rem.human_text == "Alcohol consumption increases your REM sleep by 11%"

    def test_not_enough_checkins(self, alcohol_history, base_date):
        """Test the days-needed countdown with ten check-ins."""
        checkins, records = alcohol_history

        result = analyze_lifestyle_patterns(checkins[:10], records, today=base_date + timedelta(days=10))

        assert result.has_enough_data is False
        assert result.days_tracked == 10
        assert result.days_needed == 4
        assert result.patterns == []

    def test_old_checkins_outside_window(self, alcohol_history, base_date):
        """Test that check-ins older than the window are ignored."""
        checkins, records = alcohol_history

        result = analyze_lifestyle_patterns(checkins, records, today=base_date + timedelta(days=60))

        assert result.has_enough_data is False
        assert result.days_tracked == 0

    def test_small_effect_not_reported(self, base_date, make_records, make_checkin):
        """Test that a 5% effect stays below the lifestyle cutoff."""
        checkins = [
            make_checkin(base_date + timedelta(days=i), alcohol="one_two" if i % 2 else "none")
            for i in range(20)
        ]
        records = make_records(deep_sleep=[None] + [76 if i % 2 else 80 for i in range(20)])

        result = analyze_lifestyle_patterns(checkins, records, today=base_date + timedelta(days=20))

        assert result.has_enough_data is True
        assert result.patterns == []

    def test_insight_text(self):
        """Test the phrasing for both directions."""
        assert insight_text("Late meals", "HRV", -12) == "Late meals reduces your HRV by 12%"
        assert insight_text("High stress", "REM sleep", 15) == "High stress increases your REM sleep by 15%"

    def test_stress_factor_is_continuous(self, make_checkin, base_date):
        """Test that the stress rating is used as-is for severity."""
        stress = next(f for f in FACTORS if f.key == "stress")
        assert stress.severity(make_checkin(base_date, stress=4)) == 4
        assert stress.severity(make_checkin(base_date)) is None


class TestBestSleepFactors:
    """Tests for best_sleep_factors."""

    def test_habits_on_best_nights(self, base_date, make_records, make_checkin):
        """Test habits shared by the evenings before the top nights."""
        records = make_records(sleep_efficiency=[None, 95, 94, 93, 80, 80, 80, 80, 80])
        checkins = [
            make_checkin(base_date + timedelta(days=i), caffeine="none", alcohol="none", screen_time="over_30")
            for i in range(3)
        ] + [
            make_checkin(base_date + timedelta(days=i), caffeine="evening", alcohol="three_plus")
            for i in range(3, 8)
        ]

        insights = best_sleep_factors(checkins, records)

        assert [(i.factor, i.percentage) for i in insights] == [
            ("No caffeine after noon", 100),
            ("No alcohol", 100),
        ]

    def test_not_enough_data(self, make_records, make_checkin, base_date):
        """Test that a short history yields nothing."""
        records = make_records(sleep_efficiency=[90, 85, 80])
        assert best_sleep_factors([make_checkin(base_date)], records) is None


class TestCheckinTrends:
    """Tests for checkin_trends."""

    def test_counts(self, base_date, make_checkin):
        """Test risky-evening counts over the last week."""
        checkins = [
            make_checkin(base_date, stress=2, caffeine=Caffeine.AFTERNOON),
            make_checkin(base_date + timedelta(days=1), stress=4, alcohol="one_two"),
            make_checkin(base_date + timedelta(days=2), last_meal_time="less_one"),
        ]

        trends = checkin_trends(checkins, today=base_date + timedelta(days=2))

        assert trends.avg_stress == 3.0
        assert trends.caffeine_afternoon_count == 1
        assert trends.alcohol_count == 1
        assert trends.late_eating_count == 1
        assert trends.days == 3

    def test_needs_three(self, base_date, make_checkin):
        """Test that two check-ins are not enough."""
        checkins = [make_checkin(base_date), make_checkin(base_date + timedelta(days=1))]
        assert checkin_trends(checkins, today=base_date + timedelta(days=1)) is None


class TestDetectAnomalies:
    """Tests for detect_anomalies."""

    def test_all_flags(self, base_date):
        """Test low deep sleep, low HRV and low efficiency together."""
        latest = DailyRecord(date=base_date, deep_sleep=40, hrv=30, sleep_efficiency=75)

        anomalies = detect_anomalies(latest, avg_deep_sleep=80, hrv_baseline=45)

        assert [a.metric for a in anomalies] == ["deep_sleep", "hrv", "sleep_efficiency"]

    def test_normal_night(self, base_date):
        """Test that an ordinary night raises nothing."""
        latest = DailyRecord(date=base_date, deep_sleep=70, hrv=44, sleep_efficiency=88)
        assert detect_anomalies(latest, avg_deep_sleep=75, hrv_baseline=45) == []

    def test_unknown_references(self, base_date):
        """Test that missing averages suppress the relative checks."""
        latest = DailyRecord(date=base_date, deep_sleep=20, hrv=10)
        assert detect_anomalies(latest) == []

    def test_zero_readings_are_anomalies(self, base_date):
        """Test that zero deep sleep and zero efficiency are flagged, not skipped."""
        latest = DailyRecord(date=base_date, deep_sleep=0, sleep_efficiency=0)

        anomalies = detect_anomalies(latest, avg_deep_sleep=80)

        assert [a.metric for a in anomalies] == ["deep_sleep", "sleep_efficiency"]
        assert anomalies[0].value == 0


class TestEnergyStats:
    """Tests for energy_stats."""

    def test_average_distribution_trend(self, base_date):
        """Test a week at energy 2 followed by a week at energy 4."""
        reflections = [
            MorningReflection(date=base_date + timedelta(days=i), energy=2 if i < 7 else 4)
            for i in range(14)
        ]

        stats = energy_stats(reflections, today=base_date + timedelta(days=13))

        assert stats.average == 3.0
        assert stats.distribution == {1: 0, 2: 7, 3: 0, 4: 7, 5: 0}
        assert stats.trend == 2.0
        assert stats.days == 14

    def test_trend_needs_two_sides(self, base_date):
        """Test that the trend is unknown until both weeks have three ratings."""
        reflections = [
            MorningReflection(date=base_date + timedelta(days=i), energy=3) for i in range(9)
        ]

        stats = energy_stats(reflections, today=base_date + timedelta(days=8))

        assert stats.trend is None
        assert stats.average == 3.0

    def test_window_and_unrated(self, base_date):
        """Test that old and unrated mornings are left out."""
        reflections = [
            MorningReflection(date=base_date - timedelta(days=40), energy=1),
            MorningReflection(date=base_date, energy=5),
            MorningReflection(date=base_date + timedelta(days=1)),
        ]

        stats = energy_stats(reflections, today=base_date + timedelta(days=1))

        assert stats.days == 1
        assert stats.average == 5.0
        assert stats.distribution[1] == 0

    def test_no_ratings(self, base_date):
        """Test the empty summary."""
        stats = energy_stats([], today=base_date)

        assert stats.average is None
        assert stats.trend is None
        assert sum(stats.distribution.values()) == 0
