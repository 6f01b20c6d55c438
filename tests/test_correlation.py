"""Tests for the lagged-correlation engine."""

import pytest
from datetime import date, timedelta

from wellness_insights.analysis.correlation import (
    LaggedPair,
    analyze_deep_sleep_efficiency,
    analyze_lagged_pattern,
    analyze_stress_balance_readiness,
    analyze_stress_day_quality,
    build_lagged_pairs,
    find_next_day_patterns,
    lifestyle_confidence,
    recovery_ratio,
)
from wellness_insights.exceptions import InvalidSeriesError
from wellness_insights.models.records import DailyRecord


def _pairs(values):
    """Lagged pairs from (input, output) tuples on consecutive days."""
    start = date(2025, 1, 6)
    return [LaggedPair(start + timedelta(days=i), x, y) for i, (x, y) in enumerate(values)]


class TestBuildLaggedPairs:
    """Tests for build_lagged_pairs."""

    def test_pairs_next_calendar_day(self, make_records):
        """Test that each input pairs with the following day's outcome."""
        records = make_records(deep_sleep=[60, 40, 70], sleep_efficiency=[None, 90, 80])

        pairs = build_lagged_pairs(
            records, records,
            input_value=lambda r: r.deep_sleep,
            output_value=lambda r: r.sleep_efficiency,
        )

        assert [(p.input_value, p.output_value) for p in pairs] == [(60, 90), (40, 80)]

    def test_gap_never_pairs_non_adjacent_days(self, base_date):
        """Test that a missing day breaks pairing instead of shifting it."""
        records = [
            DailyRecord(date=base_date, deep_sleep=60, sleep_efficiency=85),
            DailyRecord(date=base_date + timedelta(days=2), deep_sleep=40, sleep_efficiency=90),
            DailyRecord(date=base_date + timedelta(days=3), deep_sleep=50, sleep_efficiency=80),
        ]

        pairs = build_lagged_pairs(
            records, records,
            input_value=lambda r: r.deep_sleep,
            output_value=lambda r: r.sleep_efficiency,
        )

        assert len(pairs) == 1
        assert pairs[0].input_date == base_date + timedelta(days=2)
        for pair in pairs:
            assert pair.input_date + timedelta(days=1) in {r.date for r in records}

    def test_day_offset(self, make_records):
        """Test a two-day lag."""
        records = make_records(steps=[1, 2, 3, 4], hrv=[10, 20, 30, 40])

        pairs = build_lagged_pairs(
            records, records,
            input_value=lambda r: r.steps,
            output_value=lambda r: r.hrv,
            day_offset=2,
        )

        assert [(p.input_value, p.output_value) for p in pairs] == [(1, 30), (2, 40)]

    def test_rejects_non_list(self, make_records):
        """Test that structurally invalid input fails fast."""
        with pytest.raises(InvalidSeriesError):
            build_lagged_pairs("x", make_records(steps=[1]), lambda r: 1, lambda r: 1)


class TestAnalyzeLaggedPattern:
    """Tests for analyze_lagged_pattern."""

    def test_scenario(self, scenario_b):
        """Test 12 pairs, 90 vs 80 efficiency: +13% impact, significant."""
        result = analyze_deep_sleep_efficiency(scenario_b)

        assert result.sample_size == 12
        assert result.avg_above == 90
        assert result.avg_below == 80
        assert result.impact == 13
        assert result.significant is True
        assert result.message.startswith("+13% sleep efficiency")

    def test_too_few_pairs(self):
        """Test that nine pairs is not enough evidence."""
        pairs = _pairs([(60, 90)] * 5 + [(40, 80)] * 4)
        assert analyze_lagged_pattern(pairs, lambda v: v >= 50) is None

    def test_group_too_small(self):
        """Test that each group needs at least three members."""
        pairs = _pairs([(60, 90)] * 10 + [(40, 80)] * 2)
        assert analyze_lagged_pattern(pairs, lambda v: v >= 50) is None

    def test_zero_reference_mean(self):
        """Test that a zero group-B mean produces no finding."""
        pairs = _pairs([(60, 90)] * 5 + [(40, 0)] * 5)
        assert analyze_lagged_pattern(pairs, lambda v: v >= 50) is None

    def test_small_impact_not_significant(self):
        """Test that a 2% difference is reported but not significant."""
        pairs = _pairs([(60, 102)] * 5 + [(40, 100)] * 5)

        result = analyze_lagged_pattern(pairs, lambda v: v >= 50)

        assert result.impact == 2
        assert result.significant is False

    def test_negative_impact(self):
        """Test that a worse group A yields a negative impact."""
        pairs = _pairs([(60, 70)] * 5 + [(40, 100)] * 5)
        assert analyze_lagged_pattern(pairs, lambda v: v >= 50).impact == -30

    def test_negative_half_impact_rounds_up(self):
        """Test that a -9.5% impact rounds to -9 and misses a 10% cutoff."""
        pairs = _pairs([(60, 181)] * 5 + [(40, 200)] * 5)

        result = analyze_lagged_pattern(pairs, lambda v: v >= 50, min_impact=10)

        assert result.impact == -9
        assert result.significant is False

    def test_minimums_are_configurable(self):
        """Test per-call overrides of the evidence minimums."""
        pairs = _pairs([(60, 90)] * 2 + [(40, 80)] * 2)
        result = analyze_lagged_pattern(pairs, lambda v: v >= 50, min_pairs=4, min_group_size=2)
        assert result.impact == 13


class TestStressAnalyses:
    """Tests for the stress/recovery analyses."""

    def test_recovery_ratio(self, base_date):
        """Test the smoothed ratio and missing inputs."""
        assert recovery_ratio(DailyRecord(date=base_date, stress_minutes=0, recovery_minutes=0)) == 0
        assert recovery_ratio(DailyRecord(date=base_date, stress_minutes=99, recovery_minutes=200)) == 2
        assert recovery_ratio(DailyRecord(date=base_date, stress_minutes=99)) is None

    def test_day_quality(self, make_records):
        """Test balanced days rarely stressful, high-stress days mostly stressful."""
        records = make_records(
            stress_minutes=[100] * 4 + [300] * 4,
            recovery_minutes=[200] * 4 + [20] * 4,
            day_summary=["stressful", "normal", "restored", "normal",
                         "stressful", "stressful", "stressful", "normal"],
        )

        result = analyze_stress_day_quality(records)

        assert result.pct_stressful_balanced == 25
        assert result.pct_stressful_high_stress == 75
        assert result.sample_size == 8
        assert result.significant is True
        assert result.message == (
            "Days with balanced recovery: 75% felt good. "
            "High-stress days: only 25% felt good."
        )

    def test_day_quality_needs_both_groups(self, make_records):
        """Test that without high-stress days there is nothing to compare."""
        records = make_records(stress_minutes=[100] * 6, recovery_minutes=[200] * 6)
        assert analyze_stress_day_quality(records) is None

    def test_balance_readiness(self, make_records):
        """Test balanced days followed by higher readiness."""
        balanced = [(100, 200)] * 6
        stressed = [(300, 20)] * 6
        days = [d for pair in zip(balanced, stressed) for d in pair] + [(100, 200)]
        readiness = [None] + [80 if i % 2 == 0 else 60 for i in range(12)]

        records = make_records(
            stress_minutes=[s for s, _ in days],
            recovery_minutes=[r for _, r in days],
            readiness_score=readiness,
        )

        result = analyze_stress_balance_readiness(records)

        assert result.avg_above == 80
        assert result.avg_below == 60
        assert result.impact == 33
        assert result.significant is True


class TestFindNextDayPatterns:
    """Tests for find_next_day_patterns."""

    def test_needs_two_weeks(self, scenario_b):
        """Test that fewer than 14 records returns nothing."""
        assert find_next_day_patterns(scenario_b) == []

    def test_significant_only(self, make_deep_sleep_scenario):
        """Test that only significant findings come back."""
        patterns = find_next_day_patterns(make_deep_sleep_scenario(15))

        assert [p.pattern_type for p in patterns] == ["deep_sleep_efficiency"]
        assert all(p.significant for p in patterns)

    def test_sorted_by_absolute_impact(self, make_records):
        """Test ordering when several patterns are found."""
        deep = [60 if i % 2 == 0 else 40 for i in range(15)]
        efficiency = [None] + [90 if d >= 50 else 80 for d in deep[:-1]]
        hrv = [None] + [70 if e is not None and e >= 85 else 40 for e in efficiency[:-1]]
        records = make_records(deep_sleep=deep, sleep_efficiency=efficiency, hrv=hrv)

        patterns = find_next_day_patterns(records)

        impacts = [abs(p.impact) for p in patterns]
        assert impacts == sorted(impacts, reverse=True)
        assert patterns[0].pattern_type == "efficiency_hrv"


class TestLifestyleConfidence:
    """Tests for lifestyle_confidence."""

    def test_capped(self):
        """Test that confidence never exceeds 0.95."""
        assert lifestyle_confidence(20, 25) == 0.95

    def test_grows_with_evidence(self):
        """Test a small sample with a modest effect."""
        assert lifestyle_confidence(5, 10) == 0.7
