"""
Lagged-Correlation Engine

Tests whether a day-N value precedes a different day-N+1 outcome:

1. Pair each input day with the outcome dated exactly ``day_offset`` calendar
   days later. A gap in tracked dates never pairs non-adjacent days.
2. Split the pairs into two groups with a cutoff rule.
3. Compare the group means of the outcome as a percent impact.

A finding is only reported when there are enough pairs, enough members in
each group, and the impact is large enough. These are fixed heuristics, not
a statistical test, and no multiple-comparison correction is applied.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import get_settings
from ..models.records import DailyRecord, DaySummary, ensure_series, index_by_date
from ..utils import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaggedPair:
    """(day N input, day N+offset outcome)."""

    input_date: date
    input_value: float
    output_value: float


@dataclass(frozen=True)
class LaggedComparison:
    """Group-mean comparison of lagged outcomes.

    ``impact`` is (mean_a - mean_b) / mean_b as a rounded percent.
    """

    sample_size: int
    group_a_size: int
    group_b_size: int
    mean_a: float
    mean_b: float
    impact: int
    significant: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NextDayPattern:
    """A day-N factor vs next-day outcome finding."""

    pattern_type: str
    factor: str
    outcome: str
    threshold: float
    avg_above: int
    avg_below: int
    impact: int
    sample_size: int
    significant: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StressDayQuality:
    """Share of self-reported stressful days, balanced vs high-stress days."""

    balanced_days: int
    high_stress_days: int
    pct_stressful_balanced: int
    pct_stressful_high_stress: int
    significant: bool
    message: str

    @property
    def sample_size(self) -> int:
        return self.balanced_days + self.high_stress_days

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["sample_size"] = self.sample_size
        return result


def build_lagged_pairs(
    inputs: Sequence[Any],
    outputs: Sequence[DailyRecord],
    input_value: Callable[[Any], Optional[float]],
    output_value: Callable[[DailyRecord], Optional[float]],
    day_offset: int = 1,
) -> List[LaggedPair]:
    """
    Pair inputs with the outcome ``day_offset`` calendar days later.

    Args:
        inputs: Dated items (records or check-ins) supplying the factor
        outputs: Records supplying the outcome
        input_value: Extracts the factor value, None to skip
        output_value: Extracts the outcome value, None to skip
        day_offset: Calendar days between input and outcome

    Returns:
        Pairs in input date order
    """
    ensure_series(inputs, "inputs")
    ensure_series(outputs, "outputs")

    outputs_by_date = index_by_date(outputs)
    pairs: List[LaggedPair] = []
    for item in sorted(inputs, key=lambda x: x.date):
        x = input_value(item)
        if x is None:
            continue
        target = outputs_by_date.get(item.date + timedelta(days=day_offset))
        if target is None:
            continue
        y = output_value(target)
        if y is None:
            continue
        pairs.append(LaggedPair(item.date, x, y))
    return pairs


def analyze_lagged_pattern(
    pairs: Sequence[LaggedPair],
    is_group_a: Callable[[float], bool],
    min_pairs: Optional[int] = None,
    min_group_size: Optional[int] = None,
    min_impact: Optional[float] = None,
) -> Optional[LaggedComparison]:
    """
    Compare outcome means between two groups of lagged pairs.

    Args:
        pairs: Output of build_lagged_pairs
        is_group_a: Cutoff rule applied to the input value
        min_pairs: Minimum total pairs (default from settings)
        min_group_size: Minimum pairs in each group (default from settings)
        min_impact: Minimum |impact| percent to be significant

    Returns:
        LaggedComparison, or None when the evidence is too thin or the
        reference group mean is 0
    """
    settings = get_settings()
    min_pairs = settings.min_pairs if min_pairs is None else min_pairs
    min_group_size = settings.min_group_size if min_group_size is None else min_group_size
    min_impact = settings.next_day_min_impact if min_impact is None else min_impact

    if len(pairs) < min_pairs:
        logger.debug(f"Lagged pattern needs {min_pairs} pairs, got {len(pairs)}")
        return None

    group_a = [p.output_value for p in pairs if is_group_a(p.input_value)]
    group_b = [p.output_value for p in pairs if not is_group_a(p.input_value)]
    if len(group_a) < min_group_size or len(group_b) < min_group_size:
        logger.debug(f"Lagged groups too small: {len(group_a)} vs {len(group_b)}")
        return None

    mean_a = sum(group_a) / len(group_a)
    mean_b = sum(group_b) / len(group_b)
    if mean_b == 0:
        return None

    impact = round_half_up((mean_a - mean_b) / mean_b * 100)
    return LaggedComparison(
        sample_size=len(pairs),
        group_a_size=len(group_a),
        group_b_size=len(group_b),
        mean_a=mean_a,
        mean_b=mean_b,
        impact=impact,
        significant=abs(impact) >= min_impact,
    )


def lifestyle_confidence(sample_size: int, impact: float) -> float:
    """Heuristic confidence: grows with evidence and effect size, capped below 1."""
    cap = get_settings().confidence_cap
    return round_half_up(min(cap, 0.5 + sample_size / 50 + abs(impact) / 100), 2)


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def _next_day_pattern(
    records: Sequence[DailyRecord],
    pattern_type: str,
    factor: str,
    outcome: str,
    threshold: float,
    message: Callable[[int], str],
) -> Optional[NextDayPattern]:
    pairs = build_lagged_pairs(
        records,
        records,
        input_value=lambda r: getattr(r, factor),
        output_value=lambda r: getattr(r, outcome),
    )
    comparison = analyze_lagged_pattern(pairs, lambda v: v >= threshold)
    if comparison is None:
        return None
    return NextDayPattern(
        pattern_type=pattern_type,
        factor=factor,
        outcome=outcome,
        threshold=threshold,
        avg_above=round_half_up(comparison.mean_a),
        avg_below=round_half_up(comparison.mean_b),
        impact=comparison.impact,
        sample_size=comparison.sample_size,
        significant=comparison.significant,
        message=message(comparison.impact),
    )


def analyze_deep_sleep_efficiency(records: Sequence[DailyRecord], threshold: float = 50) -> Optional[NextDayPattern]:
    """Deep sleep of ``threshold``+ minutes vs the next night's efficiency."""
    return _next_day_pattern(
        records,
        "deep_sleep_efficiency",
        "deep_sleep",
        "sleep_efficiency",
        threshold,
        lambda impact: f"{_signed(impact)}% sleep efficiency after nights with {threshold:g}+ min deep sleep",
    )


def analyze_efficiency_hrv(records: Sequence[DailyRecord], threshold: float = 85) -> Optional[NextDayPattern]:
    """High sleep efficiency vs next-day HRV."""
    return _next_day_pattern(
        records,
        "efficiency_hrv",
        "sleep_efficiency",
        "hrv",
        threshold,
        lambda impact: f"{_signed(impact)}% HRV after nights with {threshold:g}%+ sleep efficiency",
    )


def analyze_sleep_duration(records: Sequence[DailyRecord], threshold: float = 420) -> Optional[NextDayPattern]:
    """Total sleep of ``threshold``+ minutes vs the next night's efficiency."""
    hours = threshold / 60
    return _next_day_pattern(
        records,
        "sleep_duration",
        "total_sleep",
        "sleep_efficiency",
        threshold,
        lambda impact: f"{_signed(impact)}% sleep efficiency on nights after {hours:g}+ hours of sleep",
    )


def recovery_ratio(record: DailyRecord) -> Optional[float]:
    """Recovery minutes per stress minute, smoothed so zero stress stays finite."""
    if record.stress_minutes is None or record.recovery_minutes is None:
        return None
    return record.recovery_minutes / (record.stress_minutes + 1)


def analyze_stress_balance_readiness(
    records: Sequence[DailyRecord],
    balanced_ratio: float = 0.8,
) -> Optional[NextDayPattern]:
    """Balanced stress/recovery days vs next-day readiness."""
    pairs = build_lagged_pairs(
        records,
        records,
        input_value=recovery_ratio,
        output_value=lambda r: r.readiness_score,
    )
    comparison = analyze_lagged_pattern(pairs, lambda ratio: ratio >= balanced_ratio)
    if comparison is None:
        return None
    return NextDayPattern(
        pattern_type="stress_readiness",
        factor="recovery_ratio",
        outcome="readiness_score",
        threshold=balanced_ratio,
        avg_above=round_half_up(comparison.mean_a),
        avg_below=round_half_up(comparison.mean_b),
        impact=comparison.impact,
        sample_size=comparison.sample_size,
        significant=comparison.significant,
        message=f"{_signed(comparison.impact)}% readiness the day after balancing stress with recovery",
    )


def analyze_stress_day_quality(
    records: Sequence[DailyRecord],
    balanced_ratio: float = 0.8,
    stressed_ratio: float = 0.5,
) -> Optional[StressDayQuality]:
    """
    Same-day variant: how often balanced vs high-stress days were labelled stressful.

    Days with a recovery ratio between the two cutoffs are ignored. Needs
    ``min_group_size`` days in each bucket; significant when high-stress days
    are labelled stressful at least ``stress_day_gap_points`` points more often.
    """
    ensure_series(records)
    settings = get_settings()

    balanced: List[DailyRecord] = []
    stressed: List[DailyRecord] = []
    for record in records:
        ratio = recovery_ratio(record)
        if ratio is None:
            continue
        if ratio >= balanced_ratio:
            balanced.append(record)
        elif ratio < stressed_ratio:
            stressed.append(record)

    if len(balanced) < settings.min_group_size or len(stressed) < settings.min_group_size:
        return None

    def pct_stressful(days: List[DailyRecord]) -> int:
        count = sum(1 for r in days if r.day_summary == DaySummary.STRESSFUL.value)
        return round_half_up(count / len(days) * 100)

    pct_balanced = pct_stressful(balanced)
    pct_stressed = pct_stressful(stressed)
    return StressDayQuality(
        balanced_days=len(balanced),
        high_stress_days=len(stressed),
        pct_stressful_balanced=pct_balanced,
        pct_stressful_high_stress=pct_stressed,
        significant=pct_stressed - pct_balanced >= settings.stress_day_gap_points,
        message=(
            f"Days with balanced recovery: {100 - pct_balanced}% felt good. "
            f"High-stress days: only {100 - pct_stressed}% felt good."
        ),
    )


def find_next_day_patterns(records: Sequence[DailyRecord]) -> List[NextDayPattern]:
    """
    Run every next-day analysis and keep the significant findings.

    Needs ``min_sleep_days`` records; returns an empty list otherwise.
    Sorted by absolute impact, largest first.
    """
    ensure_series(records)
    settings = get_settings()
    if len(records) < settings.min_sleep_days:
        logger.debug(f"Next-day patterns need {settings.min_sleep_days} days, got {len(records)}")
        return []

    candidates = [
        analyze_deep_sleep_efficiency(records),
        analyze_efficiency_hrv(records),
        analyze_stress_balance_readiness(records),
        analyze_sleep_duration(records),
    ]
    found = [p for p in candidates if p is not None and p.significant]
    return sorted(found, key=lambda p: abs(p.impact), reverse=True)
