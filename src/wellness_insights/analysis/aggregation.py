"""
Aggregator

Rolling averages, weekly/monthly bucketing, period comparison and trend
classification over daily records. Missing values are excluded, never
treated as zero.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config import get_settings
from ..exceptions import ValidationError
from ..models.records import (
    DailyRecord,
    canonical_metric,
    ensure_series,
    metric_value,
    resolve_metric,
    sort_records,
)
from ..utils import mean, present, round_half_up

logger = logging.getLogger(__name__)


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT = "insufficient"


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# Time range -> (granularity, days covered, label). None covers everything.
AGGREGATION_STRATEGY: Dict[str, tuple] = {
    "7d": (Granularity.DAY, 7, "7 Days"),
    "30d": (Granularity.DAY, 30, "30 Days"),
    "90d": (Granularity.WEEK, 90, "90 Days"),
    "180d": (Granularity.WEEK, 180, "6 Months"),
    "1y": (Granularity.MONTH, 365, "1 Year"),
    "all": (Granularity.MONTH, None, "All Time"),
}

COMPARISON_LABELS: Dict[str, tuple] = {
    "7d": ("This Week", "Last Week"),
    "30d": ("This Month", "Last Month"),
    "90d": ("This Quarter", "Last Quarter"),
    "180d": ("Last 6 Months", "Previous 6 Months"),
    "1y": ("This Year", "Last Year"),
}


@dataclass(frozen=True)
class PeriodBucket:
    """One aggregated period. ``mean`` is None when no value contributed."""

    period_key: str
    period_start: date
    label: str
    mean: Optional[float]
    total: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_key": self.period_key,
            "period_start": self.period_start.isoformat(),
            "label": self.label,
            "mean": self.mean,
            "total": self.total,
            "count": self.count,
        }


@dataclass(frozen=True)
class MetricComparison:
    """Current vs previous period for one metric."""

    metric: str
    current: float
    previous: float
    delta: float
    percent_change: int
    improved: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrendResult:
    """Recent window vs the window before it."""

    direction: TrendDirection
    change_percent: int
    recent_avg: Optional[float]
    previous_avg: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "change_percent": self.change_percent,
            "recent_avg": self.recent_avg,
            "previous_avg": self.previous_avg,
        }


@dataclass(frozen=True)
class PeriodSummary:
    """Headline numbers for a block of days."""

    avg_steps: Optional[int]
    avg_sleep_score: Optional[float]
    avg_readiness: Optional[float]
    avg_hrv: Optional[float]
    avg_deep_sleep: Optional[float]
    avg_resting_hr: Optional[float]
    total_workouts: int
    total_steps: int
    days_tracked: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def rolling_average(values: Sequence[Optional[float]], window_size: int) -> List[Optional[float]]:
    """
    Trailing rolling mean, one output per input.

    Each output averages the present values among the last ``window_size``
    inputs ending at that index. A window with no present values yields None.

    Args:
        values: Chronological values, None for missing days
        window_size: Window length (>= 1)

    Returns:
        List of the same length, rounded to one decimal
    """
    ensure_series(values, "values")
    if window_size < 1:
        raise ValidationError("window_size must be at least 1", field="window_size")

    result: List[Optional[float]] = []
    for i in range(len(values)):
        window = present(values[max(0, i - window_size + 1): i + 1])
        if window:
            result.append(round_half_up(sum(window) / len(window), 1))
        else:
            result.append(None)
    return result


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def _bucket(
    records: Sequence[DailyRecord],
    key: str,
    start_of,
    period_key_of,
    label_of,
) -> List[PeriodBucket]:
    field = resolve_metric(key)
    groups: Dict[date, List[Optional[float]]] = {}
    for record in records:
        groups.setdefault(start_of(record.date), []).append(metric_value(record, field))

    buckets = []
    for start in sorted(groups):
        observed = present(groups[start])
        avg = mean(observed)
        buckets.append(
            PeriodBucket(
                period_key=period_key_of(start),
                period_start=start,
                label=label_of(start),
                mean=round_half_up(avg, 1) if avg is not None else None,
                total=sum(observed),
                count=len(observed),
            )
        )
    return buckets


def aggregate_to_daily(records: Sequence[DailyRecord], key: str) -> List[PeriodBucket]:
    """One bucket per tracked day."""
    ensure_series(records)
    return _bucket(
        records,
        key,
        start_of=lambda d: d,
        period_key_of=lambda d: d.isoformat(),
        label_of=lambda d: f"{d:%b} {d.day}",
    )


def aggregate_to_weekly(records: Sequence[DailyRecord], key: str) -> List[PeriodBucket]:
    """Group by Monday week start. Weeks with no values are kept with mean None."""
    ensure_series(records)
    return _bucket(
        records,
        key,
        start_of=week_start,
        period_key_of=lambda d: d.isoformat(),
        label_of=lambda d: f"{d:%b} {d.day}",
    )


def aggregate_to_monthly(records: Sequence[DailyRecord], key: str) -> List[PeriodBucket]:
    """Group by calendar month. Months with no values are kept with mean None."""
    ensure_series(records)
    return _bucket(
        records,
        key,
        start_of=lambda d: d.replace(day=1),
        period_key_of=lambda d: f"{d.year:04d}-{d.month:02d}",
        label_of=lambda d: f"{d:%b %y}",
    )


def aggregate_for_range(
    records: Sequence[DailyRecord],
    key: str,
    range_key: str,
) -> List[PeriodBucket]:
    """
    Aggregate at the granularity suited to a time range.

    The range is counted back from the most recent record, not from the
    wall clock, so the result depends only on the input.
    """
    ensure_series(records)
    if range_key not in AGGREGATION_STRATEGY:
        raise ValidationError(
            f"Unknown range '{range_key}'",
            field="range_key",
            details={"allowed": list(AGGREGATION_STRATEGY)},
        )
    granularity, days, _ = AGGREGATION_STRATEGY[range_key]

    selected = sort_records(records)
    if days is not None and selected:
        cutoff = selected[-1].date - timedelta(days=days - 1)
        selected = [r for r in selected if r.date >= cutoff]

    if granularity == Granularity.DAY:
        return aggregate_to_daily(selected, key)
    if granularity == Granularity.WEEK:
        return aggregate_to_weekly(selected, key)
    return aggregate_to_monthly(selected, key)


def comparison_labels(range_key: str) -> tuple:
    """(current, previous) display labels for a range."""
    return COMPARISON_LABELS.get(range_key, ("Current", "Previous"))


def _lower_is_better_set(extra: Optional[Iterable[str]]) -> set:
    keys = list(get_settings().lower_is_better)
    if extra:
        keys.extend(extra)
    return {canonical_metric(k) for k in keys}


def is_improvement(metric: str, delta: float, lower_is_better: Optional[Iterable[str]] = None) -> bool:
    """Whether a change is an improvement for this metric. No change is never one."""
    if delta == 0:
        return False
    if canonical_metric(metric) in _lower_is_better_set(lower_is_better):
        return delta < 0
    return delta > 0


def compare_periods(
    current: Sequence[DailyRecord],
    previous: Sequence[DailyRecord],
    metric_keys: Iterable[str],
    lower_is_better: Optional[Iterable[str]] = None,
) -> Dict[str, MetricComparison]:
    """
    Compare metric means between two periods.

    An empty period has mean 0 (not None) so the percent math stays defined;
    percent change is 0 when the previous mean is 0.

    Args:
        current: Records in the current period
        previous: Records in the previous period
        metric_keys: Metrics to compare (camelCase or snake_case)
        lower_is_better: Extra metrics where a decrease is the improvement

    Returns:
        Dict of metric key -> MetricComparison
    """
    ensure_series(current, "current")
    ensure_series(previous, "previous")

    lower = _lower_is_better_set(lower_is_better)
    results: Dict[str, MetricComparison] = {}
    for key in metric_keys:
        field = resolve_metric(key)
        current_mean = mean(metric_value(r, field) for r in current) or 0.0
        previous_mean = mean(metric_value(r, field) for r in previous) or 0.0

        difference = current_mean - previous_mean
        if previous_mean == 0:
            percent_change = 0
        else:
            percent_change = round_half_up(difference / previous_mean * 100)

        if difference == 0:
            improved = False
        elif field in lower:
            improved = difference < 0
        else:
            improved = difference > 0

        results[key] = MetricComparison(
            metric=key,
            current=round_half_up(current_mean, 1),
            previous=round_half_up(previous_mean, 1),
            delta=round_half_up(difference, 1),
            percent_change=percent_change,
            improved=improved,
        )
    return results


def calculate_trend(values: Sequence[Optional[float]], window_size: Optional[int] = None) -> TrendResult:
    """
    Classify the direction of a series.

    Compares the mean of the last ``window_size`` present values with the
    mean of the ``window_size`` present values before them. Needs
    ``2 * window_size`` present values, otherwise the direction is
    "insufficient".
    """
    ensure_series(values, "values")
    settings = get_settings()
    window = settings.trend_window if window_size is None else window_size
    if window < 1:
        raise ValidationError("window_size must be at least 1", field="window_size")
    observed = present(values)

    if len(observed) < window * 2:
        logger.debug(f"Trend needs {window * 2} values, got {len(observed)}")
        return TrendResult(TrendDirection.INSUFFICIENT, 0, None, None)

    recent_avg = sum(observed[-window:]) / window
    previous_avg = sum(observed[-window * 2:-window]) / window

    if previous_avg == 0:
        return TrendResult(
            TrendDirection.STABLE,
            0,
            round_half_up(recent_avg, 1),
            round_half_up(previous_avg, 1),
        )

    change = (recent_avg - previous_avg) / previous_avg * 100
    deadband = settings.trend_deadband_pct
    if change > deadband:
        direction = TrendDirection.IMPROVING
    elif change < -deadband:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return TrendResult(
        direction,
        round_half_up(change),
        round_half_up(recent_avg, 1),
        round_half_up(previous_avg, 1),
    )


def calculate_metric_trend(
    records: Sequence[DailyRecord],
    key: str,
    window_size: Optional[int] = None,
) -> TrendResult:
    """calculate_trend over one metric of a record series, in date order."""
    ensure_series(records)
    field = resolve_metric(key)
    return calculate_trend([metric_value(r, field) for r in sort_records(records)], window_size)


def summarize_period(records: Sequence[DailyRecord]) -> PeriodSummary:
    """Averages and totals for a block of days. Averages are None without data."""
    ensure_series(records)

    def avg(field: str, digits: int = 1):
        value = mean(getattr(r, field) for r in records)
        return round_half_up(value, digits) if value is not None else None

    return PeriodSummary(
        avg_steps=avg("steps", 0),
        avg_sleep_score=avg("sleep_score"),
        avg_readiness=avg("readiness_score"),
        avg_hrv=avg("hrv"),
        avg_deep_sleep=avg("deep_sleep"),
        avg_resting_hr=avg("resting_hr"),
        total_workouts=sum(1 for r in records if r.workout),
        total_steps=sum(r.steps for r in records if r.steps is not None),
        days_tracked=len(records),
    )


def consistency_percent(
    records: Sequence[DailyRecord],
    threshold: Optional[int] = None,
    days: int = 7,
) -> int:
    """Share of the last ``days`` records whose steps met ``threshold``, as a percent."""
    ensure_series(records)
    if days < 1:
        raise ValidationError("days must be at least 1", field="days")
    goal = threshold if threshold is not None else get_settings().default_step_goal

    recent = sort_records(records)[-days:]
    hits = sum(1 for r in recent if r.steps is not None and r.steps >= goal)
    return round_half_up(hits / days * 100)
