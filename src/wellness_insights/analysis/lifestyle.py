"""
Lifestyle pattern mining.

Relates evening check-ins (caffeine, alcohol, meal timing, screens, stress)
to the following night's sleep and HRV, using the lagged-correlation engine.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_settings
from ..models.records import (
    Alcohol,
    Caffeine,
    DailyRecord,
    LifestyleCheckin,
    MealTiming,
    MorningReflection,
    ScreenTime,
    ensure_series,
    index_by_date,
)
from ..utils import mean, round_half_up
from .correlation import analyze_lagged_pattern, build_lagged_pairs, lifestyle_confidence

logger = logging.getLogger(__name__)


# Ordinal severity scales (0 = best)
CAFFEINE_VALUES = {
    Caffeine.NONE: 0,
    Caffeine.MORNING_ONLY: 1,
    Caffeine.AFTERNOON: 2,
    Caffeine.EVENING: 3,
}
ALCOHOL_VALUES = {
    Alcohol.NONE: 0,
    Alcohol.ONE_TWO: 1,
    Alcohol.THREE_PLUS: 2,
}
MEAL_TIME_VALUES = {
    MealTiming.THREE_PLUS: 0,
    MealTiming.ONE_TWO: 1,
    MealTiming.LESS_ONE: 2,
}
SCREEN_TIME_VALUES = {
    ScreenTime.NONE: 0,
    ScreenTime.UNDER_30: 1,
    ScreenTime.OVER_30: 2,
}


@dataclass(frozen=True)
class LifestyleFactor:
    """A check-in field with the severity at which it counts as a bad evening."""

    key: str
    name: str
    bad_threshold: int
    scale: Optional[Dict[Any, int]] = None  # None for continuous ratings

    def severity(self, checkin: LifestyleCheckin) -> Optional[float]:
        value = getattr(checkin, self.key)
        if value is None:
            return None
        if self.scale is None:
            return value
        return self.scale.get(value, 0)


@dataclass(frozen=True)
class OutcomeMetric:
    key: str
    name: str
    unit: str


FACTORS = [
    LifestyleFactor("caffeine", "Caffeine after 2pm", 2, CAFFEINE_VALUES),
    LifestyleFactor("alcohol", "Alcohol consumption", 1, ALCOHOL_VALUES),
    LifestyleFactor("last_meal_time", "Late meals", 1, MEAL_TIME_VALUES),
    LifestyleFactor("screen_time", "Screen time before bed", 1, SCREEN_TIME_VALUES),
    LifestyleFactor("stress", "High stress", 3),
]

METRICS = [
    OutcomeMetric("deep_sleep", "deep sleep", "min"),
    OutcomeMetric("rem_sleep", "REM sleep", "min"),
    OutcomeMetric("sleep_efficiency", "sleep efficiency", "%"),
    OutcomeMetric("hrv", "HRV", "ms"),
]


@dataclass(frozen=True)
class Pattern:
    """A significant lifestyle factor -> next-day metric finding."""

    factor_key: str
    metric_key: str
    impact_percent: int
    confidence: float
    sample_size: int
    human_text: str
    factor_name: str = ""
    metric_name: str = ""
    avg_bad: Optional[int] = None
    avg_good: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LifestyleAnalysis:
    """Result of a lifestyle analysis run."""

    has_enough_data: bool
    days_tracked: int
    days_needed: int = 0
    patterns: List[Pattern] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_enough_data": self.has_enough_data,
            "days_tracked": self.days_tracked,
            "days_needed": self.days_needed,
            "patterns": [p.to_dict() for p in self.patterns],
        }


@dataclass(frozen=True)
class SleepFactorInsight:
    """A habit present on most of the best nights."""

    factor: str
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CheckinTrends:
    """Last-week counts from evening check-ins."""

    avg_stress: Optional[float]
    caffeine_afternoon_count: int
    alcohol_count: int
    late_eating_count: int
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EnergyStats:
    """Morning energy ratings over a window.

    ``trend`` is the mean of the latest seven ratings minus the mean of the
    seven before them, None until each side has three ratings.
    """

    average: Optional[float]
    distribution: Dict[int, int]
    trend: Optional[float]
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Anomaly:
    """An out-of-pattern reading worth asking the user about."""

    metric: str
    value: float
    message: str
    reference: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def insight_text(factor_name: str, metric_name: str, impact: int) -> str:
    direction = "reduces" if impact < 0 else "increases"
    return f"{factor_name} {direction} your {metric_name} by {abs(impact)}%"


def pattern_impact(
    checkins: Sequence[LifestyleCheckin],
    records: Sequence[DailyRecord],
    factor: LifestyleFactor,
    metric: OutcomeMetric,
) -> Optional[Pattern]:
    """
    Evaluate one factor against one next-day metric.

    Returns a Pattern only when it is significant: enough pairs, enough bad
    and good evenings, and |impact| of at least ``lifestyle_min_impact``.
    """
    settings = get_settings()
    pairs = build_lagged_pairs(
        checkins,
        records,
        input_value=factor.severity,
        output_value=lambda r: getattr(r, metric.key),
    )
    comparison = analyze_lagged_pattern(
        pairs,
        lambda severity: severity >= factor.bad_threshold,
        min_impact=settings.lifestyle_min_impact,
    )
    if comparison is None or not comparison.significant:
        return None

    return Pattern(
        factor_key=factor.key,
        metric_key=metric.key,
        impact_percent=comparison.impact,
        confidence=lifestyle_confidence(comparison.sample_size, comparison.impact),
        sample_size=comparison.sample_size,
        human_text=insight_text(factor.name, metric.name, comparison.impact),
        factor_name=factor.name,
        metric_name=metric.name,
        avg_bad=round_half_up(comparison.mean_a),
        avg_good=round_half_up(comparison.mean_b),
    )


def analyze_lifestyle_patterns(
    checkins: Sequence[LifestyleCheckin],
    records: Sequence[DailyRecord],
    today: date,
    window_days: Optional[int] = None,
) -> LifestyleAnalysis:
    """
    Find lifestyle factors that move next-day sleep or HRV.

    Only check-ins from the last ``window_days`` days (up to ``today``) are
    used. With fewer than ``lifestyle_min_checkins`` of them the result says
    how many more are needed.

    Args:
        checkins: Evening check-ins
        records: Daily records with sleep and HRV
        today: Reference date for the window
        window_days: Window length (default from settings)

    Returns:
        LifestyleAnalysis with patterns sorted by absolute impact
    """
    ensure_series(checkins, "checkins")
    ensure_series(records)
    settings = get_settings()
    window = window_days or settings.lifestyle_window_days
    cutoff = today - timedelta(days=window)

    recent = [c for c in checkins if cutoff <= c.date <= today]
    if len(recent) < settings.lifestyle_min_checkins:
        logger.debug(f"Lifestyle analysis has {len(recent)} check-ins, needs {settings.lifestyle_min_checkins}")
        return LifestyleAnalysis(
            has_enough_data=False,
            days_tracked=len(recent),
            days_needed=settings.lifestyle_min_checkins - len(recent),
        )

    patterns = []
    for factor in FACTORS:
        for metric in METRICS:
            pattern = pattern_impact(recent, records, factor, metric)
            if pattern is not None:
                patterns.append(pattern)

    patterns.sort(key=lambda p: abs(p.impact_percent), reverse=True)
    logger.info(f"Lifestyle analysis found {len(patterns)} patterns over {len(recent)} check-ins")
    return LifestyleAnalysis(has_enough_data=True, days_tracked=len(recent), patterns=patterns)


# Habits checked on the evening before each of the best nights
GOOD_HABITS: List[tuple] = [
    ("No caffeine after noon", lambda c: c.caffeine in (Caffeine.NONE, Caffeine.MORNING_ONLY)),
    ("No alcohol", lambda c: c.alcohol == Alcohol.NONE),
    ("Dinner 3+ hours before bed", lambda c: c.last_meal_time == MealTiming.THREE_PLUS),
    ("No screens before bed", lambda c: c.screen_time == ScreenTime.NONE),
    ("Low stress (1-2)", lambda c: c.stress is not None and c.stress <= 2),
]


def best_sleep_factors(
    checkins: Sequence[LifestyleCheckin],
    records: Sequence[DailyRecord],
) -> Optional[List[SleepFactorInsight]]:
    """
    Habits shared by your best nights.

    Takes the top quarter (at least 3) of nights by sleep efficiency, looks
    up the check-in from the evening before each, and reports habits present
    on at least ``best_sleep_share`` of them.

    Returns:
        Insights sorted by share, or None without enough data
    """
    ensure_series(checkins, "checkins")
    ensure_series(records)
    settings = get_settings()
    if len(records) < settings.best_sleep_min_nights or len(checkins) < settings.best_sleep_min_nights:
        return None

    nights = sorted(
        (r for r in records if r.sleep_efficiency is not None),
        key=lambda r: (-r.sleep_efficiency, r.date),
    )
    best = nights[: max(3, len(nights) // 4)]

    by_date = index_by_date(checkins)
    evenings = [by_date[n.date - timedelta(days=1)] for n in best if n.date - timedelta(days=1) in by_date]
    if len(evenings) < 3:
        return None

    insights = []
    for name, has_habit in GOOD_HABITS:
        share = sum(1 for c in evenings if has_habit(c)) / len(evenings)
        if share >= settings.best_sleep_share:
            insights.append(SleepFactorInsight(name, round_half_up(share * 100)))
    return sorted(insights, key=lambda i: i.percentage, reverse=True)


def checkin_trends(checkins: Sequence[LifestyleCheckin], today: date, days: int = 7) -> Optional[CheckinTrends]:
    """Counts of risky evenings over the last ``days`` days. Needs 3 check-ins."""
    ensure_series(checkins, "checkins")
    cutoff = today - timedelta(days=days)
    recent = [c for c in checkins if cutoff <= c.date <= today]
    if len(recent) < 3:
        return None

    avg_stress = mean(c.stress for c in recent)
    return CheckinTrends(
        avg_stress=round_half_up(avg_stress, 1) if avg_stress is not None else None,
        caffeine_afternoon_count=sum(
            1 for c in recent if c.caffeine in (Caffeine.AFTERNOON, Caffeine.EVENING)
        ),
        alcohol_count=sum(1 for c in recent if c.alcohol not in (None, Alcohol.NONE)),
        late_eating_count=sum(1 for c in recent if c.last_meal_time == MealTiming.LESS_ONE),
        days=len(recent),
    )


def energy_stats(reflections: Sequence[MorningReflection], today: date, days: int = 30) -> EnergyStats:
    """Average, 1-5 distribution and week-over-week trend of morning energy."""
    ensure_series(reflections, "reflections")
    cutoff = today - timedelta(days=days)
    rated = sorted(
        (r for r in reflections if cutoff <= r.date <= today and r.energy is not None),
        key=lambda r: r.date,
        reverse=True,
    )
    distribution = {level: 0 for level in range(1, 6)}
    if not rated:
        return EnergyStats(average=None, distribution=distribution, trend=None, days=0)

    for r in rated:
        distribution[r.energy] += 1

    latest, earlier = rated[:7], rated[7:14]
    trend = None
    if len(latest) >= 3 and len(earlier) >= 3:
        trend = round_half_up(
            sum(r.energy for r in latest) / len(latest) - sum(r.energy for r in earlier) / len(earlier),
            1,
        )

    return EnergyStats(
        average=round_half_up(sum(r.energy for r in rated) / len(rated), 1),
        distribution=distribution,
        trend=trend,
        days=len(rated),
    )


def detect_anomalies(
    latest: DailyRecord,
    avg_deep_sleep: Optional[float] = None,
    hrv_baseline: Optional[float] = None,
) -> List[Anomaly]:
    """Readings on the latest day that warrant a "what happened?" prompt."""
    anomalies = []

    deep = latest.deep_sleep
    if deep is not None and avg_deep_sleep is not None and deep < 60 and deep < avg_deep_sleep * 0.7:
        anomalies.append(Anomaly(
            metric="deep_sleep",
            value=deep,
            reference=avg_deep_sleep,
            message=f"Your deep sleep was low ({deep:g} min). What might have caused this?",
        ))

    hrv = latest.hrv
    if hrv is not None and hrv_baseline and hrv < hrv_baseline * 0.8:
        anomalies.append(Anomaly(
            metric="hrv",
            value=hrv,
            reference=hrv_baseline,
            message=f"Your HRV is below baseline ({hrv:g} vs {hrv_baseline:g} ms). What might have caused this?",
        ))

    efficiency = latest.sleep_efficiency
    if efficiency is not None and efficiency < 80:
        anomalies.append(Anomaly(
            metric="sleep_efficiency",
            value=efficiency,
            message=f"Your sleep efficiency was low ({efficiency:g}%). What might have caused this?",
        ))

    return anomalies
