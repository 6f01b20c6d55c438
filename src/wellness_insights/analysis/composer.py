"""
Pattern/Insight Composer

Turns a day's snapshot into the composed daily insight. The headline comes
from a fixed-priority rule cascade where the first matching rule wins;
later matches are kept as secondary recommendations. The composite
readiness score is computed separately by the readiness module.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..models.goals import Goal
from ..models.records import DailyRecord
from ..utils import round_half_up
from .readiness import (
    FactorStatus,
    ReadinessAssessment,
    WorkoutRecommendation,
    assess_readiness,
    recommend_workout,
    recovery_factor_breakdown,
    workout_suggestion,
)
from .snapshot import DailySnapshot, build_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriorityAction:
    """One recommendation produced by a cascade rule."""

    type: str
    title: str
    action: str
    reason: str
    severity: str  # 'critical', 'warning', 'info', 'ok'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeeklySummary:
    """This week at a glance."""

    workouts: int
    workout_goal: int
    avg_steps: Optional[float]
    avg_hrv: Optional[float]
    avg_deep_sleep: Optional[float]
    active_days: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ComposedInsight:
    """The daily insight handed to the presentation layer."""

    date: Optional[date]
    readiness_assessment: ReadinessAssessment
    top_priority_action: PriorityAction
    workout_recommendation: WorkoutRecommendation
    weekly_summary: WeeklySummary
    recovery_factor_breakdown: Dict[str, FactorStatus]
    secondary_actions: List[PriorityAction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat() if self.date else None,
            "readiness_assessment": self.readiness_assessment.to_dict(),
            "top_priority_action": self.top_priority_action.to_dict(),
            "workout_recommendation": self.workout_recommendation.to_dict(),
            "weekly_summary": self.weekly_summary.to_dict(),
            "recovery_factor_breakdown": {
                key: status.to_dict() for key, status in self.recovery_factor_breakdown.items()
            },
            "secondary_actions": [a.to_dict() for a in self.secondary_actions],
        }


# ---------------------------------------------------------------------------
# Cascade rules. Each returns None when it does not apply or when its
# inputs are unknown.
# ---------------------------------------------------------------------------

def _critical_recovery(s: DailySnapshot) -> Optional[PriorityAction]:
    pct = s.hrv_percentage
    hrv_crash = pct is not None and pct < 70
    sleep_low = s.sleep_score is not None and s.sleep_score < 50
    readiness_low = s.readiness_score is not None and s.readiness_score < 50
    if not (hrv_crash or sleep_low or readiness_low):
        return None

    if hrv_crash:
        reason = f"HRV is {round_half_up(pct)}% of your baseline - your body is stressed."
    else:
        reason = f"Your {'sleep' if sleep_low else 'readiness'} score is critically low."
    return PriorityAction(
        type="critical",
        title="Recovery Day",
        action="Skip intense exercise. Prioritize rest, hydration, and early bedtime.",
        reason=reason,
        severity="critical",
    )


def _hrv_below_baseline(s: DailySnapshot) -> Optional[PriorityAction]:
    pct = s.hrv_percentage
    if pct is None or not (70 <= pct < 85):
        return None
    return PriorityAction(
        type="hrv_warning",
        title="HRV Below Baseline",
        action="Moderate activity only. Your nervous system needs lighter stress today.",
        reason=f"HRV is {s.hrv:g}ms ({round_half_up(pct)}% of your {s.hrv_baseline:g}ms baseline).",
        severity="warning",
    )


def _deep_sleep_deficit(s: DailySnapshot) -> Optional[PriorityAction]:
    avg = s.avg_deep_sleep_7d
    if avg is None or not (0 < avg < 60):
        return None
    return PriorityAction(
        type="deep_sleep",
        title="Deep Sleep Deficit",
        action="No alcohol, no late meals, cool bedroom. Consider magnesium before bed.",
        reason=f"Averaging {round_half_up(avg)} min deep sleep (need 90+ for optimal recovery).",
        severity="warning",
    )


def _high_stress(s: DailySnapshot) -> Optional[PriorityAction]:
    if s.stress_minutes is None or s.recovery_minutes is None:
        return None
    if not (s.stress_minutes > 300 and s.recovery_minutes < 120):
        return None
    return PriorityAction(
        type="stress",
        title="High Stress Load",
        action="Include 20+ minutes of relaxation today. Walk, breathe, or meditate.",
        reason=(
            f"{round_half_up(s.stress_minutes / 60)}h stress vs "
            f"{round_half_up(s.recovery_minutes / 60)}h recovery."
        ),
        severity="warning",
    )


def _workout_deficit(s: DailySnapshot) -> Optional[PriorityAction]:
    if s.days_since_workout is None or s.days_since_workout < 3:
        return None
    return PriorityAction(
        type="workout",
        title=f"{s.days_since_workout} Days Since Workout",
        action=workout_suggestion(s.readiness_score, s.hrv_percentage),
        reason="Consistency matters more than intensity. Get moving today.",
        severity="info",
    )


def _sleep_debt(s: DailySnapshot) -> Optional[PriorityAction]:
    if s.sleep_score is None or not (0 < s.sleep_score < 70):
        return None
    return PriorityAction(
        type="sleep",
        title="Sleep Quality Low",
        action="Target 8+ hours tonight. No screens after 9pm.",
        reason=f"Your sleep score is {s.sleep_score:g}. Below 70 impacts HRV and recovery.",
        severity="info",
    )


def _step_deficit(s: DailySnapshot) -> Optional[PriorityAction]:
    avg = s.avg_steps_7d
    if avg is None or not (0 < avg < s.step_goal * 0.5):
        return None
    return PriorityAction(
        type="steps",
        title="Movement Deficit",
        action=f"Aim for {s.step_goal:,} steps today. Take a walk after each meal.",
        reason=f"Averaging {round_half_up(avg):,} steps - well below your goal.",
        severity="info",
    )


def _maintenance(s: DailySnapshot) -> PriorityAction:
    pct = s.hrv_percentage
    if pct is not None:
        reason = f"HRV at {round_half_up(pct)}% of baseline. All systems go."
    else:
        reason = "No warning signs in your recent data."
    return PriorityAction(
        type="maintenance",
        title="On Track",
        action="Maintain your routine. Your recovery looks solid.",
        reason=reason,
        severity="ok",
    )


PRIORITY_RULES: List[Callable[[DailySnapshot], Optional[PriorityAction]]] = [
    _critical_recovery,
    _hrv_below_baseline,
    _deep_sleep_deficit,
    _high_stress,
    _workout_deficit,
    _sleep_debt,
    _step_deficit,
]


def collect_recommendations(snapshot: DailySnapshot) -> List[PriorityAction]:
    """Every matching rule in priority order; the all-clear only when nothing matched."""
    matches = [action for action in (rule(snapshot) for rule in PRIORITY_RULES) if action]
    return matches or [_maintenance(snapshot)]


def find_top_priority(snapshot: DailySnapshot) -> PriorityAction:
    """The single most urgent action: first rule in the cascade that matches."""
    for rule in PRIORITY_RULES:
        action = rule(snapshot)
        if action is not None:
            return action
    return _maintenance(snapshot)


def summarize_week(snapshot: DailySnapshot) -> WeeklySummary:
    return WeeklySummary(
        workouts=snapshot.workouts_this_week,
        workout_goal=snapshot.workout_goal,
        avg_steps=snapshot.avg_steps_7d,
        avg_hrv=snapshot.avg_hrv_7d,
        avg_deep_sleep=snapshot.avg_deep_sleep_7d,
        active_days=snapshot.active_days,
    )


def compose_insight(snapshot: DailySnapshot) -> ComposedInsight:
    """
    Assemble the daily insight from a snapshot.

    Each part degrades on its own when inputs are missing; this never
    raises for absent optional data.
    """
    recommendations = collect_recommendations(snapshot)
    return ComposedInsight(
        date=snapshot.date,
        readiness_assessment=assess_readiness(snapshot),
        top_priority_action=recommendations[0],
        workout_recommendation=recommend_workout(snapshot),
        weekly_summary=summarize_week(snapshot),
        recovery_factor_breakdown=recovery_factor_breakdown(snapshot),
        secondary_actions=recommendations[1:],
    )


def compose_daily_insight(
    records: Sequence[DailyRecord],
    goals: Optional[Mapping[str, Goal]] = None,
    today: Optional[date] = None,
) -> ComposedInsight:
    """Build the snapshot for ``today`` from records and compose the insight."""
    snapshot = build_snapshot(records, goals, today)
    insight = compose_insight(snapshot)
    logger.debug(
        f"Composed insight for {snapshot.date}: {insight.top_priority_action.type}, "
        f"{len(insight.secondary_actions)} secondary"
    )
    return insight
