"""Flattened per-day inputs for the readiness and insight composer."""

import datetime as dt
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional, Sequence

from ..config import get_settings
from ..models.goals import ACTIVE_DAY_STEPS, WEEKLY_WORKOUTS, Goal
from ..models.records import DailyRecord, ensure_series, sort_records
from ..utils import mean, round_half_up
from .aggregation import week_start
from .goals import calculate_hrv_baseline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySnapshot:
    """
    Everything the composer looks at for one day.

    ``None`` means unknown. Rules that depend on an unknown value are
    skipped rather than evaluated against zero.
    """

    date: Optional[dt.date] = None
    hrv: Optional[float] = None
    hrv_baseline: Optional[float] = None
    readiness_score: Optional[float] = None
    sleep_score: Optional[float] = None
    deep_sleep: Optional[float] = None
    rem_sleep: Optional[float] = None
    sleep_efficiency: Optional[float] = None
    stress_minutes: Optional[float] = None
    recovery_minutes: Optional[float] = None
    day_summary: Optional[str] = None
    steps: Optional[int] = None
    avg_deep_sleep_7d: Optional[float] = None
    avg_steps_7d: Optional[float] = None
    avg_hrv_7d: Optional[float] = None
    days_since_workout: Optional[int] = None
    workouts_this_week: int = 0
    active_days: int = 0
    step_goal: int = 10000
    workout_goal: int = 4

    @property
    def hrv_percentage(self) -> Optional[float]:
        """Latest HRV as a percent of baseline, None when either is unknown."""
        if self.hrv is None or not self.hrv_baseline:
            return None
        return self.hrv / self.hrv_baseline * 100

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["date"] = self.date.isoformat() if self.date else None
        return result


def resolve_hrv_baseline(
    records: Sequence[DailyRecord],
    goals: Optional[Mapping[str, Goal]],
    today: dt.date,
    window_days: int = 30,
) -> float:
    """
    HRV reference point.

    A fixed ``hrvBaseline`` goal wins. An ``auto_baseline`` goal, or no
    goal at all, tracks 90% of the mean HRV over the last ``window_days``
    days; with too few readings that falls back to the goal target, or to
    the default baseline when there is no goal.
    """
    goal = (goals or {}).get("hrvBaseline")
    if goal is not None and not goal.enabled:
        goal = None
    if goal is not None and goal.target and not goal.auto_baseline:
        return goal.target

    cutoff = today - dt.timedelta(days=window_days - 1)
    readings = [r.hrv for r in records if cutoff <= r.date <= today]
    fallback = goal.target if goal is not None and goal.target else None
    return calculate_hrv_baseline(readings, default=fallback)


def build_snapshot(
    records: Sequence[DailyRecord],
    goals: Optional[Mapping[str, Goal]] = None,
    today: Optional[dt.date] = None,
) -> DailySnapshot:
    """
    Derive a DailySnapshot from a record series.

    Args:
        records: Daily records, any order
        goals: Goal table; step, workout and HRV goals are read from it
        today: Reference date (default: the most recent record's date)

    Returns:
        DailySnapshot; an empty series yields a snapshot of unknowns
    """
    ensure_series(records)
    settings = get_settings()
    goals = goals or {}

    step_goal = goals.get("dailySteps")
    workout_goal = goals.get(WEEKLY_WORKOUTS)
    targets = {
        "step_goal": int(step_goal.target) if step_goal and step_goal.target else settings.default_step_goal,
        "workout_goal": int(workout_goal.target) if workout_goal and workout_goal.target else 4,
    }

    ordered = sort_records(records)
    if today is None:
        if not ordered:
            return DailySnapshot(hrv_baseline=settings.default_hrv_baseline, **targets)
        today = ordered[-1].date

    history = [r for r in ordered if r.date <= today]
    if not history:
        logger.debug(f"No records on or before {today.isoformat()}")
        return DailySnapshot(date=today, hrv_baseline=settings.default_hrv_baseline, **targets)

    latest = history[-1]
    last_week = [r for r in history if r.date > today - dt.timedelta(days=7)]
    this_week = [r for r in history if r.date >= week_start(today)]

    workout_days = [r.date for r in history if r.workout]
    if workout_days:
        days_since_workout = (today - workout_days[-1]).days
    else:
        days_since_workout = len(history)

    def avg7(field: str) -> Optional[float]:
        value = mean(getattr(r, field) for r in last_week)
        return round_half_up(value, 1) if value is not None else None

    return DailySnapshot(
        date=today,
        hrv=latest.hrv,
        hrv_baseline=resolve_hrv_baseline(history, goals, today),
        readiness_score=latest.readiness_score,
        sleep_score=latest.sleep_score,
        deep_sleep=latest.deep_sleep,
        rem_sleep=latest.rem_sleep,
        sleep_efficiency=latest.sleep_efficiency,
        stress_minutes=latest.stress_minutes,
        recovery_minutes=latest.recovery_minutes,
        day_summary=latest.day_summary,
        steps=latest.steps,
        avg_deep_sleep_7d=avg7("deep_sleep"),
        avg_steps_7d=avg7("steps"),
        avg_hrv_7d=avg7("hrv"),
        days_since_workout=days_since_workout,
        workouts_this_week=sum(1 for r in this_week if r.workout),
        active_days=sum(1 for r in this_week if r.steps is not None and r.steps >= ACTIVE_DAY_STEPS),
        **targets,
    )
