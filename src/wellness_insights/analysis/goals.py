"""
Goal progress and goal streaks.

Goals are owned by the caller; this module only turns observed values into
percent-of-target and achieved flags.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import get_settings
from ..models.goals import ACTIVE_DAY_STEPS, ACTIVE_DAYS, DEFAULT_GOALS, WEEKLY_WORKOUTS, Goal
from ..models.records import DailyRecord, ensure_series, sort_records
from ..utils import mean, present, round_half_up
from .aggregation import week_start
from .records import Streak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoalProgress:
    """Progress toward one goal for one value."""

    metric_key: str
    current: float
    target: float
    percentage: int
    achieved: bool
    inverted: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GoalSummary:
    """How many enabled goals were met on a day."""

    achieved: int = 0
    total: int = 0
    percentage: int = 0
    by_category: Dict[str, Dict[str, int]] = field(default_factory=dict)
    details: List[GoalProgress] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "achieved": self.achieved,
            "total": self.total,
            "percentage": self.percentage,
            "by_category": self.by_category,
            "details": [d.to_dict() for d in self.details],
        }


@dataclass(frozen=True)
class GoalSuggestion:
    """A proposed change to a goal. Priority 1 is most urgent."""

    metric_key: str
    action: str  # 'update' or 'enable'
    text: str
    priority: int
    current_target: Optional[float] = None
    new_target: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def goal_progress(goal: Goal, value: Optional[float]) -> Optional[GoalProgress]:
    """
    Percent-of-target for a value.

    Normal goals: percentage = value / target, achieved when value >= target.
    Inverted goals (lower is better): percentage = 100 + (target - value) / target,
    achieved when value <= target. Percentage never drops below 0.

    Returns:
        GoalProgress, or None when the goal is disabled or the value is missing
    """
    if not goal.enabled or value is None:
        return None

    target = goal.target
    if goal.inverted:
        achieved = value <= target
        if target == 0:
            percentage = 100 if achieved else 0
        else:
            percentage = round_half_up((target - value) / target * 100 + 100)
    else:
        achieved = value >= target
        if target == 0:
            percentage = 100
        else:
            percentage = round_half_up(value / target * 100)

    return GoalProgress(
        metric_key=goal.metric_key,
        current=value,
        target=target,
        percentage=max(0, percentage),
        achieved=achieved,
        inverted=goal.inverted,
    )


def _daily_sources(goals: Optional[Mapping[str, Goal]]) -> Dict[str, str]:
    table = goals if goals is not None else DEFAULT_GOALS
    return {key: goal.source for key, goal in table.items() if goal.source}


def goal_values_for_day(
    records: Sequence[DailyRecord],
    day: date,
    goals: Optional[Mapping[str, Goal]] = None,
) -> Dict[str, float]:
    """
    Observed values for each goal key on one day.

    Daily goals read their ``source`` field from that day's record; weekly
    goals count the week (Monday through ``day``).
    """
    ensure_series(records)
    values: Dict[str, float] = {}
    by_date = {r.date: r for r in records}
    record = by_date.get(day)
    if record is not None:
        for key, source in _daily_sources(goals).items():
            value = getattr(record, source)
            if value is not None:
                values[key] = value

    start = week_start(day)
    week = [r for r in records if start <= r.date <= day]
    if week:
        values[WEEKLY_WORKOUTS] = sum(1 for r in week if r.workout)
        values[ACTIVE_DAYS] = sum(1 for r in week if r.steps is not None and r.steps >= ACTIVE_DAY_STEPS)
    return values


def daily_goal_summary(goals: Mapping[str, Goal], values: Mapping[str, float]) -> GoalSummary:
    """Count achieved goals overall and per category. Goals without a value are skipped."""
    summary = GoalSummary()
    for key, goal in goals.items():
        progress = goal_progress(goal, values.get(key))
        if progress is None:
            continue
        summary.total += 1
        category = goal.category.value if goal.category else "other"
        bucket = summary.by_category.setdefault(category, {"achieved": 0, "total": 0})
        bucket["total"] += 1
        if progress.achieved:
            summary.achieved += 1
            bucket["achieved"] += 1
        summary.details.append(progress)

    if summary.total:
        summary.percentage = round_half_up(summary.achieved / summary.total * 100)
    return summary


def goal_streak(history: Mapping[date, Mapping[str, bool]], metric_key: str) -> Streak:
    """
    Threshold streak over a dated achievement history.

    ``history`` maps date -> {goal key: achieved}. Current counts back from
    the most recent entry until the goal was missed (or not recorded);
    longest scans forward.
    """
    days = sorted(history)
    current = 0
    for day in reversed(days):
        if not history[day].get(metric_key):
            break
        current += 1

    longest = 0
    longest_start: Optional[date] = None
    run = 0
    run_start: Optional[date] = None
    for day in days:
        if history[day].get(metric_key):
            if run == 0:
                run_start = day
            run += 1
            if run > longest:
                longest, longest_start = run, run_start
        else:
            run = 0
    return Streak(current=current, longest=longest, start_date=longest_start)


def achievement_history(
    goals: Mapping[str, Goal],
    records: Sequence[DailyRecord],
) -> Dict[date, Dict[str, bool]]:
    """Build date -> {goal key: achieved} from a record series."""
    ensure_series(records)
    history: Dict[date, Dict[str, bool]] = {}
    for record in sort_records(records):
        values = goal_values_for_day(records, record.date, goals)
        day: Dict[str, bool] = {}
        for key, goal in goals.items():
            progress = goal_progress(goal, values.get(key))
            if progress is not None:
                day[key] = progress.achieved
        history[record.date] = day
    return history


def calculate_hrv_baseline(values: Sequence[Optional[float]], default: Optional[float] = None) -> float:
    """
    Personal HRV baseline: 90% of the mean of recent readings.

    Needs at least ``hrv_baseline_min_days`` positive readings, otherwise
    returns the default baseline.
    """
    settings = get_settings()
    fallback = default if default is not None else settings.default_hrv_baseline
    readings = [v for v in present(values) if v > 0]
    if len(readings) < settings.hrv_baseline_min_days:
        return fallback
    return round_half_up(sum(readings) / len(readings) * 0.9)


def _unit_suffix(goal: Goal) -> str:
    if goal.unit == "minutes":
        return " min"
    if goal.unit == "%":
        return "%"
    return ""


def suggest_goal_adjustments(
    goals: Mapping[str, Goal],
    averages: Mapping[str, Optional[float]],
    limit: int = 3,
) -> List[GoalSuggestion]:
    """
    Suggest goal changes from recent averages.

    - Enabled goal at 30-80% of target: a realistic target 15% above the
      current average (only when clearly below the existing target).
    - Enabled, non-inverted goal at or above target: a 10% stretch.
    - Disabled goal with data available: suggest enabling it.

    Args:
        goals: Goal table
        averages: Goal key -> recent average (None or missing = no data)
        limit: Maximum suggestions returned

    Returns:
        Suggestions sorted by priority
    """
    suggestions: List[GoalSuggestion] = []
    for key, goal in goals.items():
        current = averages.get(key)
        if not goal.target:
            continue

        if goal.enabled and current:
            percent_of_target = current / goal.target * 100
            suffix = _unit_suffix(goal)
            label = goal.display_label.lower()

            if 30 < percent_of_target < 80:
                suggested = round_half_up(current * 1.15)
                if suggested < goal.target * 0.9:
                    suggestions.append(GoalSuggestion(
                        metric_key=key,
                        action="update",
                        text=(
                            f"Your {label} averages {round_half_up(current)}{suffix}. "
                            f"Try targeting {suggested}{suffix} first."
                        ),
                        priority=1 if percent_of_target < 60 else 2,
                        current_target=goal.target,
                        new_target=suggested,
                    ))

            if percent_of_target >= 100 and not goal.inverted:
                stretch = round_half_up(goal.target * 1.1)
                suggestions.append(GoalSuggestion(
                    metric_key=key,
                    action="update",
                    text=(
                        f"You're consistently hitting your {label} goal. "
                        f"Consider raising it to {stretch}{suffix}."
                    ),
                    priority=3,
                    current_target=goal.target,
                    new_target=stretch,
                ))

        elif not goal.enabled and current is not None:
            avg_text = f" (avg {round_half_up(current)} min)" if current and goal.unit == "minutes" else ""
            suggestions.append(GoalSuggestion(
                metric_key=key,
                action="enable",
                text=f"You have {goal.display_label} data available{avg_text}. Enable this goal?",
                priority=2,
            ))

    # sorted() is stable, so equal priorities keep goal-table order
    return sorted(suggestions, key=lambda s: s.priority)[:limit]


def recent_goal_averages(
    records: Sequence[DailyRecord],
    today: date,
    days: int = 30,
    goals: Optional[Mapping[str, Goal]] = None,
) -> Dict[str, float]:
    """Average of each daily goal source over the last ``days`` days up to ``today``."""
    ensure_series(records)
    cutoff = today - timedelta(days=days - 1)
    window = [r for r in records if cutoff <= r.date <= today]
    averages: Dict[str, float] = {}
    for key, source in _daily_sources(goals).items():
        value = mean(getattr(r, source) for r in window)
        if value is not None:
            averages[key] = value
    if not averages:
        logger.debug(f"No goal data in the {days} days before {today.isoformat()}")
    return averages
