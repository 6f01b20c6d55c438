"""
Personal-Record Finder

Best-ever values, streaks and milestone progress.

Two streak notions live here and are deliberately separate:
- threshold streaks walk the sorted records by position, so a day missing
  from the series does not break the run;
- calendar streaks require each entry to be exactly one day after the last,
  so any gap ends the run.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import get_settings
from ..exceptions import ValidationError
from ..models.records import DailyRecord, ensure_series, metric_value, resolve_metric, sort_records
from ..utils import round_half_up

logger = logging.getLogger(__name__)


MILESTONES: Dict[str, List[int]] = {
    "steps": [100000, 500000, 1000000, 2500000, 5000000, 10000000],
    "workouts": [10, 25, 50, 100, 250, 500, 1000],
    "streak": [7, 14, 30, 60, 90, 180, 365],
}

# Resting HR readings at or below this are sensor glitches
RESTING_HR_FLOOR = 30


class ExtremumMode(str, Enum):
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class Extremum:
    """Best value and the day it happened. Both None means no record yet."""

    value: Optional[float]
    date: Optional[date]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "date": self.date.isoformat() if self.date else None,
        }


@dataclass(frozen=True)
class Streak:
    """Current and longest run of qualifying days."""

    current: int
    longest: int
    start_date: Optional[date]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "longest": self.longest,
            "start_date": self.start_date.isoformat() if self.start_date else None,
        }


@dataclass(frozen=True)
class MilestoneProgress:
    """Position on one milestone ladder."""

    current: float
    achieved: List[int] = field(default_factory=list)
    next: Optional[int] = None
    progress: int = 0
    remaining: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PersonalRecords:
    """The record board."""

    max_steps: Extremum
    max_hrv: Extremum
    max_readiness: Extremum
    max_sleep_score: Extremum
    max_deep_sleep: Extremum
    max_sleep_efficiency: Extremum
    lowest_resting_hr: Extremum
    longest_streak: Streak

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_steps": self.max_steps.to_dict(),
            "max_hrv": self.max_hrv.to_dict(),
            "max_readiness": self.max_readiness.to_dict(),
            "max_sleep_score": self.max_sleep_score.to_dict(),
            "max_deep_sleep": self.max_deep_sleep.to_dict(),
            "max_sleep_efficiency": self.max_sleep_efficiency.to_dict(),
            "lowest_resting_hr": self.lowest_resting_hr.to_dict(),
            "longest_streak": self.longest_streak.to_dict(),
        }


def find_extremum(
    records: Sequence[DailyRecord],
    key: str,
    mode: str = "max",
    threshold: Optional[float] = None,
) -> Extremum:
    """
    Find the best value of a metric and its date.

    For "max", values must be >= threshold when one is given. For "min",
    values must be strictly above threshold (default 0), which filters out
    zero or glitch readings. Ties keep the earliest date.

    Args:
        records: Daily records, any order
        key: Metric key
        mode: "max" or "min"
        threshold: Optional cutoff, see above

    Returns:
        Extremum, with value and date None when nothing qualifies
    """
    ensure_series(records)
    mode = ExtremumMode(mode)
    field_name = resolve_metric(key)

    best: Optional[float] = None
    best_date: Optional[date] = None
    for record in sort_records(records):
        value = metric_value(record, field_name)
        if value is None:
            continue
        if mode == ExtremumMode.MAX:
            if threshold is not None and value < threshold:
                continue
            if best is None or value > best:
                best, best_date = value, record.date
        else:
            if value <= (threshold if threshold is not None else 0):
                continue
            if best is None or value < best:
                best, best_date = value, record.date

    return Extremum(best, best_date)


def default_streak_predicate(record: DailyRecord) -> bool:
    """Active day: enough steps, or a logged workout."""
    threshold = get_settings().streak_step_threshold
    return bool(record.workout) or (record.steps is not None and record.steps >= threshold)


def steps_at_least(threshold: int) -> Callable[[DailyRecord], bool]:
    """Predicate factory for step goals."""
    def predicate(record: DailyRecord) -> bool:
        return record.steps is not None and record.steps >= threshold
    return predicate


def calculate_longest_streak(
    records: Sequence[DailyRecord],
    predicate: Optional[Callable[[DailyRecord], bool]] = None,
) -> Streak:
    """
    Threshold streak over records sorted by date.

    Adjacency is by position in the sorted series. ``current`` counts back
    from the most recent record until the predicate fails; ``start_date`` is
    the first day of the longest run (the earliest run wins ties).
    """
    ensure_series(records)
    check = predicate or default_streak_predicate
    ordered = sort_records(records)

    longest = 0
    longest_start: Optional[date] = None
    run = 0
    run_start: Optional[date] = None
    for record in ordered:
        if check(record):
            if run == 0:
                run_start = record.date
            run += 1
            if run > longest:
                longest = run
                longest_start = run_start
        else:
            run = 0

    current = 0
    for record in reversed(ordered):
        if not check(record):
            break
        current += 1

    return Streak(current=current, longest=longest, start_date=longest_start)


def calculate_calendar_streak(dates: Iterable[date], today: date) -> Streak:
    """
    Calendar streak over a set of entry dates (e.g. check-ins).

    The current streak starts at ``today``, or at yesterday when today has
    no entry yet, and counts back one calendar day at a time. The longest
    streak breaks whenever consecutive entries are not exactly one day apart.
    """
    unique = sorted(set(dates))
    if not unique:
        return Streak(0, 0, None)

    present_days = set(unique)
    cursor = today if today in present_days else today - timedelta(days=1)
    current = 0
    while cursor in present_days:
        current += 1
        cursor -= timedelta(days=1)

    longest = 1
    longest_start = unique[0]
    run = 1
    run_start = unique[0]
    for previous, day in zip(unique, unique[1:]):
        if (day - previous).days == 1:
            run += 1
        else:
            run = 1
            run_start = day
        if run > longest:
            longest = run
            longest_start = run_start

    return Streak(current=current, longest=longest, start_date=longest_start)


def _ladder_progress(value: float, ladder: List[int]) -> MilestoneProgress:
    achieved = [m for m in ladder if value >= m]
    upcoming = [m for m in ladder if value < m]
    if not upcoming:
        return MilestoneProgress(current=value, achieved=achieved, next=None, progress=100, remaining=0)
    target = upcoming[0]
    return MilestoneProgress(
        current=value,
        achieved=achieved,
        next=target,
        progress=min(100, round_half_up(value / target * 100)),
        remaining=target - value,
    )


def calculate_milestones(
    total_steps: float,
    total_workouts: int,
    current_streak: int,
) -> Dict[str, MilestoneProgress]:
    """Progress along the steps, workouts and streak ladders."""
    for name, value in (("total_steps", total_steps), ("total_workouts", total_workouts),
                        ("current_streak", current_streak)):
        if value is None or value < 0:
            raise ValidationError(f"{name} must be a non-negative number", field=name)

    return {
        "steps": _ladder_progress(total_steps, MILESTONES["steps"]),
        "workouts": _ladder_progress(total_workouts, MILESTONES["workouts"]),
        "streak": _ladder_progress(current_streak, MILESTONES["streak"]),
    }


def format_milestone(value: int) -> str:
    """Short display form: 100000 -> '100K', 2500000 -> '2.5M'."""
    if value >= 1000000:
        text = f"{value / 1000000:.1f}".rstrip("0").rstrip(".")
        return f"{text}M"
    if value >= 1000:
        text = f"{value / 1000:.1f}".rstrip("0").rstrip(".")
        return f"{text}K"
    return str(value)


def find_personal_records(records: Sequence[DailyRecord]) -> PersonalRecords:
    """Compute the full record board for a series."""
    ensure_series(records)
    logger.debug(f"Finding personal records over {len(records)} days")
    return PersonalRecords(
        max_steps=find_extremum(records, "steps"),
        max_hrv=find_extremum(records, "hrv"),
        max_readiness=find_extremum(records, "readiness_score"),
        max_sleep_score=find_extremum(records, "sleep_score"),
        max_deep_sleep=find_extremum(records, "deep_sleep"),
        max_sleep_efficiency=find_extremum(records, "sleep_efficiency"),
        lowest_resting_hr=find_extremum(records, "resting_hr", mode="min", threshold=RESTING_HR_FLOOR),
        longest_streak=calculate_longest_streak(records),
    )
