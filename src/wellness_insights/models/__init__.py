"""Typed input models."""

from .records import (
    Alcohol,
    Caffeine,
    DailyRecord,
    DaySummary,
    LifestyleCheckin,
    MealTiming,
    MorningReflection,
    ScreenTime,
    SleepFelt,
    metric_series,
    metric_value,
    parse_checkins,
    parse_daily_records,
    resolve_metric,
)
from .goals import DEFAULT_GOALS, Goal, GoalCategory, default_goals

__all__ = [
    "Alcohol",
    "Caffeine",
    "DailyRecord",
    "DaySummary",
    "LifestyleCheckin",
    "MealTiming",
    "MorningReflection",
    "ScreenTime",
    "SleepFelt",
    "metric_series",
    "metric_value",
    "parse_checkins",
    "parse_daily_records",
    "resolve_metric",
    "DEFAULT_GOALS",
    "Goal",
    "GoalCategory",
    "default_goals",
]
