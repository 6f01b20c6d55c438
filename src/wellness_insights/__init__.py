"""Wellness insights: pattern mining over wearable and lifestyle time series."""

__version__ = "0.1.0"

from .analysis import (
    analyze_lifestyle_patterns,
    compose_daily_insight,
    find_next_day_patterns,
    find_personal_records,
)
from .config import Settings, get_settings
from .exceptions import (
    ErrorCode,
    InvalidSeriesError,
    RecordValidationError,
    ValidationError,
    WellnessInsightsError,
)
from .models import DailyRecord, Goal, LifestyleCheckin, MorningReflection, parse_daily_records
from .service import InsightService

__all__ = [
    "__version__",
    "analyze_lifestyle_patterns",
    "compose_daily_insight",
    "find_next_day_patterns",
    "find_personal_records",
    "Settings",
    "get_settings",
    "ErrorCode",
    "InvalidSeriesError",
    "RecordValidationError",
    "ValidationError",
    "WellnessInsightsError",
    "DailyRecord",
    "Goal",
    "LifestyleCheckin",
    "MorningReflection",
    "parse_daily_records",
    "InsightService",
]
