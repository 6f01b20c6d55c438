"""Analysis modules: aggregation, records, correlations and insight composition."""

from .aggregation import (
    MetricComparison,
    PeriodBucket,
    PeriodSummary,
    TrendDirection,
    TrendResult,
    aggregate_for_range,
    aggregate_to_monthly,
    aggregate_to_weekly,
    calculate_metric_trend,
    calculate_trend,
    compare_periods,
    consistency_percent,
    is_improvement,
    rolling_average,
    summarize_period,
    week_start,
)
from .records import (
    MILESTONES,
    Extremum,
    MilestoneProgress,
    PersonalRecords,
    Streak,
    calculate_calendar_streak,
    calculate_longest_streak,
    calculate_milestones,
    find_extremum,
    find_personal_records,
    format_milestone,
)
from .goals import (
    GoalProgress,
    GoalSummary,
    GoalSuggestion,
    calculate_hrv_baseline,
    daily_goal_summary,
    goal_progress,
    goal_streak,
    suggest_goal_adjustments,
)
from .correlation import (
    LaggedComparison,
    LaggedPair,
    NextDayPattern,
    StressDayQuality,
    analyze_lagged_pattern,
    analyze_stress_day_quality,
    build_lagged_pairs,
    find_next_day_patterns,
    lifestyle_confidence,
)
from .lifestyle import (
    EnergyStats,
    LifestyleAnalysis,
    Pattern,
    analyze_lifestyle_patterns,
    best_sleep_factors,
    checkin_trends,
    detect_anomalies,
    energy_stats,
)
from .snapshot import DailySnapshot, build_snapshot
from .readiness import assess_readiness, recommend_workout, recovery_factor_breakdown
from .composer import (
    ComposedInsight,
    PriorityAction,
    collect_recommendations,
    compose_daily_insight,
    compose_insight,
    find_top_priority,
)

__all__ = [
    "MetricComparison",
    "PeriodBucket",
    "PeriodSummary",
    "TrendDirection",
    "TrendResult",
    "aggregate_for_range",
    "aggregate_to_monthly",
    "aggregate_to_weekly",
    "calculate_metric_trend",
    "calculate_trend",
    "compare_periods",
    "consistency_percent",
    "is_improvement",
    "rolling_average",
    "summarize_period",
    "week_start",
    "MILESTONES",
    "Extremum",
    "MilestoneProgress",
    "PersonalRecords",
    "Streak",
    "calculate_calendar_streak",
    "calculate_longest_streak",
    "calculate_milestones",
    "find_extremum",
    "find_personal_records",
    "format_milestone",
    "GoalProgress",
    "GoalSummary",
    "GoalSuggestion",
    "calculate_hrv_baseline",
    "daily_goal_summary",
    "goal_progress",
    "goal_streak",
    "suggest_goal_adjustments",
    "LaggedComparison",
    "LaggedPair",
    "NextDayPattern",
    "StressDayQuality",
    "analyze_lagged_pattern",
    "analyze_stress_day_quality",
    "build_lagged_pairs",
    "find_next_day_patterns",
    "lifestyle_confidence",
    "EnergyStats",
    "LifestyleAnalysis",
    "Pattern",
    "analyze_lifestyle_patterns",
    "best_sleep_factors",
    "checkin_trends",
    "detect_anomalies",
    "energy_stats",
    "DailySnapshot",
    "build_snapshot",
    "assess_readiness",
    "recommend_workout",
    "recovery_factor_breakdown",
    "ComposedInsight",
    "PriorityAction",
    "collect_recommendations",
    "compose_daily_insight",
    "compose_insight",
    "find_top_priority",
]
