"""Goal configuration models."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .records import to_camel


class GoalCategory(str, Enum):
    """Goal groupings used for the daily summary."""
    ACTIVITY = "activity"
    RECOVERY = "recovery"
    SLEEP = "sleep"
    STRESS = "stress"


class Goal(BaseModel):
    """A target for one metric, owned by the caller."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    metric_key: str = Field(..., description="Goal identifier, e.g. dailySteps")
    target: float = Field(..., ge=0, description="Target value")
    enabled: bool = Field(default=True, description="Whether the goal is tracked")
    inverted: bool = Field(default=False, description="Lower observed value is better")
    label: Optional[str] = Field(None, description="Display label")
    unit: Optional[str] = Field(None, description="Display unit")
    category: Optional[GoalCategory] = Field(None, description="Goal category")
    source: Optional[str] = Field(
        None,
        description="DailyRecord field the goal reads; None for weekly goals",
    )
    auto_baseline: bool = Field(default=False, description="Target tracks the HRV baseline")

    @property
    def display_label(self) -> str:
        return self.label or self.metric_key


# Weekly goals (no daily source field)
WEEKLY_WORKOUTS = "weeklyWorkouts"
ACTIVE_DAYS = "activeDays"
ACTIVE_DAY_STEPS = 5000

DEFAULT_GOALS: Dict[str, Goal] = {
    goal.metric_key: goal
    for goal in [
        Goal(metric_key="dailySteps", target=10000, category=GoalCategory.ACTIVITY,
             label="Daily Steps", unit="steps", source="steps"),
        Goal(metric_key=WEEKLY_WORKOUTS, target=4, category=GoalCategory.ACTIVITY,
             label="Weekly Workouts", unit="per week"),
        Goal(metric_key=ACTIVE_DAYS, target=5, category=GoalCategory.ACTIVITY,
             label="Active Days", unit="days/week"),
        Goal(metric_key="readinessScore", target=70, category=GoalCategory.RECOVERY,
             label="Readiness Score", unit="minimum", source="readiness_score"),
        Goal(metric_key="hrvBaseline", target=40, category=GoalCategory.RECOVERY,
             label="HRV Baseline", unit="ms minimum", source="hrv", auto_baseline=True),
        Goal(metric_key="sleepScore", target=75, category=GoalCategory.SLEEP,
             label="Sleep Score", unit="minimum", source="sleep_score"),
        Goal(metric_key="deepSleepMinutes", target=90, category=GoalCategory.SLEEP,
             label="Deep Sleep", unit="minutes", source="deep_sleep"),
        Goal(metric_key="sleepEfficiency", target=85, category=GoalCategory.SLEEP,
             label="Sleep Efficiency", unit="%", source="sleep_efficiency"),
        Goal(metric_key="remSleepMinutes", target=90, enabled=False, category=GoalCategory.SLEEP,
             label="REM Sleep", unit="minutes", source="rem_sleep"),
        Goal(metric_key="maxStressMinutes", target=240, enabled=False, inverted=True,
             category=GoalCategory.STRESS, label="Max Stress Time", unit="minutes/day",
             source="stress_minutes"),
        Goal(metric_key="minRecoveryMinutes", target=180, enabled=False,
             category=GoalCategory.STRESS, label="Min Recovery Time", unit="minutes/day",
             source="recovery_minutes"),
    ]
}


def default_goals() -> Dict[str, Goal]:
    """Fresh copies of the default goal table, safe for the caller to modify."""
    return {key: goal.model_copy() for key, goal in DEFAULT_GOALS.items()}
