"""Configuration settings for the wellness insights library."""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Analysis thresholds loaded from environment variables.

    Every value here is an empirically chosen constant rather than the
    output of a statistical test. They are kept configurable so a deployment
    can tune them (e.g. ``WELLNESS_LIFESTYLE_MIN_IMPACT=15``).
    """

    model_config = SettingsConfigDict(
        env_prefix="WELLNESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Lagged correlation
    min_pairs: int = 10
    min_group_size: int = 3
    next_day_min_impact: float = 3.0
    lifestyle_min_impact: float = 10.0
    confidence_cap: float = 0.95
    stress_day_gap_points: float = 15.0
    min_sleep_days: int = 14

    # Lifestyle check-ins
    lifestyle_min_checkins: int = 14
    lifestyle_window_days: int = 30
    best_sleep_min_nights: int = 7
    best_sleep_share: float = 0.7

    # Trends
    trend_window: int = 7
    trend_deadband_pct: float = 5.0

    # Goals and streaks
    default_step_goal: int = 10000
    default_hrv_baseline: float = 40.0
    streak_step_threshold: int = 5000
    hrv_baseline_min_days: int = 7

    # Metrics where a lower observed value is the better outcome
    lower_is_better: List[str] = Field(
        default_factory=lambda: ["restingHR", "stressMinutes", "sleepLatency"]
    )

    # Insight cache
    insight_cache_size: int = 30


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
