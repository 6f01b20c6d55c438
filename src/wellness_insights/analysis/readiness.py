"""
Readiness Score Calculation

Blends five factors into one 0-100 composite:
- HRV as a percent of baseline (primary signal)
- Wearable readiness score
- Sleep score
- Deep sleep against a 90 minute target
- Day stress category

Also reports the lowest-scoring factor, a per-factor status breakdown and
a workout intensity tier. This answers "what is my overall state", which is
a different question from the composer's "what is the single most urgent
issue".
"""

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

from ..models.records import DaySummary
from ..utils import round_half_up
from .snapshot import DailySnapshot


DEFAULT_WEIGHTS = {
    "hrv": 0.35,
    "readiness": 0.25,
    "sleep": 0.20,
    "deep_sleep": 0.10,
    "stress": 0.10,
}

DEEP_SLEEP_TARGET = 90

STRESS_SCORES = {
    DaySummary.RESTORED.value: 100,
    DaySummary.NORMAL.value: 75,
    DaySummary.STRESSFUL.value: 40,
}
UNKNOWN_STRESS_SCORE = 60


@dataclass(frozen=True)
class ReadinessFactor:
    """One factor's 0-100 score."""

    key: str
    name: str
    score: float
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "score": round_half_up(self.score, 1),
            "value": self.value,
        }


@dataclass
class ReadinessAssessment:
    """Composite readiness and what is holding it back."""

    level: str                               # 'good', 'moderate', 'low', 'unknown'
    label: str
    description: str
    composite_score: Optional[int] = None
    hrv_percentage: Optional[int] = None
    limiting_factor: Optional[ReadinessFactor] = None
    factors: List[ReadinessFactor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "label": self.label,
            "description": self.description,
            "composite_score": self.composite_score,
            "hrv_percentage": self.hrv_percentage,
            "limiting_factor": self.limiting_factor.to_dict() if self.limiting_factor else None,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class FactorStatus:
    """Display status for one recovery factor."""

    level: str   # 'good', 'normal', 'warning', 'low', 'unknown'
    label: str
    value: Optional[float] = None
    target: Optional[float] = None
    percentage: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WorkoutRecommendation:
    """Suggested training intensity for the day."""

    type: str    # 'intense', 'moderate', 'light', 'rest'
    label: str
    duration: str
    reason: str
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_hrv_factor(snapshot: DailySnapshot) -> Optional[float]:
    pct = snapshot.hrv_percentage
    if pct is None:
        return None
    return min(100.0, pct)


def calculate_deep_sleep_factor(deep_sleep: Optional[float]) -> Optional[float]:
    if deep_sleep is None:
        return None
    return min(100.0, deep_sleep / DEEP_SLEEP_TARGET * 100)


def calculate_stress_factor(day_summary: Optional[str]) -> Optional[float]:
    """Restored 100, normal 75, stressful 40, any other label 60."""
    if day_summary is None:
        return None
    return float(STRESS_SCORES.get(day_summary, UNKNOWN_STRESS_SCORE))


def readiness_factors(snapshot: DailySnapshot) -> List[ReadinessFactor]:
    """The available factors, in weight order. Missing ones are left out."""
    factors = []
    hrv_score = calculate_hrv_factor(snapshot)
    if hrv_score is not None:
        factors.append(ReadinessFactor(
            "hrv", "HRV", hrv_score,
            f"{snapshot.hrv:g}ms ({round_half_up(snapshot.hrv_percentage)}%)",
        ))
    if snapshot.readiness_score is not None:
        factors.append(ReadinessFactor(
            "readiness", "Readiness", snapshot.readiness_score, f"{snapshot.readiness_score:g}",
        ))
    if snapshot.sleep_score is not None:
        factors.append(ReadinessFactor(
            "sleep", "Sleep", snapshot.sleep_score, f"{snapshot.sleep_score:g}",
        ))
    deep_score = calculate_deep_sleep_factor(snapshot.deep_sleep)
    if deep_score is not None:
        factors.append(ReadinessFactor(
            "deep_sleep", "Deep Sleep", deep_score, f"{snapshot.deep_sleep:g} min",
        ))
    stress_score = calculate_stress_factor(snapshot.day_summary)
    if stress_score is not None:
        factors.append(ReadinessFactor(
            "stress", "Recovery", stress_score, snapshot.day_summary,
        ))
    return factors


def calculate_composite_score(
    factors: List[ReadinessFactor],
    weights: Optional[Dict[str, float]] = None,
) -> Optional[int]:
    """Weighted mean of the available factors, weights renormalized to what is present."""
    w = weights or DEFAULT_WEIGHTS
    total_weight = sum(w[f.key] for f in factors)
    if not factors or total_weight == 0:
        return None
    return round_half_up(sum(f.score * w[f.key] for f in factors) / total_weight)


def assess_readiness(snapshot: DailySnapshot, weights: Optional[Dict[str, float]] = None) -> ReadinessAssessment:
    """
    Composite readiness assessment.

    Levels:
    - good: composite >= 75 and HRV >= 90% of baseline (or HRV unknown)
    - moderate: composite >= 60, or HRV >= 80% with readiness >= 60
    - low: everything else
    - unknown: no factor has data

    Args:
        snapshot: The day's inputs
        weights: Optional factor weights (default DEFAULT_WEIGHTS)

    Returns:
        ReadinessAssessment
    """
    factors = readiness_factors(snapshot)
    composite = calculate_composite_score(factors, weights)
    if composite is None:
        return ReadinessAssessment(
            level="unknown",
            label="Not Enough Data",
            description="Sync sleep and recovery data to get a readiness assessment.",
        )

    hrv_pct = snapshot.hrv_percentage
    limiting = min(factors, key=lambda f: f.score)
    readiness = snapshot.readiness_score

    if composite >= 75 and (hrv_pct is None or hrv_pct >= 90):
        level, label = "good", "Ready to Push"
        description = "Recovery looks strong. Great day for challenging workouts."
    elif composite >= 60 or (
        hrv_pct is not None and hrv_pct >= 80 and readiness is not None and readiness >= 60
    ):
        level, label = "moderate", "Moderate Capacity"
        description = (
            f"Decent recovery, but {limiting.name} is holding you back. "
            "Good for steady-state activity."
        )
    else:
        level, label = "low", "Recovery Focus"
        description = f"{limiting.name} is low ({limiting.value}). Light movement only, prioritize recovery."

    return ReadinessAssessment(
        level=level,
        label=label,
        description=description,
        composite_score=composite,
        hrv_percentage=round_half_up(hrv_pct) if hrv_pct is not None else None,
        limiting_factor=limiting,
        factors=factors,
    )


def _hrv_status(snapshot: DailySnapshot) -> FactorStatus:
    pct = snapshot.hrv_percentage
    if pct is None:
        return FactorStatus("unknown", "No data", value=snapshot.hrv, target=snapshot.hrv_baseline)
    if pct >= 95:
        level, label = "good", "Above baseline"
    elif pct >= 85:
        level, label = "normal", "Normal"
    elif pct >= 70:
        level, label = "warning", "Below baseline"
    else:
        level, label = "low", "Significantly low"
    return FactorStatus(level, label, value=snapshot.hrv, target=snapshot.hrv_baseline,
                        percentage=round_half_up(pct))


def _deep_sleep_status(minutes: Optional[float]) -> FactorStatus:
    if minutes is None:
        return FactorStatus("unknown", "No data", target=DEEP_SLEEP_TARGET)
    if minutes >= 90:
        level, label = "good", "Optimal"
    elif minutes >= 60:
        level, label = "normal", "Adequate"
    elif minutes >= 30:
        level, label = "warning", "Low"
    else:
        level, label = "low", "Very low"
    return FactorStatus(level, label, value=minutes, target=DEEP_SLEEP_TARGET,
                        percentage=round_half_up(minutes / DEEP_SLEEP_TARGET * 100))


def _sleep_status(score: Optional[float]) -> FactorStatus:
    if score is None:
        return FactorStatus("unknown", "No data")
    if score >= 80:
        return FactorStatus("good", "Excellent", value=score)
    if score >= 70:
        return FactorStatus("normal", "Good", value=score)
    if score >= 60:
        return FactorStatus("warning", "Fair", value=score)
    return FactorStatus("low", "Poor", value=score)


def _stress_status(day_summary: Optional[str]) -> FactorStatus:
    labels = {
        DaySummary.RESTORED.value: ("good", "Restored"),
        DaySummary.NORMAL.value: ("normal", "Balanced"),
        DaySummary.STRESSFUL.value: ("warning", "High stress"),
    }
    if day_summary is None:
        return FactorStatus("unknown", "No data")
    level, label = labels.get(day_summary, ("unknown", day_summary))
    return FactorStatus(level, label)


def _efficiency_status(efficiency: Optional[float]) -> FactorStatus:
    if efficiency is None:
        return FactorStatus("unknown", "No data")
    if efficiency >= 85:
        return FactorStatus("good", "Efficient", value=efficiency)
    return FactorStatus("warning", "Restless", value=efficiency)


def recovery_factor_breakdown(snapshot: DailySnapshot) -> Dict[str, FactorStatus]:
    """Per-factor statuses for display; missing inputs show as unknown."""
    return {
        "hrv": _hrv_status(snapshot),
        "deep_sleep": _deep_sleep_status(snapshot.deep_sleep),
        "sleep_score": _sleep_status(snapshot.sleep_score),
        "stress": _stress_status(snapshot.day_summary),
        "efficiency": _efficiency_status(snapshot.sleep_efficiency),
    }


def workout_suggestion(readiness: Optional[float], hrv_percentage: Optional[float]) -> str:
    """One-line training suggestion used by the workout-deficit rule."""
    def hrv_ok(floor: float) -> bool:
        return hrv_percentage is None or hrv_percentage >= floor

    readiness = readiness if readiness is not None else 50
    if hrv_ok(95) and readiness >= 75:
        return "Great day for high intensity - HIIT, heavy lifting, or sprints."
    if hrv_ok(85) and readiness >= 65:
        return "Good day for moderate effort - steady cardio or strength training."
    if hrv_ok(70):
        return "Keep it light - walking, yoga, or stretching."
    return "Focus on recovery - gentle movement only."


def recommend_workout(snapshot: DailySnapshot) -> WorkoutRecommendation:
    """
    Pick an intensity tier.

    Missing readiness counts as 50 and missing deep sleep as 60. Without HRV
    data the tiers are decided by readiness and deep sleep alone.
    """
    pct = snapshot.hrv_percentage
    readiness = snapshot.readiness_score if snapshot.readiness_score is not None else 50
    deep = snapshot.deep_sleep if snapshot.deep_sleep is not None else 60

    def hrv_at_least(floor: float) -> bool:
        return pct is None or pct >= floor

    hrv_text = f"HRV at {round_half_up(pct)}%" if pct is not None else "No HRV data"

    if hrv_at_least(95) and readiness >= 75 and deep >= 75:
        return WorkoutRecommendation(
            type="intense",
            label="High Intensity OK",
            duration="45-60 min",
            reason=f"{hrv_text} with {deep:g} min deep sleep. Push hard.",
            suggestions=["HIIT", "Heavy lifting", "Sprint intervals", "Competitive sports"],
        )
    if hrv_at_least(85) and readiness >= 65:
        return WorkoutRecommendation(
            type="moderate",
            label="Moderate Effort",
            duration="30-45 min",
            reason="Recovery is good but not peak. Solid training day without max efforts.",
            suggestions=["Steady cardio", "Moderate lifting", "Swimming", "Cycling"],
        )
    if hrv_at_least(70) and readiness >= 50:
        return WorkoutRecommendation(
            type="light",
            label="Light Activity",
            duration="20-30 min",
            reason="Active recovery helps more than pushing today.",
            suggestions=["Walking", "Yoga", "Stretching", "Light swim"],
        )
    return WorkoutRecommendation(
        type="rest",
        label="Active Recovery",
        duration="0-15 min",
        reason=f"{hrv_text} - your body needs rest to recover.",
        suggestions=["Rest day", "Gentle stretching", "Short walk", "Meditation"],
    )
