"""Daily observation and self-report models.

Records arrive as camelCase JSON from the data layer (``sleepScore``,
``restingHR``) and are validated at this boundary so the statistics
functions downstream can stay simple and total.
"""

import datetime as dt
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvalidSeriesError, RecordValidationError, UnknownMetricError


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class DaySummary(str, Enum):
    """Wearable's own label for how a day went, stress-wise."""
    RESTORED = "restored"
    NORMAL = "normal"
    STRESSFUL = "stressful"


class Caffeine(str, Enum):
    NONE = "none"
    MORNING_ONLY = "morning_only"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class Alcohol(str, Enum):
    NONE = "none"
    ONE_TWO = "one_two"
    THREE_PLUS = "three_plus"


class MealTiming(str, Enum):
    """Hours between the last meal and bedtime."""
    THREE_PLUS = "three_plus"
    ONE_TWO = "one_two"
    LESS_ONE = "less_one"


class ScreenTime(str, Enum):
    """Screen use in the half hour before bed."""
    NONE = "none"
    UNDER_30 = "under_30"
    OVER_30 = "over_30"


class SleepFelt(str, Enum):
    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    POOR = "poor"


class DailyRecord(BaseModel):
    """One calendar day of wearable observations.

    Every metric is optional. ``None`` means "no data" and is excluded from
    averages; ``0`` is a real observation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    date: dt.date = Field(..., description="Local calendar date, unique within a series")
    steps: Optional[int] = Field(None, ge=0, description="Step count")
    sleep_score: Optional[float] = Field(None, ge=0, le=100, description="Sleep score 0-100")
    readiness_score: Optional[float] = Field(None, ge=0, le=100, description="Readiness score 0-100")
    hrv: Optional[float] = Field(None, ge=0, description="Nightly HRV in ms")
    deep_sleep: Optional[float] = Field(None, ge=0, description="Deep sleep in minutes")
    rem_sleep: Optional[float] = Field(None, ge=0, description="REM sleep in minutes")
    total_sleep: Optional[float] = Field(None, ge=0, description="Total sleep in minutes")
    sleep_efficiency: Optional[float] = Field(None, ge=0, le=100, description="Time asleep vs in bed, %")
    sleep_latency: Optional[float] = Field(None, ge=0, description="Minutes to fall asleep")
    resting_hr: Optional[float] = Field(None, ge=0, alias="restingHR", description="Resting heart rate")
    stress_minutes: Optional[float] = Field(None, ge=0, description="Minutes in high stress")
    recovery_minutes: Optional[float] = Field(None, ge=0, description="Minutes in recovery")
    day_summary: Optional[str] = Field(None, description="restored / normal / stressful")
    workout: bool = Field(default=False, description="Whether a workout was logged")

    @field_validator("workout", mode="before")
    @classmethod
    def _workout_flag(cls, value: Any) -> Any:
        return False if value is None else value


class LifestyleCheckin(BaseModel):
    """One evening's self-reported lifestyle factors."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    date: dt.date
    caffeine: Optional[Caffeine] = None
    alcohol: Optional[Alcohol] = None
    last_meal_time: Optional[MealTiming] = None
    screen_time: Optional[ScreenTime] = None
    stress: Optional[int] = Field(None, ge=1, le=5, description="Stress rating 1-5")
    timestamp: Optional[dt.datetime] = None


class MorningReflection(BaseModel):
    """One morning's subjective state."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    date: dt.date
    energy: Optional[int] = Field(None, ge=1, le=5, description="Energy rating 1-5")
    sleep_felt: Optional[SleepFelt] = None
    timestamp: Optional[dt.datetime] = None


def _build_metric_index() -> Dict[str, str]:
    index: Dict[str, str] = {}
    for name, info in DailyRecord.model_fields.items():
        if name in ("date", "day_summary"):
            continue
        index[name] = name
        index[info.alias or to_camel(name)] = name
    return index


# Accepts both field names and their JSON aliases ("sleepScore", "sleep_score")
METRIC_FIELDS: Dict[str, str] = _build_metric_index()


def resolve_metric(key: str) -> str:
    """Return the DailyRecord field name for a metric key."""
    try:
        return METRIC_FIELDS[key]
    except KeyError:
        raise UnknownMetricError(key) from None


def canonical_metric(key: str) -> str:
    """Like resolve_metric, but passes unknown keys through unchanged."""
    return METRIC_FIELDS.get(key, key)


def metric_value(record: DailyRecord, key: str) -> Optional[float]:
    """Read a metric from a record; the workout flag reads as 1/0."""
    value = getattr(record, resolve_metric(key))
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def ensure_series(records: Any, name: str = "records") -> None:
    """Fail fast when a series is not a list of records."""
    if not isinstance(records, (list, tuple)):
        raise InvalidSeriesError(
            f"{name} must be a list, got {type(records).__name__}",
            details={"argument": name},
        )


def sort_records(records: Iterable[DailyRecord]) -> List[DailyRecord]:
    """Sort records ascending by date."""
    return sorted(records, key=lambda r: r.date)


def metric_series(records: Sequence[DailyRecord], key: str) -> List[Optional[float]]:
    """Chronological values of one metric, missing days kept as None."""
    field = resolve_metric(key)
    return [metric_value(r, field) for r in sort_records(records)]


def index_by_date(items: Iterable[Any]) -> Dict[dt.date, Any]:
    """Map date -> item for anything with a ``date`` attribute."""
    return {item.date: item for item in items}


def parse_daily_records(raw: Any) -> List[DailyRecord]:
    """
    Validate raw JSON-like rows into a sorted list of DailyRecord.

    Args:
        raw: List of dicts (camelCase or snake_case keys) or DailyRecord objects

    Returns:
        Records sorted ascending by date

    Raises:
        InvalidSeriesError: If raw is not a list, or dates repeat
        RecordValidationError: If a row has a malformed or out-of-range value
    """
    ensure_series(raw)

    records: List[DailyRecord] = []
    for index, item in enumerate(raw):
        if isinstance(item, DailyRecord):
            records.append(item)
            continue
        if not isinstance(item, dict):
            raise InvalidSeriesError(
                f"Record at index {index} is a {type(item).__name__}, expected an object",
                details={"index": index},
            )
        try:
            records.append(DailyRecord.model_validate(item))
        except PydanticValidationError as e:
            errors = [
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            raise RecordValidationError(
                f"Invalid daily record at index {index}",
                index=index,
                errors=errors,
            ) from e

    seen = set()
    for record in records:
        if record.date in seen:
            raise InvalidSeriesError(
                f"Duplicate date {record.date.isoformat()} in series",
                details={"date": record.date.isoformat()},
            )
        seen.add(record.date)

    return sort_records(records)


def parse_checkins(raw: Any) -> List[LifestyleCheckin]:
    """Validate raw check-ins. Later rows for the same date win."""
    ensure_series(raw, "checkins")
    by_date: Dict[dt.date, LifestyleCheckin] = {}
    for index, item in enumerate(raw):
        try:
            checkin = item if isinstance(item, LifestyleCheckin) else LifestyleCheckin.model_validate(item)
        except PydanticValidationError as e:
            raise RecordValidationError(
                f"Invalid lifestyle check-in at index {index}",
                index=index,
                errors=[{"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]} for err in e.errors()],
            ) from e
        by_date[checkin.date] = checkin
    return [by_date[d] for d in sorted(by_date)]
