"""Shared helpers: calendar dates, rounding and averaging.

All dates are naive local calendar dates. Nothing in the library converts
timezones, so week starts, streak adjacency and lagged pairing agree.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Any, Iterable, List, Optional, Union


def parse_date(date_value: Any) -> Optional[date]:
    """Parse date from string or date object."""
    if date_value is None:
        return None
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value
    if isinstance(date_value, str):
        try:
            return datetime.strptime(date_value[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from ``earlier`` to ``later``."""
    return (later - earlier).days


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """Round halves toward positive infinity: 12.5 -> 13, -9.5 -> -9.

    The builtin round() sends halves to the even neighbour instead.
    Returns an int when ``digits`` is 0.
    """
    shifted = Decimal(str(value)).scaleb(digits) + Decimal("0.5")
    rounded = shifted.to_integral_value(rounding=ROUND_FLOOR).scaleb(-digits)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def present(values: Iterable[Optional[float]]) -> List[float]:
    """Drop missing entries. Zero is kept: it is an observation."""
    return [v for v in values if v is not None]


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the present values, or None when there are none."""
    observed = present(values)
    if not observed:
        return None
    return sum(observed) / len(observed)
