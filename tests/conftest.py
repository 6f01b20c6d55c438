"""Shared fixtures for the wellness insights tests."""

from datetime import date, timedelta

import pytest

from wellness_insights.config import get_settings
from wellness_insights.models.records import DailyRecord, LifestyleCheckin


# A Monday, so weekly bucketing lines up with the series start
BASE_DATE = date(2025, 1, 6)


def build_series(start=BASE_DATE, **columns):
    """Build consecutive daily records from per-field value lists."""
    length = max(len(values) for values in columns.values())
    records = []
    for i in range(length):
        fields = {key: values[i] for key, values in columns.items() if i < len(values)}
        records.append(DailyRecord(date=start + timedelta(days=i), **fields))
    return records


def deep_sleep_scenario(days: int):
    """Alternating deep sleep; next night's efficiency is 90 after 50+ min, 80 otherwise."""
    deep = [60 if i % 2 == 0 else 40 for i in range(days - 1)] + [None]
    efficiency = [None] + [90 if d >= 50 else 80 for d in deep[:-1]]
    return build_series(deep_sleep=deep, sleep_efficiency=efficiency)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Isolate tests from cached settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def base_date():
    return BASE_DATE


@pytest.fixture
def make_records():
    return build_series


@pytest.fixture
def scenario_a(make_records):
    """Seven days of steps; day 4 misses the 10000 step goal."""
    return make_records(steps=[12000, 11000, 13000, 9000, 10500, 12500, 14000])


@pytest.fixture
def scenario_b():
    """Twelve day-pairs: 6 deep nights then 90% efficiency, 6 shallow then 80%."""
    return deep_sleep_scenario(13)


@pytest.fixture
def make_deep_sleep_scenario():
    return deep_sleep_scenario


@pytest.fixture
def make_checkin():
    def _make(day, **fields):
        return LifestyleCheckin(date=day, **fields)
    return _make
