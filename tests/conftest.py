"""Shared test fixtures for cycle-insights."""

import asyncio
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from insights.models import MoodEvent, PeriodEvent, SymptomEvent  # noqa: E402
from shared_types import SymptomIntensity  # noqa: E402


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class StubStrategy:
    """Insight strategy returning canned results (or raising)."""

    def __init__(self, name: str, result=None, error: Exception | None = None):
        self.name = name
        self.result = result or []
        self.error = error
        self.calls = 0

    async def generate(self, summary, max_insights: int = 5):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.result)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def today():
    return date(2024, 6, 15)


@pytest.fixture
def sample_periods(today):
    """Three periods, 30 then 32 day gaps."""
    return [
        PeriodEvent(start_date=today - timedelta(days=62)),
        PeriodEvent(start_date=today - timedelta(days=32)),
        PeriodEvent(start_date=today),
    ]


@pytest.fixture
def sample_symptoms(today):
    return [
        SymptomEvent(name="cramps", date=today - timedelta(days=1), intensity=SymptomIntensity.SEVERE),
        SymptomEvent(name="cramps", date=today - timedelta(days=31), intensity=SymptomIntensity.MODERATE),
        SymptomEvent(name="cramps", date=today - timedelta(days=61), intensity=SymptomIntensity.MILD),
        SymptomEvent(name="bloating", date=today - timedelta(days=2), intensity=SymptomIntensity.MILD),
    ]


@pytest.fixture
def sample_moods(today):
    return [
        MoodEvent(mood="anxious", date=today - timedelta(days=1), intensity=2),
        MoodEvent(mood="anxious", date=today - timedelta(days=10), intensity=3),
        MoodEvent(mood="calm", date=today - timedelta(days=20), intensity=4),
    ]


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 15, 12, 0, 0)
