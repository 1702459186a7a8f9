"""Aggregate raw tracked events into a DataSummary."""

from collections import Counter, defaultdict
from datetime import timedelta
from typing import Sequence

from shared_types import SymptomIntensity

from .models import (
    INTENSITY_SCORES,
    CycleStats,
    DataSummary,
    MoodEvent,
    MoodStat,
    PeriodEvent,
    SymptomEvent,
    SymptomStat,
)

DEFAULT_CYCLE_LENGTH = 28
TOP_N = 5
RECENT_N = 10


def summarize(
    periods: Sequence[PeriodEvent],
    symptoms: Sequence[SymptomEvent],
    moods: Sequence[MoodEvent],
) -> DataSummary:
    """Build a statistical summary. Pure: inputs are never mutated."""
    return DataSummary(
        cycle=_cycle_stats(periods),
        symptom_stats=_symptom_stats(symptoms),
        mood_stats=_mood_stats(moods),
        recent_symptoms=sorted(symptoms, key=lambda s: s.date, reverse=True)[:RECENT_N],
        recent_moods=sorted(moods, key=lambda m: m.date, reverse=True)[:RECENT_N],
    )


def _cycle_stats(periods: Sequence[PeriodEvent]) -> CycleStats:
    starts = sorted(p.start_date for p in periods)
    if len(starts) < 2:
        average = float(DEFAULT_CYCLE_LENGTH)
    else:
        gaps = [(b - a).days for a, b in zip(starts, starts[1:])]
        average = sum(gaps) / len(gaps)

    average_length = round(average)
    variability = round(abs(average - DEFAULT_CYCLE_LENGTH)) if len(starts) > 2 else 0
    last = starts[-1] if starts else None

    return CycleStats(
        average_length=average_length,
        variability=variability,
        total_periods=len(starts),
        last_period_date=last,
        predicted_next_period=last + timedelta(days=average_length) if last else None,
    )


def _ranked(counts: Counter) -> list[tuple[str, int]]:
    # Counter keeps first-seen order; sorted() is stable so ties keep it too
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_N]


def _symptom_stats(symptoms: Sequence[SymptomEvent]) -> list[SymptomStat]:
    counts = Counter(s.name for s in symptoms)
    scores: dict[str, list[int]] = defaultdict(list)
    for s in symptoms:
        scores[s.name].append(INTENSITY_SCORES[SymptomIntensity(s.intensity)])

    return [
        SymptomStat(
            name=name,
            frequency=freq,
            average_intensity=sum(scores[name]) / len(scores[name]),
        )
        for name, freq in _ranked(counts)
    ]


def _mood_stats(moods: Sequence[MoodEvent]) -> list[MoodStat]:
    counts = Counter(m.mood for m in moods)
    scores: dict[str, list[int]] = defaultdict(list)
    for m in moods:
        scores[m.mood].append(m.intensity)

    return [
        MoodStat(
            mood=mood,
            frequency=freq,
            average_intensity=sum(scores[mood]) / len(scores[mood]),
        )
        for mood, freq in _ranked(counts)
    ]
