"""Tracked-event sources."""

import json
from datetime import date
from pathlib import Path
from typing import Optional, Protocol, Sequence

import structlog

from shared_types import SymptomIntensity

from .models import MoodEvent, PeriodEvent, SymptomEvent

logger = structlog.get_logger()


class EventSource(Protocol):
    def periods(self) -> list[PeriodEvent]: ...

    def symptoms(self) -> list[SymptomEvent]: ...

    def moods(self) -> list[MoodEvent]: ...


class StaticEventSource:
    """Fixed in-memory event collections."""

    def __init__(
        self,
        periods: Sequence[PeriodEvent] = (),
        symptoms: Sequence[SymptomEvent] = (),
        moods: Sequence[MoodEvent] = (),
    ):
        self._periods = list(periods)
        self._symptoms = list(symptoms)
        self._moods = list(moods)

    def periods(self) -> list[PeriodEvent]:
        return sorted(self._periods, key=lambda p: p.start_date)

    def symptoms(self) -> list[SymptomEvent]:
        return list(self._symptoms)

    def moods(self) -> list[MoodEvent]:
        return list(self._moods)


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


class JsonEventSource:
    """Events stored in a single JSON file with ``periods``, ``symptoms`` and ``moods`` arrays."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _load(self) -> dict:
        if not self.path.exists():
            return {"periods": [], "symptoms": [], "moods": []}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid events file {self.path}: {e}") from e
        return {
            "periods": data.get("periods", []),
            "symptoms": data.get("symptoms", []),
            "moods": data.get("moods", []),
        }

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
        logger.debug("events_saved", path=str(self.path))

    def periods(self) -> list[PeriodEvent]:
        events = [
            PeriodEvent(
                start_date=date.fromisoformat(p["start_date"]),
                end_date=_parse_date(p.get("end_date")),
                notes=p.get("notes"),
            )
            for p in self._load()["periods"]
        ]
        return sorted(events, key=lambda p: p.start_date)

    def symptoms(self) -> list[SymptomEvent]:
        return [
            SymptomEvent(
                name=s["name"],
                date=date.fromisoformat(s["date"]),
                intensity=SymptomIntensity(s.get("intensity", "mild")),
                notes=s.get("notes"),
            )
            for s in self._load()["symptoms"]
        ]

    def moods(self) -> list[MoodEvent]:
        return [
            MoodEvent(mood=m["mood"], date=date.fromisoformat(m["date"]), intensity=int(m.get("intensity", 3)))
            for m in self._load()["moods"]
        ]

    def add_period(self, event: PeriodEvent) -> None:
        data = self._load()
        data["periods"].append(
            {
                "start_date": event.start_date.isoformat(),
                "end_date": event.end_date.isoformat() if event.end_date else None,
                "notes": event.notes,
            }
        )
        self._save(data)

    def add_symptom(self, event: SymptomEvent) -> None:
        data = self._load()
        data["symptoms"].append(
            {
                "name": event.name,
                "date": event.date.isoformat(),
                "intensity": str(event.intensity),
                "notes": event.notes,
            }
        )
        self._save(data)

    def add_mood(self, event: MoodEvent) -> None:
        if not 1 <= event.intensity <= 5:
            raise ValueError(f"Mood intensity must be 1-5, got {event.intensity}")
        data = self._load()
        data["moods"].append(
            {"mood": event.mood, "date": event.date.isoformat(), "intensity": event.intensity}
        )
        self._save(data)
