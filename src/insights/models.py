"""Data models for tracked events, summaries and insights."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from shared_types import (
    FeedbackType,
    InsightCategory,
    InsightPriority,
    InsightSource,
    InsightType,
    SymptomIntensity,
    Trend,
)

# Ordinal mapping for symptom intensity averages
INTENSITY_SCORES = {
    SymptomIntensity.MILD: 1,
    SymptomIntensity.MODERATE: 2,
    SymptomIntensity.SEVERE: 3,
}


@dataclass(frozen=True)
class PeriodEvent:
    start_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SymptomEvent:
    name: str
    date: date
    intensity: SymptomIntensity = SymptomIntensity.MILD
    notes: Optional[str] = None


@dataclass(frozen=True)
class MoodEvent:
    mood: str
    date: date
    intensity: int = 3


@dataclass
class CycleStats:
    average_length: int = 28
    variability: int = 0
    total_periods: int = 0
    last_period_date: Optional[date] = None
    predicted_next_period: Optional[date] = None


@dataclass
class SymptomStat:
    name: str
    frequency: int
    average_intensity: float
    trend: Trend = Trend.STABLE


@dataclass
class MoodStat:
    mood: str
    frequency: int
    average_intensity: float
    trend: Trend = Trend.STABLE


@dataclass
class DataSummary:
    """Statistical digest of a user's tracked events."""

    cycle: CycleStats = field(default_factory=CycleStats)
    symptom_stats: list[SymptomStat] = field(default_factory=list)
    mood_stats: list[MoodStat] = field(default_factory=list)
    recent_symptoms: list[SymptomEvent] = field(default_factory=list)
    recent_moods: list[MoodEvent] = field(default_factory=list)


@dataclass
class FeedbackRecord:
    """Feedback stored on an insight. Never overwritten once set."""

    type: FeedbackType
    submitted_at: datetime = field(default_factory=datetime.now)
    notes: Optional[str] = None
    helpfulness_score: Optional[int] = None


@dataclass
class InsightFeedback:
    """Feedback submission payload."""

    insight_id: str
    type: FeedbackType
    notes: Optional[str] = None
    submitted_at: datetime = field(default_factory=datetime.now)
    helpfulness_score: Optional[int] = None

    def __post_init__(self):
        if self.helpfulness_score is not None and not 1 <= self.helpfulness_score <= 5:
            raise ValueError(f"helpfulness_score must be 1-5, got {self.helpfulness_score}")

    def to_record(self) -> FeedbackRecord:
        return FeedbackRecord(
            type=self.type,
            submitted_at=self.submitted_at,
            notes=self.notes,
            helpfulness_score=self.helpfulness_score,
        )

    def to_payload(self) -> dict:
        """Wire payload for the feedback sink."""
        return {
            "insightId": self.insight_id,
            "type": str(self.type),
            "notes": self.notes,
            "submittedAt": self.submitted_at.isoformat(),
            "helpfulnessScore": self.helpfulness_score,
        }


def new_insight_id(prefix: str = "insight") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass
class Insight:
    """A generated, classified health observation with lifecycle state."""

    type: InsightType
    category: InsightCategory
    title: str
    content: str
    confidence: float
    priority: InsightPriority
    source: InsightSource
    id: str = field(default_factory=new_insight_id)
    generated_at: datetime = field(default_factory=datetime.now)
    tags: list[str] = field(default_factory=list)
    data_points: list[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    is_read: bool = False
    is_dismissed: bool = False
    action_taken: bool = False
    feedback: Optional[FeedbackRecord] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        return not self.is_dismissed and not self.is_expired(now)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title, content and tags."""
        q = query.lower()
        return (
            q in self.title.lower()
            or q in self.content.lower()
            or any(q in tag.lower() for tag in self.tags)
        )

    def to_dict(self) -> dict:
        feedback = None
        if self.feedback:
            feedback = {
                "type": str(self.feedback.type),
                "submitted_at": self.feedback.submitted_at.isoformat(),
                "notes": self.feedback.notes,
                "helpfulness_score": self.feedback.helpfulness_score,
            }
        return {
            "id": self.id,
            "type": str(self.type),
            "category": str(self.category),
            "title": self.title,
            "content": self.content,
            "confidence": self.confidence,
            "priority": str(self.priority),
            "source": str(self.source),
            "generated_at": self.generated_at.isoformat(),
            "tags": list(self.tags),
            "data_points": list(self.data_points),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_read": self.is_read,
            "is_dismissed": self.is_dismissed,
            "action_taken": self.action_taken,
            "feedback": feedback,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Insight":
        fb = data.get("feedback")
        feedback = None
        if fb:
            feedback = FeedbackRecord(
                type=FeedbackType(fb["type"]),
                submitted_at=datetime.fromisoformat(fb["submitted_at"]),
                notes=fb.get("notes"),
                helpfulness_score=fb.get("helpfulness_score"),
            )
        expires = data.get("expires_at")
        return cls(
            id=data["id"],
            type=InsightType(data["type"]),
            category=InsightCategory(data["category"]),
            title=data["title"],
            content=data.get("content", ""),
            confidence=float(data.get("confidence", 0.0)),
            priority=InsightPriority(data.get("priority", InsightPriority.MEDIUM)),
            source=InsightSource(data.get("source", InsightSource.RULE_BASED)),
            generated_at=datetime.fromisoformat(data["generated_at"]),
            tags=list(data.get("tags") or []),
            data_points=list(data.get("data_points") or []),
            expires_at=datetime.fromisoformat(expires) if expires else None,
            is_read=bool(data.get("is_read", False)),
            is_dismissed=bool(data.get("is_dismissed", False)),
            action_taken=bool(data.get("action_taken", False)),
            feedback=feedback,
        )


@dataclass
class GenerationOptions:
    categories: Optional[list[InsightCategory]] = None
    force_refresh: bool = False
    include_expired: bool = False
    max_insights: int = 5
    use_remote: bool = True
