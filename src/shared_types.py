"""Shared enums and types for cycle-insights."""

from enum import StrEnum


class InsightType(StrEnum):
    PATTERN = "pattern"
    PREDICTION = "prediction"
    RECOMMENDATION = "recommendation"
    CORRELATION = "correlation"
    HEALTH_TIP = "health_tip"
    ALERT = "alert"
    ACHIEVEMENT = "achievement"


class InsightCategory(StrEnum):
    PERIOD = "period"
    SYMPTOMS = "symptoms"
    MOOD = "mood"
    FERTILITY = "fertility"
    WELLNESS = "wellness"
    GENERAL = "general"
    NUTRITION = "nutrition"
    SLEEP = "sleep"
    ACTIVITY = "activity"


class InsightPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class InsightSource(StrEnum):
    RULE_BASED = "rule_based"
    AI = "ai"


class FeedbackType(StrEnum):
    HELPFUL = "helpful"
    VERY_HELPFUL = "very_helpful"
    NOT_HELPFUL = "not_helpful"


class SymptomIntensity(StrEnum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class Trend(StrEnum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
