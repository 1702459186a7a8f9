"""Deterministic rule-based insight generation.

Rules are evaluated in a fixed order and each may append one insight. The
result is capped at three, and a generic wellness tip is emitted when no other
rule fires, so the output is never empty.
"""

from datetime import datetime
from typing import Optional

from shared_types import InsightCategory, InsightPriority, InsightSource, InsightType

from .models import DataSummary, Insight, new_insight_id

MAX_RULE_INSIGHTS = 3
SHORT_CYCLE_DAYS = 21
LONG_CYCLE_DAYS = 35
MIN_PERIODS_FOR_CYCLE_RULES = 3


def _rule_insight(key: str, now: datetime, **kwargs) -> Insight:
    return Insight(
        id=new_insight_id(f"insight-{key}"),
        source=InsightSource.RULE_BASED,
        generated_at=now,
        **kwargs,
    )


def _symptom_rules(summary: DataSummary, now: datetime) -> list[Insight]:
    if not summary.symptom_stats:
        return []
    top = summary.symptom_stats[0]
    name = top.name.lower()
    out = []

    if "cramp" in name and top.frequency >= 3:
        out.append(
            _rule_insight(
                "cramps",
                now,
                type=InsightType.PATTERN,
                category=InsightCategory.SYMPTOMS,
                title="Recurring Cramp Pattern Detected",
                content=(
                    f"We've noticed you often experience {name} ({top.frequency} times recently). "
                    "This is common before and during periods. Consider trying a warm bath, "
                    "gentle exercise, or over-the-counter pain relief to find comfort."
                ),
                confidence=0.8,
                priority=InsightPriority.MEDIUM,
                data_points=[f"symptom-frequency-{top.name}"],
                tags=["cramps", "pain-management", "menstrual-symptoms"],
            )
        )

    if "headache" in name and top.frequency >= 2:
        out.append(
            _rule_insight(
                "headache",
                now,
                type=InsightType.RECOMMENDATION,
                category=InsightCategory.SYMPTOMS,
                title="Headache Management Tips",
                content=(
                    f"You've logged headaches {top.frequency} times recently. Hormonal changes "
                    "during your cycle can trigger headaches. Stay hydrated, maintain regular "
                    "sleep, and consider tracking potential triggers like stress or certain foods."
                ),
                confidence=0.7,
                priority=InsightPriority.MEDIUM,
                data_points=[f"symptom-frequency-{top.name}"],
                tags=["headaches", "hormonal-triggers", "hydration"],
            )
        )
    return out


def _mood_rules(summary: DataSummary, now: datetime) -> list[Insight]:
    if not summary.mood_stats:
        return []
    top = summary.mood_stats[0]
    out = []

    if top.mood == "anxious" and top.frequency >= 3:
        out.append(
            _rule_insight(
                "anxiety",
                now,
                type=InsightType.RECOMMENDATION,
                category=InsightCategory.MOOD,
                title="Managing Cycle-Related Anxiety",
                content=(
                    f"You've been feeling anxious frequently ({top.frequency} times recently). "
                    "Hormonal fluctuations can affect mood. Try deep breathing exercises, "
                    "mindfulness meditation, or gentle yoga. If anxiety persists, consider "
                    "speaking with a healthcare provider."
                ),
                confidence=0.75,
                priority=InsightPriority.HIGH,
                data_points=[f"mood-frequency-{top.mood}"],
                tags=["anxiety", "mental-health", "mindfulness", "hormonal-changes"],
            )
        )

    if top.mood == "irritable" and top.frequency >= 2:
        out.append(
            _rule_insight(
                "irritability",
                now,
                type=InsightType.HEALTH_TIP,
                category=InsightCategory.MOOD,
                title="Understanding Cycle-Related Irritability",
                content=(
                    "Feeling irritable is common during certain phases of your cycle. Regular "
                    "exercise, adequate sleep, and maintaining stable blood sugar levels through "
                    "balanced meals can help manage these feelings."
                ),
                confidence=0.7,
                priority=InsightPriority.MEDIUM,
                data_points=[f"mood-frequency-{top.mood}"],
                tags=["irritability", "mood-management", "lifestyle", "nutrition"],
            )
        )
    return out


def _cycle_rule(summary: DataSummary, now: datetime) -> Optional[Insight]:
    cycle = summary.cycle
    if cycle.total_periods < MIN_PERIODS_FOR_CYCLE_RULES:
        return None
    length = cycle.average_length

    if length < SHORT_CYCLE_DAYS:
        return _rule_insight(
            "short-cycle",
            now,
            type=InsightType.PREDICTION,
            category=InsightCategory.PERIOD,
            title="Short Cycle Pattern Noticed",
            content=(
                f"Your average cycle length is {length} days, which is shorter than typical "
                "(21-35 days). While this can be normal for some people, consider tracking for "
                "a few more cycles and discussing with your healthcare provider if you have concerns."
            ),
            confidence=0.8,
            priority=InsightPriority.HIGH,
            data_points=["cycle-length-average"],
            tags=["cycle-length", "short-cycles", "healthcare-consultation"],
        )
    if length > LONG_CYCLE_DAYS:
        return _rule_insight(
            "long-cycle",
            now,
            type=InsightType.PREDICTION,
            category=InsightCategory.PERIOD,
            title="Longer Cycle Pattern Observed",
            content=(
                f"Your average cycle length is {length} days. While cycles can vary, consistently "
                "longer cycles might be worth discussing with a healthcare provider, especially "
                "if this is a change from your normal pattern."
            ),
            confidence=0.8,
            priority=InsightPriority.HIGH,
            data_points=["cycle-length-average"],
            tags=["cycle-length", "long-cycles", "healthcare-consultation"],
        )
    return _rule_insight(
        "regular-cycle",
        now,
        type=InsightType.HEALTH_TIP,
        category=InsightCategory.PERIOD,
        title="Healthy Cycle Pattern",
        content=(
            f"Great news! Your average cycle length of {length} days falls within the typical "
            "range. This regularity suggests your hormonal balance is healthy. Keep up with "
            "your tracking!"
        ),
        confidence=0.9,
        priority=InsightPriority.LOW,
        data_points=["cycle-length-average"],
        tags=["healthy-cycle", "regular-periods", "hormonal-balance"],
    )


def _correlation_rule(summary: DataSummary, now: datetime) -> Optional[Insight]:
    if len(summary.symptom_stats) < 2 or not summary.mood_stats:
        return None
    physical = any(
        "cramp" in s.name.lower() or "bloat" in s.name.lower() for s in summary.symptom_stats
    )
    emotional = any(m.mood in ("irritable", "anxious") for m in summary.mood_stats)
    if not (physical and emotional):
        return None

    return _rule_insight(
        "correlation",
        now,
        type=InsightType.CORRELATION,
        category=InsightCategory.GENERAL,
        title="Mind-Body Connection Observed",
        content=(
            "We've noticed you experience both physical symptoms and mood changes around your "
            "cycle. This mind-body connection is completely normal. Managing physical discomfort "
            "through heat therapy, gentle movement, and stress reduction can help with both "
            "physical and emotional symptoms."
        ),
        confidence=0.7,
        priority=InsightPriority.MEDIUM,
        data_points=["symptom-mood-correlation"],
        tags=["mind-body-connection", "holistic-health", "stress-management"],
    )


def _encouragement(now: datetime) -> Insight:
    return _rule_insight(
        "general",
        now,
        type=InsightType.HEALTH_TIP,
        category=InsightCategory.WELLNESS,
        title="Keep Up the Great Tracking!",
        content=(
            "You're doing an excellent job tracking your cycle and symptoms. This data helps you "
            "understand your body's patterns and can be valuable information to share with "
            "healthcare providers. Consider adding notes about sleep, stress levels, and exercise "
            "to get even more insights."
        ),
        confidence=0.6,
        priority=InsightPriority.LOW,
        data_points=["general-tracking"],
        tags=["tracking-encouragement", "data-collection", "healthcare-communication"],
    )


def generate_rule_based_insights(
    summary: DataSummary, now: Optional[datetime] = None
) -> list[Insight]:
    """Apply the ordered heuristic rules to a summary."""
    now = now or datetime.now()
    insights = _symptom_rules(summary, now) + _mood_rules(summary, now)

    for rule in (_cycle_rule, _correlation_rule):
        insight = rule(summary, now)
        if insight:
            insights.append(insight)

    if not insights:
        insights.append(_encouragement(now))

    return insights[:MAX_RULE_INSIGHTS]
