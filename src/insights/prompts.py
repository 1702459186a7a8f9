"""Prompt templates for remote insight generation."""

from .models import DataSummary


class PromptTemplates:
    """Prompts sent to the text-completion oracle."""

    SYSTEM = """You are a women's health AI assistant specializing in menstrual cycle insights. Provide personalized, evidence-based insights in JSON format. Be supportive, informative, and medically accurate. Always recommend consulting healthcare providers for serious concerns."""

    INSIGHTS = """Analyze this menstrual cycle data and provide up to {max_insights} personalized insights in JSON format:

**Cycle Data:**
- Average cycle length: {average_length} days
- Cycle variability: {variability} days
- Total periods tracked: {total_periods}
- Last period: {last_period}
- Predicted next period: {predicted_next}

**Common Symptoms:**
{common_symptoms}

**Recent Symptoms:**
{recent_symptoms}

**Common Moods:**
{common_moods}

**Recent Moods:**
{recent_moods}

Provide insights as a JSON array with this exact structure:
[
  {{
    "type": "pattern|prediction|recommendation|correlation|health_tip|alert|achievement",
    "category": "period|symptoms|mood|fertility|wellness|general|nutrition|sleep|activity",
    "title": "Clear, engaging title",
    "content": "Detailed, personalized insight with actionable advice",
    "confidence": 0.85,
    "priority": "low|medium|high|urgent",
    "dataPoints": ["relevant-data-references"],
    "tags": ["relevant", "searchable", "tags"]
  }}
]

Focus on:
1. Identifying meaningful patterns
2. Providing actionable recommendations
3. Explaining correlations between symptoms/moods and cycle phases
4. Offering evidence-based health tips
5. Being supportive and encouraging

Return only the JSON array, no additional text."""


def _bullets(lines: list[str]) -> str:
    return "\n".join(lines) if lines else "- None recorded"


def build_insight_prompt(summary: DataSummary, max_insights: int = 5) -> str:
    """Render the full summary into the insight prompt."""
    cycle = summary.cycle
    return PromptTemplates.INSIGHTS.format(
        max_insights=max_insights,
        average_length=cycle.average_length,
        variability=cycle.variability,
        total_periods=cycle.total_periods,
        last_period=cycle.last_period_date.isoformat() if cycle.last_period_date else "Not available",
        predicted_next=(
            cycle.predicted_next_period.isoformat() if cycle.predicted_next_period else "Not available"
        ),
        common_symptoms=_bullets(
            [
                f"- {s.name}: {s.frequency} times, avg intensity {s.average_intensity:.1f}"
                for s in summary.symptom_stats
            ]
        ),
        recent_symptoms=_bullets(
            [f"- {s.date.isoformat()}: {s.name} ({s.intensity})" for s in summary.recent_symptoms[:5]]
        ),
        common_moods=_bullets(
            [
                f"- {m.mood}: {m.frequency} times, avg intensity {m.average_intensity:.1f}"
                for m in summary.mood_stats
            ]
        ),
        recent_moods=_bullets(
            [
                f"- {m.date.isoformat()}: {m.mood} (intensity {m.intensity})"
                for m in summary.recent_moods[:5]
            ]
        ),
    )
