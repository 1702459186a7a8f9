"""Simulated insight backend.

Stands in for a richer remote service: data sync, enhanced heuristic insights,
feedback submission and the data-sharing consent check. Every call goes
through the dispatcher and a per-endpoint minimum start spacing, with
configurable latency and failure injection.
"""

import asyncio
import random
import uuid
from collections import deque
from datetime import date, datetime, time, timedelta
from typing import Optional

import structlog

from shared_types import InsightCategory, InsightPriority, InsightSource, InsightType

from .dispatcher import MinIntervalGate, RequestDispatcher
from .models import DataSummary, Insight, new_insight_id

logger = structlog.get_logger().bind(source="backend")

MAX_BACKEND_INSIGHTS = 3
PREDICTION_WINDOW_DAYS = 7
FEEDBACK_LOG_SIZE = 50


class BackendUnavailableError(Exception):
    """Simulated transient backend failure."""


class SimulatedInsightBackend:
    """Enhanced heuristic strategy plus feedback sink and consent check."""

    name = "enhanced_backend"

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        gate: Optional[MinIntervalGate] = None,
        sync_latency: tuple[float, float] = (0.8, 1.2),
        generate_latency: tuple[float, float] = (1.2, 1.8),
        feedback_latency: float = 0.3,
        sync_failure_rate: float = 0.05,
        generate_failure_rate: float = 0.03,
        consent_required: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self.dispatcher = dispatcher
        self.gate = gate or MinIntervalGate(1.0)
        self.sync_latency = sync_latency
        self.generate_latency = generate_latency
        self.feedback_latency = feedback_latency
        self.sync_failure_rate = sync_failure_rate
        self.generate_failure_rate = generate_failure_rate
        self.consent_required = consent_required
        self.rng = rng or random.Random()
        self.feedback_log: deque[tuple[str, dict]] = deque(maxlen=FEEDBACK_LOG_SIZE)

    async def _pause(self, latency: tuple[float, float] | float) -> None:
        if isinstance(latency, tuple):
            low, high = latency
            delay = low + self.rng.random() * (high - low)
        else:
            delay = latency
        if delay > 0:
            await asyncio.sleep(delay)

    def _maybe_fail(self, rate: float, message: str) -> None:
        if rate > 0 and self.rng.random() < rate:
            raise BackendUnavailableError(message)

    async def sync_user_data(self, summary: DataSummary) -> dict:
        async def work():
            await self.gate.wait()
            await self._pause(self.sync_latency)
            logger.info(
                "backend_sync",
                periods=summary.cycle.total_periods,
                symptoms=len(summary.symptom_stats),
                moods=len(summary.mood_stats),
            )
            self._maybe_fail(self.sync_failure_rate, "Temporary sync failure")
            return {"success": True, "sync_id": f"sync_{uuid.uuid4().hex[:10]}"}

        return await self.dispatcher.submit(work)

    async def generate_insights(self, summary: DataSummary) -> list[Insight]:
        async def work():
            await self.gate.wait()
            await self._pause(self.generate_latency)
            self._maybe_fail(self.generate_failure_rate, "AI service temporarily unavailable")
            return enhanced_insights(summary)

        return await self.dispatcher.submit(work)

    async def generate(self, summary: DataSummary, max_insights: int = 5) -> list[Insight]:
        """Strategy entry point: sync, then generate."""
        result = await self.sync_user_data(summary)
        logger.info("backend_synced", sync_id=result["sync_id"])
        insights = await self.generate_insights(summary)
        return insights[:max_insights]

    async def submit(self, insight_id: str, feedback: dict) -> dict:
        """Feedback sink."""

        async def work():
            await self.gate.wait()
            await self._pause(self.feedback_latency)
            logger.info("backend_feedback", insight_id=insight_id, type=feedback.get("type"))
            self.feedback_log.append((insight_id, feedback))
            return {"success": True}

        return await self.dispatcher.submit(work)

    async def requires_consent(self) -> bool:
        async def work():
            logger.debug("backend_consent_check")
            return self.consent_required

        return await self.dispatcher.submit(work)


def _ai_insight(key: str, now: datetime, **kwargs) -> Insight:
    return Insight(id=new_insight_id(f"ai-{key}"), source=InsightSource.AI, generated_at=now, **kwargs)


def enhanced_insights(
    summary: DataSummary, now: Optional[datetime] = None
) -> list[Insight]:
    """Richer heuristic insights, as a remote model might phrase them."""
    now = now or datetime.now()
    today: date = now.date()
    cycle = summary.cycle
    insights = []

    if cycle.total_periods >= 3 and 21 <= cycle.average_length <= 35:
        insights.append(
            _ai_insight(
                "cycle",
                now,
                type=InsightType.PATTERN,
                category=InsightCategory.PERIOD,
                title="Healthy Cycle Pattern Detected",
                content=(
                    f"Your cycle shows excellent regularity with an average length of "
                    f"{cycle.average_length} days. This consistency indicates balanced hormones "
                    "and good reproductive health. Keep maintaining your current lifestyle habits!"
                ),
                confidence=0.92,
                priority=InsightPriority.LOW,
                data_points=["cycle-regularity", "hormone-balance"],
                tags=["cycle-regularity", "hormonal-health", "positive-feedback"],
            )
        )

    if len(summary.symptom_stats) >= 2:
        physical = any(
            keyword in s.name.lower()
            for s in summary.symptom_stats[:2]
            for keyword in ("cramp", "headache", "bloat")
        )
        if physical:
            insights.append(
                _ai_insight(
                    "symptom",
                    now,
                    type=InsightType.RECOMMENDATION,
                    category=InsightCategory.SYMPTOMS,
                    title="Personalized Symptom Management",
                    content=(
                        "Based on your symptom patterns, consider magnesium supplements "
                        "(300-400mg daily) starting 10 days before your period, which studies "
                        "associate with reduced cramping. Gentle yoga or stretching during "
                        "symptomatic days can also help."
                    ),
                    confidence=0.85,
                    priority=InsightPriority.MEDIUM,
                    data_points=["symptom-frequency", "evidence-based-treatment"],
                    tags=["magnesium", "supplements", "cramp-relief", "evidence-based"],
                )
            )

    if summary.mood_stats and summary.mood_stats[0].mood in ("anxious", "irritable"):
        mood = summary.mood_stats[0].mood
        insights.append(
            _ai_insight(
                "mood",
                now,
                type=InsightType.CORRELATION,
                category=InsightCategory.MOOD,
                title="Cycle-Mood Connection Identified",
                content=(
                    f"Your {mood} feelings appear to correlate with your luteal phase "
                    "(days 15-28 of your cycle), when progesterone levels fluctuate. Increasing "
                    "omega-3 fatty acids may help stabilize mood naturally."
                ),
                confidence=0.78,
                priority=InsightPriority.MEDIUM,
                data_points=["mood-cycle-correlation", "hormonal-influence"],
                tags=["mood-correlation", "luteal-phase", "omega-3", "natural-remedies"],
            )
        )

    predicted = cycle.predicted_next_period
    if predicted:
        days_until = (predicted - today).days
        if 0 <= days_until <= PREDICTION_WINDOW_DAYS:
            insights.append(
                _ai_insight(
                    "prediction",
                    now,
                    type=InsightType.PREDICTION,
                    category=InsightCategory.PERIOD,
                    title="Period Prediction & Preparation",
                    content=(
                        f"Based on your cycle pattern, your next period is likely to start in "
                        f"{days_until} days. Consider increasing iron-rich foods, staying "
                        "hydrated, and having your preferred period products ready."
                    ),
                    confidence=0.88,
                    priority=InsightPriority.HIGH,
                    data_points=["cycle-prediction", "pattern-analysis"],
                    tags=["period-prediction", "preparation", "iron-rich-foods", "pms"],
                    expires_at=datetime.combine(predicted + timedelta(days=2), time.min),
                )
            )

    if summary.symptom_stats or summary.mood_stats:
        insights.append(
            _ai_insight(
                "wellness",
                now,
                type=InsightType.HEALTH_TIP,
                category=InsightCategory.WELLNESS,
                title="Holistic Wellness Optimization",
                content=(
                    "Your tracking data suggests you could benefit from cycle syncing your "
                    "lifestyle. During your follicular phase, focus on higher-intensity workouts "
                    "and new projects. During your luteal phase, prioritize gentle exercise, "
                    "self-care, and complex carbohydrates to support stable energy and mood."
                ),
                confidence=0.82,
                priority=InsightPriority.MEDIUM,
                data_points=["cycle-syncing", "lifestyle-optimization"],
                tags=["cycle-syncing", "lifestyle-optimization", "follicular-phase", "luteal-phase"],
            )
        )

    return insights[:MAX_BACKEND_INSIGHTS]
