"""Insight store and lifecycle manager.

Owns the authoritative insight collection for one user. Every mutation goes
through this class; read methods return copies so callers never hold the
stored list.
"""

import asyncio
import copy
import json
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

import structlog

from shared_types import FeedbackType, InsightCategory, InsightPriority

from .engine import InsightEngine, clamp_max_insights
from .events import EventSource
from .models import GenerationOptions, Insight, InsightFeedback
from .storage import BlobStore
from .summarizer import summarize

logger = structlog.get_logger()

INSIGHTS_STORAGE_KEY = "ai_insights"
LAST_SYNC_STORAGE_KEY = "insights_last_sync"

RETENTION_CAP = 15
AUTO_GENERATE_MIN_ACTIVE = 3
AUTO_GENERATE_BATCH = 5
AUTO_GENERATE_INTERVAL = timedelta(hours=24)


class FeedbackSubmissionError(Exception):
    """Feedback sink reported failure."""


class FeedbackSink(Protocol):
    async def submit(self, insight_id: str, feedback: dict) -> dict: ...


class InsightManager:
    """Generation, persistence, lifecycle and queries for a user's insights."""

    def __init__(
        self,
        engine: InsightEngine,
        store: BlobStore,
        events: EventSource,
        feedback_sink: Optional[FeedbackSink] = None,
        retention_cap: int = RETENTION_CAP,
        auto_generate_min_active: int = AUTO_GENERATE_MIN_ACTIVE,
        auto_generate_interval: timedelta = AUTO_GENERATE_INTERVAL,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.engine = engine
        self.store = store
        self.events = events
        self.feedback_sink = feedback_sink
        self.retention_cap = retention_cap
        self.auto_generate_min_active = auto_generate_min_active
        self.auto_generate_interval = auto_generate_interval
        self._clock = clock
        self._insights: list[Insight] = []
        self._last_sync_at: Optional[datetime] = None
        self._generating = False
        self._background: Optional[asyncio.Task] = None
        self._load()

    # --- persistence ---

    def _load(self) -> None:
        raw = self.store.get(INSIGHTS_STORAGE_KEY)
        if raw:
            try:
                self._insights = [Insight.from_dict(d) for d in json.loads(raw)]
            except (ValueError, KeyError, TypeError) as e:
                logger.error("insights_load_failed", error=str(e))
                self._insights = []

        raw_sync = self.store.get(LAST_SYNC_STORAGE_KEY)
        if raw_sync:
            try:
                self._last_sync_at = datetime.fromisoformat(raw_sync.decode())
            except (ValueError, UnicodeDecodeError) as e:
                logger.error("last_sync_load_failed", error=str(e))

    def _save(self) -> None:
        payload = json.dumps([i.to_dict() for i in self._insights])
        self.store.set(INSIGHTS_STORAGE_KEY, payload.encode())

    def _record_sync(self, when: datetime) -> None:
        self._last_sync_at = when
        self.store.set(LAST_SYNC_STORAGE_KEY, when.isoformat().encode())

    @property
    def last_sync_at(self) -> Optional[datetime]:
        return self._last_sync_at

    @property
    def is_generating(self) -> bool:
        return self._generating

    # --- generation ---

    async def generate(self, options: Optional[GenerationOptions] = None) -> list[Insight]:
        """Summarize events, run the engine chain, merge and persist.

        Returns copies of the insights added to the collection.
        """
        options = options or GenerationOptions()
        if self._generating:
            logger.info("generate_skipped", reason="already_generating")
            return []

        self._generating = True
        try:
            summary = summarize(self.events.periods(), self.events.symptoms(), self.events.moods())
            candidates = await self.engine.generate(
                summary,
                max_insights=options.max_insights,
                use_remote=options.use_remote,
            )
            now = self._clock()
            added = self._merge(candidates, options, now)
            self._record_sync(now)
            logger.info(
                "insights_merged",
                candidates=len(candidates),
                added=len(added),
                stored=len(self._insights),
                force_refresh=options.force_refresh,
            )
            return copy.deepcopy(added)
        finally:
            self._generating = False

    def _merge(self, candidates: list[Insight], options: GenerationOptions, now: datetime) -> list[Insight]:
        batch = list(candidates)
        if options.categories:
            wanted = {InsightCategory(c) for c in options.categories}
            batch = [i for i in batch if i.category in wanted]
        if not options.include_expired:
            batch = [i for i in batch if not i.is_expired(now)]
        batch = batch[: clamp_max_insights(options.max_insights, self.engine.max_insights_ceiling)]

        if options.force_refresh:
            self._insights = batch[: self.retention_cap]
            self._save()
            return list(self._insights)

        seen = {i.title.lower() for i in self._insights if not i.is_dismissed}
        fresh = []
        for insight in batch:
            key = insight.title.lower()
            if key in seen:
                logger.debug("insight_deduplicated", title=insight.title)
                continue
            seen.add(key)
            fresh.append(insight)

        if fresh:
            self._insights = (fresh + self._insights)[: self.retention_cap]
            self._save()
        return fresh

    async def refresh(self) -> list[Insight]:
        """Regenerate and replace the collection once the new batch is ready."""
        return await self.generate(GenerationOptions(force_refresh=True))

    def should_auto_generate(self) -> bool:
        now = self._clock()
        if len(self._active(now)) >= self.auto_generate_min_active:
            return False
        if self._last_sync_at and now - self._last_sync_at <= self.auto_generate_interval:
            return False
        return bool(self.events.periods()) and bool(self.events.symptoms())

    async def generate_if_stale(self) -> list[Insight]:
        """Run generate() inline when the collection is stale and thin.

        For callers without a long-lived loop, such as the CLI read commands.
        """
        if self._generating or not self.should_auto_generate():
            return []
        logger.info("auto_generate_inline")
        return await self.generate(GenerationOptions(max_insights=AUTO_GENERATE_BATCH))

    def maybe_schedule_generation(self) -> Optional[asyncio.Task]:
        """Start a background generate() when the collection is stale and thin.

        Must be called from a running event loop. Returns the task, if any.
        """
        if self._generating or (self._background and not self._background.done()):
            return None
        if not self.should_auto_generate():
            return None
        logger.info("auto_generate_scheduled")
        self._background = asyncio.get_running_loop().create_task(
            self.generate(GenerationOptions(max_insights=AUTO_GENERATE_BATCH))
        )
        self._background.add_done_callback(self._log_background_failure)
        return self._background

    @staticmethod
    def _log_background_failure(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("auto_generate_failed", error=str(task.exception()))

    # --- lifecycle ---

    def _find(self, insight_id: str) -> Optional[Insight]:
        return next((i for i in self._insights if i.id == insight_id), None)

    def _update(self, insight_id: str, **changes) -> bool:
        insight = self._find(insight_id)
        if insight is None:
            logger.debug("insight_not_found", insight_id=insight_id)
            return False
        for name, value in changes.items():
            setattr(insight, name, value)
        self._save()
        return True

    def mark_as_read(self, insight_id: str) -> bool:
        return self._update(insight_id, is_read=True)

    def dismiss(self, insight_id: str) -> bool:
        return self._update(insight_id, is_dismissed=True)

    def mark_action_taken(self, insight_id: str) -> bool:
        return self._update(insight_id, action_taken=True, is_read=True)

    async def submit_feedback(self, feedback: InsightFeedback) -> bool:
        """Record feedback once. Local state changes only after the sink confirms.

        Returns False when the insight is unknown or already has feedback.

        Raises:
            FeedbackSubmissionError: sink answered ``success: false``
            Exception: whatever the sink raised, unchanged
        """
        insight = self._find(feedback.insight_id)
        if insight is None:
            logger.info("feedback_unknown_insight", insight_id=feedback.insight_id)
            return False
        if insight.feedback is not None:
            logger.info("feedback_already_recorded", insight_id=feedback.insight_id)
            return False

        if self.feedback_sink is not None:
            try:
                result = await self.feedback_sink.submit(feedback.insight_id, feedback.to_payload())
            except Exception as e:
                logger.error("feedback_submit_failed", insight_id=feedback.insight_id, error=str(e))
                raise
            if not result or not result.get("success"):
                logger.error("feedback_submit_rejected", insight_id=feedback.insight_id)
                raise FeedbackSubmissionError(f"Failed to submit feedback for {feedback.insight_id}")

        # Re-resolve: the collection may have changed while awaiting the sink
        insight = self._find(feedback.insight_id)
        if insight is None or insight.feedback is not None:
            return False
        insight.feedback = feedback.to_record()
        insight.is_read = True
        self._save()
        return True

    def purge_dismissed(self) -> int:
        before = len(self._insights)
        self._insights = [i for i in self._insights if not i.is_dismissed]
        removed = before - len(self._insights)
        if removed:
            self._save()
        return removed

    # --- queries (active insights only) ---

    def _active(self, now: Optional[datetime] = None) -> list[Insight]:
        now = now or self._clock()
        return [i for i in self._insights if i.is_active(now)]

    def insights(self) -> list[Insight]:
        return copy.deepcopy(self._active())

    def get(self, insight_id: str) -> Optional[Insight]:
        insight = self._find(insight_id)
        return copy.deepcopy(insight) if insight else None

    def get_insights_by_category(self, category: InsightCategory) -> list[Insight]:
        return copy.deepcopy([i for i in self._active() if i.category == category])

    def get_insights_by_priority(self, priority: InsightPriority) -> list[Insight]:
        return copy.deepcopy([i for i in self._active() if i.priority == priority])

    def search_insights(self, query: str) -> list[Insight]:
        return copy.deepcopy([i for i in self._active() if i.matches(query)])

    def get_insight_analytics(self) -> dict:
        active = self._active()
        total = len(active)
        category_breakdown: dict[str, int] = {}
        type_breakdown: dict[str, int] = {}
        feedback_stats = {"helpful": 0, "not_helpful": 0, "very_helpful": 0}

        for insight in active:
            category_breakdown[str(insight.category)] = category_breakdown.get(str(insight.category), 0) + 1
            type_breakdown[str(insight.type)] = type_breakdown.get(str(insight.type), 0) + 1
            if insight.feedback:
                feedback_stats[FeedbackType(insight.feedback.type).value] += 1

        return {
            "total_insights": total,
            "read_insights": sum(1 for i in active if i.is_read),
            "action_taken_count": sum(1 for i in active if i.action_taken),
            "average_confidence": sum(i.confidence for i in active) / total if total else 0.0,
            "category_breakdown": category_breakdown,
            "type_breakdown": type_breakdown,
            "feedback_stats": feedback_stats,
        }
