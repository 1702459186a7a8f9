"""Remote text-completion oracle strategy.

Builds a prompt from the summary, sends it through the dispatcher, and decodes
the JSON reply into Insight records. Items carrying an unknown type, category,
priority or source are rejected rather than coerced.
"""

import asyncio
import json
import math
import re
from datetime import datetime, time, timedelta
from typing import Optional, Protocol

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from llm import LLMProvider, LLMRateLimitError
from shared_types import InsightCategory, InsightPriority, InsightSource, InsightType

from .dispatcher import MinIntervalGate, RequestDispatcher
from .models import DataSummary, Insight, new_insight_id
from .prompts import PromptTemplates, build_insight_prompt
from .retry import remote_retry

logger = structlog.get_logger().bind(source="oracle")

_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0
DEFAULT_CONFIDENCE = 0.7
PREDICTION_GRACE_DAYS = 2

_ENUM_FIELDS = ("type", "category", "priority", "source")
_LIST_FIELDS = ("dataPoints", "data_points", "tags")


class OracleResponseError(ValueError):
    """Oracle reply could not be decoded into insights."""


class TextOracle(Protocol):
    """Opaque text-completion backend."""

    async def complete(self, system: str, prompt: str) -> str: ...


class RemoteInsightPayload(BaseModel):
    """One insight object as returned by the oracle."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: InsightType = InsightType.HEALTH_TIP
    category: InsightCategory = InsightCategory.GENERAL
    title: str = "Health Insight"
    content: str = "Keep tracking your cycle for personalized insights."
    confidence: float = DEFAULT_CONFIDENCE
    priority: InsightPriority = InsightPriority.MEDIUM
    source: Optional[InsightSource] = None
    data_points: list[str] = Field(default_factory=lambda: ["ai-generated"], alias="dataPoints")
    tags: list[str] = Field(default_factory=lambda: ["ai-generated"])

    @model_validator(mode="before")
    @classmethod
    def drop_empty_values(cls, data):
        """Treat null/blank values as missing so field defaults apply."""
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if key in _ENUM_FIELDS and isinstance(value, str):
                value = value.strip().lower()
            if key in _LIST_FIELDS and not isinstance(value, list):
                continue
            cleaned[key] = value
        return cleaned

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        if not math.isfinite(v):
            return DEFAULT_CONFIDENCE
        return min(max(v, MIN_CONFIDENCE), MAX_CONFIDENCE)

    def to_insight(self, summary: DataSummary, now: datetime, index: int) -> Insight:
        expires_at = None
        predicted = summary.cycle.predicted_next_period
        if self.type == InsightType.PREDICTION and predicted and predicted > now.date():
            expires_at = datetime.combine(predicted + timedelta(days=PREDICTION_GRACE_DAYS), time.min)

        return Insight(
            id=new_insight_id(f"ai-insight-{index}"),
            type=self.type,
            category=self.category,
            title=self.title,
            content=self.content,
            confidence=self.confidence,
            priority=self.priority,
            source=InsightSource.AI,
            generated_at=now,
            data_points=[str(d) for d in self.data_points],
            tags=[str(t) for t in self.tags],
            expires_at=expires_at,
        )


def parse_oracle_response(
    text: str,
    summary: DataSummary,
    max_insights: int = 5,
    now: Optional[datetime] = None,
) -> list[Insight]:
    """Decode an oracle reply into insights.

    Raises:
        OracleResponseError: reply holds no parseable JSON array
    """
    now = now or datetime.now()
    cleaned = _FENCE_RE.sub("", text.strip())
    match = _ARRAY_RE.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Invalid JSON from oracle: {e}") from e
    if not isinstance(data, list):
        raise OracleResponseError(f"Expected JSON array, got {type(data).__name__}")

    insights = []
    for index, raw in enumerate(data):
        if not isinstance(raw, dict):
            logger.warning("oracle_item_rejected", index=index, reason="not an object")
            continue
        try:
            payload = RemoteInsightPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning("oracle_item_rejected", index=index, error=str(e))
            continue
        insights.append(payload.to_insight(summary, now, index))

    return insights[:max_insights]


class ProviderOracle:
    """Oracle backed by an llm provider; the blocking SDK call runs in a worker thread."""

    def __init__(self, provider: LLMProvider, max_tokens: int = 2000):
        self.provider = provider
        self.max_tokens = max_tokens

    async def complete(self, system: str, prompt: str) -> str:
        return await asyncio.to_thread(self.provider.complete, system, prompt, self.max_tokens)


class HTTPCompletionOracle:
    """Oracle reached over HTTP: POST chat messages, read ``completion`` from the reply."""

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        headers: Optional[dict] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self._client = client

    async def complete(self, system: str, prompt: str) -> str:
        body = {
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ]
        }
        if self._client is not None:
            response = await self._client.post(self.url, json=body, headers=self.headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=body, headers=self.headers)
        response.raise_for_status()

        data = response.json()
        completion = data.get("completion") if isinstance(data, dict) else None
        if not isinstance(completion, str):
            raise OracleResponseError("Oracle reply has no 'completion' text")
        return completion


class OracleStrategy:
    """Remote-oracle insight strategy gated by the dispatcher."""

    name = "remote_oracle"

    RETRYABLE = (LLMRateLimitError, httpx.TransportError, asyncio.TimeoutError)

    def __init__(
        self,
        oracle: TextOracle,
        dispatcher: RequestDispatcher,
        gate: Optional[MinIntervalGate] = None,
        timeout: float = 30.0,
        retry_attempts: int = 2,
        retry_min_wait: float = 2.0,
        retry_max_wait: float = 30.0,
    ):
        self.oracle = oracle
        self.dispatcher = dispatcher
        self.gate = gate
        self.timeout = timeout
        self._complete = remote_retry(
            max_attempts=retry_attempts,
            min_wait=retry_min_wait,
            max_wait=retry_max_wait,
            exceptions=self.RETRYABLE,
        )(self._complete_once)

    async def _complete_once(self, prompt: str) -> str:
        async def work():
            if self.gate:
                await self.gate.wait()
            return await asyncio.wait_for(
                self.oracle.complete(PromptTemplates.SYSTEM, prompt), timeout=self.timeout
            )

        return await self.dispatcher.submit(work)

    async def generate(self, summary: DataSummary, max_insights: int = 5) -> list[Insight]:
        """Ask the oracle for insights. Raises on transport or parse failure."""
        prompt = build_insight_prompt(summary, max_insights=max_insights)
        text = await self._complete(prompt)
        insights = parse_oracle_response(text, summary, max_insights=max_insights)
        logger.info("oracle_insights_parsed", count=len(insights))
        return insights
