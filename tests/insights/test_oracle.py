"""Tests for the remote oracle strategy: prompt, parsing, transports."""

import json
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

import httpx
import pytest

from insights.dispatcher import RequestDispatcher
from insights.models import CycleStats, DataSummary, SymptomEvent, SymptomStat
from insights.oracle import (
    HTTPCompletionOracle,
    OracleResponseError,
    OracleStrategy,
    ProviderOracle,
    parse_oracle_response,
)
from insights.prompts import PromptTemplates, build_insight_prompt
from llm import LLMRateLimitError
from shared_types import InsightCategory, InsightPriority, InsightSource, InsightType

NOW = datetime(2024, 6, 15, 12, 0)

VALID_ITEM = {
    "type": "pattern",
    "category": "symptoms",
    "title": "Cramps cluster before your period",
    "content": "Most cramps land 1-2 days before bleeding starts.",
    "confidence": 0.85,
    "priority": "medium",
    "dataPoints": ["symptom-frequency-cramps"],
    "tags": ["cramps"],
}


def _summary(predicted=None):
    return DataSummary(cycle=CycleStats(average_length=30, total_periods=3, predicted_next_period=predicted))


class ScriptedOracle:
    """Returns queued replies; exceptions in the queue are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, system, prompt):
        self.calls.append((system, prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class TestParseResponse:
    def test_plain_array(self):
        insights = parse_oracle_response(json.dumps([VALID_ITEM]), _summary(), now=NOW)

        assert len(insights) == 1
        insight = insights[0]
        assert insight.type == InsightType.PATTERN
        assert insight.category == InsightCategory.SYMPTOMS
        assert insight.priority == InsightPriority.MEDIUM
        assert insight.source == InsightSource.AI
        assert insight.data_points == ["symptom-frequency-cramps"]
        assert insight.generated_at == NOW
        assert insight.id.startswith("ai-insight-0-")

    def test_code_fence_and_prose(self):
        text = "Here you go:\n```json\n" + json.dumps([VALID_ITEM]) + "\n```\nHope this helps!"
        assert len(parse_oracle_response(text, _summary(), now=NOW)) == 1

    def test_unknown_enum_rejected(self):
        bad = dict(VALID_ITEM, category="astrology")
        insights = parse_oracle_response(json.dumps([bad, VALID_ITEM]), _summary(), now=NOW)
        assert len(insights) == 1
        assert insights[0].category == InsightCategory.SYMPTOMS

    def test_enum_case_normalized(self):
        item = dict(VALID_ITEM, type="PATTERN", priority="High")
        insight = parse_oracle_response(json.dumps([item]), _summary(), now=NOW)[0]
        assert insight.priority == InsightPriority.HIGH

    def test_defaults_for_missing_fields(self):
        insight = parse_oracle_response(json.dumps([{"title": None}]), _summary(), now=NOW)[0]

        assert insight.type == InsightType.HEALTH_TIP
        assert insight.category == InsightCategory.GENERAL
        assert insight.title == "Health Insight"
        assert insight.content == "Keep tracking your cycle for personalized insights."
        assert insight.confidence == 0.7
        assert insight.priority == InsightPriority.MEDIUM
        assert insight.data_points == ["ai-generated"]
        assert insight.tags == ["ai-generated"]

    def test_confidence_clamped(self):
        items = [dict(VALID_ITEM, confidence=3.2), dict(VALID_ITEM, confidence=-1)]
        insights = parse_oracle_response(json.dumps(items), _summary(), now=NOW)
        assert [i.confidence for i in insights] == [1.0, 0.1]

    def test_non_finite_confidence_uses_default(self):
        text = (
            '[{"title": "A", "content": "b", "confidence": NaN},'
            ' {"title": "B", "content": "c", "confidence": Infinity},'
            ' {"title": "C", "content": "d", "confidence": -Infinity}]'
        )
        insights = parse_oracle_response(text, _summary(), now=NOW)
        assert [i.confidence for i in insights] == [0.7, 0.7, 0.7]

    def test_non_object_items_skipped(self):
        insights = parse_oracle_response(json.dumps(["oops", 3, VALID_ITEM]), _summary(), now=NOW)
        assert len(insights) == 1

    def test_truncated_to_max(self):
        insights = parse_oracle_response(json.dumps([VALID_ITEM] * 6), _summary(), max_insights=2, now=NOW)
        assert len(insights) == 2

    def test_not_json_raises(self):
        with pytest.raises(OracleResponseError):
            parse_oracle_response("I cannot help with that.", _summary(), now=NOW)

    def test_object_instead_of_array_raises(self):
        with pytest.raises(OracleResponseError, match="Expected JSON array"):
            parse_oracle_response(json.dumps({"insights": "none"}), _summary(), now=NOW)

    def test_prediction_expiry(self):
        predicted = NOW.date() + timedelta(days=4)
        item = dict(VALID_ITEM, type="prediction", category="period")
        insight = parse_oracle_response(json.dumps([item]), _summary(predicted), now=NOW)[0]
        assert insight.expires_at == datetime.combine(predicted + timedelta(days=2), datetime.min.time())

    def test_prediction_without_future_date_never_expires(self):
        item = dict(VALID_ITEM, type="prediction")
        past = NOW.date() - timedelta(days=1)
        insight = parse_oracle_response(json.dumps([item]), _summary(past), now=NOW)[0]
        assert insight.expires_at is None


class TestPrompt:
    def test_includes_summary(self, today):
        summary = DataSummary(
            cycle=CycleStats(
                average_length=31,
                variability=3,
                total_periods=4,
                last_period_date=date(2024, 6, 1),
                predicted_next_period=date(2024, 7, 2),
            ),
            symptom_stats=[SymptomStat("cramps", 4, 2.5)],
            recent_symptoms=[SymptomEvent("cramps", today)],
        )
        prompt = build_insight_prompt(summary, max_insights=4)

        assert "up to 4 personalized insights" in prompt
        assert "Average cycle length: 31 days" in prompt
        assert "Cycle variability: 3 days" in prompt
        assert "Last period: 2024-06-01" in prompt
        assert "Predicted next period: 2024-07-02" in prompt
        assert "- cramps: 4 times, avg intensity 2.5" in prompt
        assert "- 2024-06-15: cramps (mild)" in prompt
        assert "- None recorded" in prompt  # moods

    def test_empty_summary(self):
        prompt = build_insight_prompt(DataSummary())
        assert "Last period: Not available" in prompt
        assert '"type": "pattern|prediction' in prompt


class TestTransports:
    @pytest.mark.asyncio
    async def test_http_oracle(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"completion": "[]"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        oracle = HTTPCompletionOracle("https://oracle.test/complete", client=client, headers={"Authorization": "Bearer t"})

        assert await oracle.complete("sys", "user prompt") == "[]"
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "user prompt"},
        ]
        assert seen["auth"] == "Bearer t"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_oracle_error_status(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        oracle = HTTPCompletionOracle("https://oracle.test/complete", client=client)
        with pytest.raises(httpx.HTTPStatusError):
            await oracle.complete("sys", "prompt")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_oracle_missing_completion(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"text": "x"})))
        oracle = HTTPCompletionOracle("https://oracle.test/complete", client=client)
        with pytest.raises(OracleResponseError):
            await oracle.complete("sys", "prompt")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_provider_oracle(self):
        provider = MagicMock()
        provider.complete.return_value = "[]"
        oracle = ProviderOracle(provider, max_tokens=500)

        assert await oracle.complete("sys", "prompt") == "[]"
        provider.complete.assert_called_once_with("sys", "prompt", 500)


class TestOracleStrategy:
    @pytest.mark.asyncio
    async def test_generate_through_dispatcher(self):
        oracle = ScriptedOracle(json.dumps([VALID_ITEM, dict(VALID_ITEM, title="Second")]))
        dispatcher = RequestDispatcher()
        strategy = OracleStrategy(oracle, dispatcher)

        insights = await strategy.generate(_summary(), max_insights=1)

        assert [i.title for i in insights] == [VALID_ITEM["title"]]
        system, prompt = oracle.calls[0]
        assert system == PromptTemplates.SYSTEM
        assert "up to 1 personalized insights" in prompt
        assert dispatcher.stats["recent_starts"] == 1

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self):
        oracle = ScriptedOracle(LLMRateLimitError("slow down"), json.dumps([VALID_ITEM]))
        strategy = OracleStrategy(oracle, RequestDispatcher(), retry_min_wait=0, retry_max_wait=0)

        insights = await strategy.generate(_summary())

        assert len(insights) == 1
        assert len(oracle.calls) == 2

    @pytest.mark.asyncio
    async def test_parse_failure_raises(self):
        strategy = OracleStrategy(ScriptedOracle("not json"), RequestDispatcher())
        with pytest.raises(OracleResponseError):
            await strategy.generate(_summary())

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_once(self):
        oracle = ScriptedOracle(ValueError("bad request"), "[]")
        strategy = OracleStrategy(oracle, RequestDispatcher(), retry_min_wait=0, retry_max_wait=0)
        with pytest.raises(ValueError, match="bad request"):
            await strategy.generate(_summary())
        assert len(oracle.calls) == 1
