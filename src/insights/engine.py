"""Insight engine: strategy fallback chain over a DataSummary."""

from typing import Optional, Protocol

import structlog

from .models import DataSummary, Insight
from .rules import generate_rule_based_insights

logger = structlog.get_logger()

DEFAULT_MAX_INSIGHTS = 5
MAX_INSIGHTS_CEILING = 20


class InsightStrategy(Protocol):
    name: str

    async def generate(self, summary: DataSummary, max_insights: int = 5) -> list[Insight]: ...


class ConsentCheck(Protocol):
    async def requires_consent(self) -> bool: ...


def clamp_max_insights(value: Optional[int], ceiling: int = MAX_INSIGHTS_CEILING) -> int:
    if value is None:
        return DEFAULT_MAX_INSIGHTS
    return max(1, min(int(value), ceiling))


class InsightEngine:
    """Produces candidate insights: remote oracle, then enhanced backend, then local rules.

    A later strategy runs only when every earlier one raised, returned nothing,
    or was skipped. The rule-based tail never returns an empty list. Candidates
    are returned to the caller and not retained.
    """

    def __init__(
        self,
        oracle=None,
        backend=None,
        consent: Optional[ConsentCheck] = None,
        remote_enabled: bool = True,
        max_insights_ceiling: int = MAX_INSIGHTS_CEILING,
    ):
        self.remote_strategies: list[InsightStrategy] = [s for s in (oracle, backend) if s is not None]
        self.consent = consent
        self.remote_enabled = remote_enabled
        self.max_insights_ceiling = max_insights_ceiling

    async def _remote_allowed(self, use_remote: bool) -> bool:
        if not (use_remote and self.remote_enabled and self.remote_strategies):
            return False
        if self.consent is None:
            return True
        try:
            if await self.consent.requires_consent():
                logger.info("remote_insights_skipped", reason="consent_required")
                return False
        except Exception as e:
            logger.warning("consent_check_failed", error=str(e))
            return False
        return True

    async def generate(
        self,
        summary: DataSummary,
        max_insights: Optional[int] = DEFAULT_MAX_INSIGHTS,
        use_remote: bool = True,
    ) -> list[Insight]:
        limit = clamp_max_insights(max_insights, self.max_insights_ceiling)

        if await self._remote_allowed(use_remote):
            for strategy in self.remote_strategies:
                try:
                    insights = await strategy.generate(summary, max_insights=limit)
                except Exception as e:
                    logger.warning("insight_strategy_failed", strategy=strategy.name, error=str(e))
                    continue
                if insights:
                    logger.info("insights_generated", strategy=strategy.name, count=len(insights))
                    return insights[:limit]
                logger.info("insight_strategy_empty", strategy=strategy.name)

        insights = generate_rule_based_insights(summary)
        logger.info("insights_generated", strategy="rule_based", count=len(insights))
        return insights[:limit]
