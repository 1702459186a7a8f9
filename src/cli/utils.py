"""Shared CLI utilities."""

import sys
from datetime import timedelta
from typing import Optional

import structlog
from rich.console import Console

from cli.config_models import AppConfig

console = Console()
logger = structlog.get_logger()


def build_oracle_strategy(config: AppConfig, dispatcher):
    """Remote oracle strategy for the configured provider, or None when disabled."""
    from insights.dispatcher import MinIntervalGate
    from insights.oracle import HTTPCompletionOracle, OracleStrategy, ProviderOracle
    from insights.retry import retry_from_config
    from llm import create_llm_provider

    llm_cfg = config.llm
    if llm_cfg.provider == "none":
        return None

    if llm_cfg.provider == "http":
        headers = {"Authorization": f"Bearer {llm_cfg.api_key}"} if llm_cfg.api_key else None
        oracle = HTTPCompletionOracle(
            llm_cfg.base_url, timeout=config.remote.timeout_seconds, headers=headers
        )
    else:
        provider = create_llm_provider(
            provider=llm_cfg.provider, api_key=llm_cfg.api_key, model=llm_cfg.model
        )
        oracle = ProviderOracle(provider, max_tokens=llm_cfg.max_tokens)

    retry_kwargs = retry_from_config(config.retry)
    return OracleStrategy(
        oracle,
        dispatcher,
        gate=MinIntervalGate(config.remote.oracle_min_interval),
        timeout=config.remote.timeout_seconds,
        retry_attempts=retry_kwargs["max_attempts"],
        retry_min_wait=retry_kwargs["min_wait"],
        retry_max_wait=retry_kwargs["max_wait"],
    )


def build_backend(config: AppConfig, dispatcher):
    """Simulated enhanced backend, or None when disabled."""
    from insights.backend import SimulatedInsightBackend
    from insights.dispatcher import MinIntervalGate

    cfg = config.backend
    if not cfg.enabled:
        return None
    return SimulatedInsightBackend(
        dispatcher,
        gate=MinIntervalGate(config.remote.backend_min_interval),
        sync_latency=cfg.sync_latency,
        generate_latency=cfg.generate_latency,
        feedback_latency=cfg.feedback_latency,
        sync_failure_rate=cfg.sync_failure_rate,
        generate_failure_rate=cfg.generate_failure_rate,
        consent_required=cfg.consent_required,
    )


def build_manager(config: AppConfig):
    """Wire dispatcher, strategies, engine, storage and event source into a manager."""
    from insights.dispatcher import RequestDispatcher
    from insights.engine import InsightEngine
    from insights.events import JsonEventSource
    from insights.manager import InsightManager
    from insights.storage import SQLiteBlobStore
    from llm import LLMError

    dispatcher = RequestDispatcher(
        max_concurrent=config.dispatcher.max_concurrent,
        max_requests=config.dispatcher.max_requests,
        window_seconds=config.dispatcher.window_seconds,
    )

    try:
        oracle = build_oracle_strategy(config, dispatcher)
    except LLMError as e:
        # Missing key: keep going with local strategies only
        logger.warning("oracle_unavailable", error=str(e))
        oracle = None

    backend = build_backend(config, dispatcher)
    engine = InsightEngine(
        oracle=oracle,
        backend=backend,
        consent=backend,
        remote_enabled=config.remote.enabled,
        max_insights_ceiling=config.insights.max_insights_ceiling,
    )

    return InsightManager(
        engine,
        SQLiteBlobStore(config.paths.db_path),
        JsonEventSource(config.paths.events_file),
        feedback_sink=backend,
        retention_cap=config.insights.retention_cap,
        auto_generate_min_active=config.insights.auto_generate_min_active,
        auto_generate_interval=timedelta(hours=config.insights.auto_generate_interval_hours),
    )


def get_components(config: Optional[AppConfig] = None) -> dict:
    """Load config and build the insight manager.

    Exits with a message when the config file is invalid.
    """
    from cli.config import load_config_model

    if config is None:
        try:
            config = load_config_model()
        except ValueError as e:
            console.print(f"[red]Config error:[/] {e}")
            sys.exit(1)

    manager = build_manager(config)
    return {
        "config": config,
        "manager": manager,
        "events": manager.events,
    }
