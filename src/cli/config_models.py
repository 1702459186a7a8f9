"""Pydantic configuration models for cycle-insights."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "claude", "openai", "http", "none"}


class LLMConfig(BaseModel):
    """Remote oracle provider configuration."""

    provider: str = "none"
    model: Optional[str] = None  # None = use provider default
    api_key: Optional[str] = None
    base_url: Optional[str] = None  # required for provider "http"
    max_tokens: int = 2000

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v

    @model_validator(mode="after")
    def require_base_url(self):
        if self.provider == "http" and not self.base_url:
            raise ValueError("llm.base_url is required when provider is 'http'")
        return self


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.cycle-insights/insights.db")
    events_file: Path = Path("~/.cycle-insights/events.json")
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        self.events_file = self.events_file.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class DispatcherConfig(BaseModel):
    """Concurrency and rate ceilings for remote-bound work."""

    max_concurrent: int = Field(default=3, ge=1)
    max_requests: int = Field(default=30, ge=1)
    window_seconds: float = Field(default=60.0, gt=0)


class RemoteConfig(BaseModel):
    """Remote strategy switches and per-endpoint spacing."""

    enabled: bool = True
    timeout_seconds: float = Field(default=30.0, gt=0)
    oracle_min_interval: float = Field(default=0.5, ge=0)
    backend_min_interval: float = Field(default=1.0, ge=0)


class BackendConfig(BaseModel):
    """Simulated backend behaviour."""

    enabled: bool = True
    sync_latency: tuple[float, float] = (0.8, 1.2)
    generate_latency: tuple[float, float] = (1.2, 1.8)
    feedback_latency: float = 0.3
    sync_failure_rate: float = 0.05
    generate_failure_rate: float = 0.03
    consent_required: bool = False

    @field_validator("sync_failure_rate", "generate_failure_rate")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"failure rate must be 0-1, got {v}")
        return v


class InsightsConfig(BaseModel):
    """Collection and generation limits."""

    retention_cap: int = Field(default=15, ge=1)
    default_max_insights: int = Field(default=5, ge=1)
    max_insights_ceiling: int = Field(default=20, ge=1)
    auto_generate_min_active: int = 3
    auto_generate_interval_hours: float = 24.0

    @model_validator(mode="after")
    def validate_limits(self):
        if self.default_max_insights > self.max_insights_ceiling:
            raise ValueError("default_max_insights cannot exceed max_insights_ceiling")
        return self


class RetryConfig(BaseModel):
    """Retry/backoff configuration for remote oracle calls."""

    max_attempts: int = Field(default=2, ge=1)
    min_wait: float = 2.0
    max_wait: float = 30.0


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file_level: str = "DEBUG"
    json_mode: bool = False

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class AppConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in the API key."""
        if self.llm.api_key:
            key = self.llm.api_key
            if key.startswith("${") and key.endswith("}"):
                self.llm.api_key = os.getenv(key[2:-1], "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
