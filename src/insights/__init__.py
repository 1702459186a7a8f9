"""Personalized insight pipeline: summarize, generate, merge, track."""

from .backend import BackendUnavailableError, SimulatedInsightBackend
from .dispatcher import MinIntervalGate, RequestDispatcher
from .engine import InsightEngine
from .events import JsonEventSource, StaticEventSource
from .manager import FeedbackSubmissionError, InsightManager
from .models import (
    DataSummary,
    GenerationOptions,
    Insight,
    InsightFeedback,
    MoodEvent,
    PeriodEvent,
    SymptomEvent,
)
from .oracle import HTTPCompletionOracle, OracleResponseError, OracleStrategy, ProviderOracle
from .rules import generate_rule_based_insights
from .storage import MemoryBlobStore, SQLiteBlobStore
from .summarizer import summarize

__all__ = [
    "BackendUnavailableError",
    "DataSummary",
    "FeedbackSubmissionError",
    "GenerationOptions",
    "HTTPCompletionOracle",
    "Insight",
    "InsightEngine",
    "InsightFeedback",
    "InsightManager",
    "JsonEventSource",
    "MemoryBlobStore",
    "MinIntervalGate",
    "MoodEvent",
    "OracleResponseError",
    "OracleStrategy",
    "PeriodEvent",
    "ProviderOracle",
    "RequestDispatcher",
    "SQLiteBlobStore",
    "SimulatedInsightBackend",
    "StaticEventSource",
    "SymptomEvent",
    "generate_rule_based_insights",
    "summarize",
]
