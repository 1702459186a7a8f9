"""CLI command modules."""

from .events import log_mood, log_period, log_symptom, summary
from .init import init
from .insights import act, analytics, dismiss, feedback, generate, list_insights, purge, read, show

__all__ = [
    "init",
    "generate",
    "list_insights",
    "show",
    "read",
    "dismiss",
    "act",
    "feedback",
    "analytics",
    "purge",
    "log_period",
    "log_symptom",
    "log_mood",
    "summary",
]
