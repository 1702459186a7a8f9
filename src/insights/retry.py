"""Caller-side retry for remote insight calls.

The dispatcher never retries, so retry policy lives with the caller. Each
attempt is a fresh dispatcher submission and counts against its rate window.
"""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.stdlib.get_logger(__name__)


def remote_retry(
    max_attempts: int = 2,
    min_wait: float = 2.0,
    max_wait: float = 30.0,
    exceptions: tuple = (Exception,),
):
    """Retry decorator for remote oracle calls.

    Args:
        max_attempts: Max attempts (1 disables retry)
        min_wait: Min wait between attempts (seconds)
        max_wait: Max wait between attempts (seconds)
        exceptions: Exception types worth another attempt
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_from_config(retry_config) -> dict:
    """Keyword arguments for remote_retry() from a RetryConfig model."""
    return {
        "max_attempts": retry_config.max_attempts,
        "min_wait": retry_config.min_wait,
        "max_wait": retry_config.max_wait,
    }
