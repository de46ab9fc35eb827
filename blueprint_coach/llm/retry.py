# blueprint_coach/llm/retry.py
"""Retry logic for relay calls with exponential backoff."""

import logging

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


class RelayHTTPError(Exception):
    """Non-2xx relay response."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(f"Relay returned HTTP {status}: {message}".rstrip(": "))


def is_retryable(exception: BaseException) -> bool:
    """
    Returns True if the exception should be retried.

    Retryable conditions:
    - httpx.TransportError (connect/read failures and timeouts)
    - RelayHTTPError with status in (408, 429, 500, 502, 503, 504)
    """
    if isinstance(exception, httpx.TransportError):
        return True

    if isinstance(exception, RelayHTTPError):
        return exception.status in RETRYABLE_STATUSES

    return False


def relay_retry(attempts: int = 3, backoff_min: float = 2.0, backoff_max: float = 30.0):
    """Tenacity retry decorator configured from RelayConfig values."""
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=backoff_min, max=backoff_max),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
