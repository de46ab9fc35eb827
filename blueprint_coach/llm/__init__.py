# blueprint_coach/llm/__init__.py
"""LLM relay client, retry policy and offline fallback."""

from .client import RelayClient
from .factory import create_relay_client
from .fallback import FallbackResponder
from .rate_limit import SlidingWindowRateLimiter
from .retry import RelayHTTPError, is_retryable, relay_retry
from .types import CompletionRequest, CompletionResponse, GenerationConfig, HistoryTurn

__all__ = [
    "RelayClient",
    "create_relay_client",
    "FallbackResponder",
    "SlidingWindowRateLimiter",
    "RelayHTTPError",
    "is_retryable",
    "relay_retry",
    "CompletionRequest",
    "CompletionResponse",
    "GenerationConfig",
    "HistoryTurn",
]
