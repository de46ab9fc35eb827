# blueprint_coach/llm/factory.py
"""Factory for creating the configured relay client."""

from blueprint_coach.config.schema import CoachConfig

from .client import RelayClient
from .types import GenerationConfig


def create_relay_client(config: CoachConfig) -> RelayClient:
    """
    Create a RelayClient from config.

    Args:
        config: Root CoachConfig

    Returns:
        RelayClient configured from config.relay and config.generation
    """
    relay = config.relay
    return RelayClient(
        base_url=relay.base_url,
        endpoint=relay.endpoint,
        model=relay.model,
        timeout=relay.timeout,
        rate_limit_per_minute=relay.rate_limit_per_minute,
        max_retries=relay.max_retries,
        backoff_min=relay.backoff_min,
        backoff_max=relay.backoff_max,
        generation=GenerationConfig.from_settings(config.generation),
    )
