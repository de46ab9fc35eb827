# blueprint_coach/llm/client.py
"""Relay client for the serverless LLM proxy with rate limiting and retries."""

import logging
from typing import Any

import httpx

from blueprint_coach.errors import UpstreamUnavailable

from .rate_limit import SlidingWindowRateLimiter
from .retry import RelayHTTPError, relay_retry
from .types import CompletionRequest, CompletionResponse, GenerationConfig

logger = logging.getLogger(__name__)


class RelayClient:
    """
    Async client for the completion relay.

    Handles:
    - Client-side sliding-window rate limiting
    - Exponential-backoff retries on 408/429/5xx and transport errors
    - Normalizing relay bodies into CompletionResponse
    """

    def __init__(
        self,
        base_url: str,
        endpoint: str = "/.netlify/functions/gemini",
        model: str | None = None,
        timeout: float = 30.0,
        rate_limit_per_minute: int = 60,
        max_retries: int = 3,
        backoff_min: float = 2.0,
        backoff_max: float = 30.0,
        generation: GenerationConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize relay client.

        Args:
            base_url: Relay base URL (e.g., "http://localhost:8888")
            endpoint: Path that accepts completion POSTs
            model: Model name forwarded with each request
            timeout: Per-request timeout in seconds
            rate_limit_per_minute: Local request budget per 60s window
            max_retries: Total attempts per request
            backoff_min: Minimum backoff between attempts in seconds
            backoff_max: Maximum backoff between attempts in seconds
            generation: Default sampling parameters
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.generation = generation or GenerationConfig()
        self._limiter = SlidingWindowRateLimiter(max_requests=rate_limit_per_minute)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._send = relay_retry(max_retries, backoff_min, backoff_max)(self._post)

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def health_check(self) -> bool:
        """
        Check that the relay is reachable.

        Returns:
            True if the relay answered with a non-5xx status, False otherwise.
        """
        try:
            response = await self._client.get(self.endpoint)
        except httpx.HTTPError as e:
            logger.error(f"Health check failed: {e}")
            return False
        healthy = response.status_code < 500
        if not healthy:
            logger.warning(f"Relay health check returned HTTP {response.status_code}")
        return healthy

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Send a completion request.

        Args:
            request: Prompt, history and system prompt

        Returns:
            CompletionResponse with text, or with error when the relay
            answered 2xx but carried an error body

        Raises:
            UpstreamUnavailable: When retries are exhausted or the relay
                answered with a non-retryable error status
        """
        update: dict[str, Any] = {}
        if request.model is None and self.model:
            update["model"] = self.model
        if request.generation_config is None:
            update["generation_config"] = self.generation
        if update:
            request = request.model_copy(update=update)

        logger.info(f"Requesting completion, history={len(request.history)} turns")
        try:
            response = await self._send(request.to_payload())
        except RelayHTTPError as e:
            logger.warning(f"Relay failed: {e}")
            raise UpstreamUnavailable(str(e), status=e.status) from e
        except httpx.TransportError as e:
            logger.warning(f"Relay unreachable: {e}")
            raise UpstreamUnavailable(f"Relay unreachable: {e}") from e

        if response.ok:
            logger.info(f"Received {len(response.text or '')} chars")
        else:
            logger.warning(f"Relay returned an error body: {response.error}")
        return response

    async def _post(self, payload: dict[str, Any]) -> CompletionResponse:
        await self._limiter.acquire()
        response = await self._client.post(self.endpoint, json=payload)
        if response.status_code >= 400:
            raise RelayHTTPError(response.status_code, response.text[:200])
        try:
            data = response.json()
        except ValueError:
            text = response.text.strip()
            if text:
                return CompletionResponse(text=text, status=response.status_code)
            return CompletionResponse(error="Empty relay response", status=response.status_code)
        return CompletionResponse.from_wire(data, status=response.status_code)
