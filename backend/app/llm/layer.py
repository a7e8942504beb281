"""LLM Layer — every assistant call to the language model goes through here.

Uses AsyncAnthropic + Instructor for structured outputs, so responses are
validated against a Pydantic schema instead of being scraped from free text.

The layer is constructed once by the application factory and injected into
the planning assistant; nothing here is a module-level singleton.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import anthropic
import instructor
from app.config import ModelTier, Settings, get_model_map
from pydantic import BaseModel

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Metadata from an LLM call."""

    model_version: str = ""          # Exact model ID from API response
    input_tokens: int = 0
    output_tokens: int = 0
    cached_input_tokens: int = 0
    stop_reason: str = ""
    cost: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CircuitBreaker:
    """Simple circuit breaker for external API calls.

    States: CLOSED (normal) → OPEN (fail-fast) → HALF_OPEN (one trial call).
    Opens after `failure_threshold` consecutive failures.
    Auto-resets to HALF_OPEN after `reset_timeout` seconds.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, reset_timeout: float = 60.0) -> None:
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._state = self.CLOSED
        self._failure_count = 0
        self._last_failure_time: float = 0.0
        self._trial_in_flight = False

    @property
    def state(self) -> str:
        if self._state == self.OPEN:
            if time.monotonic() - self._last_failure_time >= self.reset_timeout:
                self._state = self.HALF_OPEN
        return self._state

    def record_success(self) -> None:
        self._failure_count = 0
        self._trial_in_flight = False
        self._state = self.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._state == self.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._trial_in_flight = False
            self._state = self.OPEN
            logger.warning("Circuit breaker OPEN after %d consecutive failures", self._failure_count)

    def release_trial(self) -> None:
        """Free the half-open slot when a call ends without an outcome."""
        self._trial_in_flight = False

    def allow_request(self) -> bool:
        state = self.state
        if state == self.CLOSED:
            return True
        if state == self.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True  # one trial call until it resolves
            return True
        return False


class CircuitBreakerOpenError(Exception):
    """Raised when the circuit breaker is open and rejecting requests."""


async def _retry_with_backoff(
    coro_factory,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    circuit_breaker: CircuitBreaker | None = None,
):
    """Retry an async call with exponential backoff.

    Args:
        coro_factory: Callable that returns a new coroutine each time.
        max_retries: Maximum number of retries (0 = no retry).
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay cap.
        circuit_breaker: Optional circuit breaker instance.

    Returns:
        The result of the successful call.
    """
    if circuit_breaker and not circuit_breaker.allow_request():
        raise CircuitBreakerOpenError("Circuit breaker is open. Anthropic API calls temporarily disabled.")

    last_exception = None
    for attempt in range(max_retries + 1):
        try:
            result = await coro_factory()
            if circuit_breaker:
                circuit_breaker.record_success()
            return result
        except (anthropic.RateLimitError, anthropic.APIConnectionError, anthropic.InternalServerError) as e:
            last_exception = e
            if circuit_breaker:
                circuit_breaker.record_failure()
            if attempt < max_retries:
                delay = min(base_delay * (2 ** attempt), max_delay)
                logger.warning("LLM call attempt %d/%d failed (%s), retrying in %.1fs", attempt + 1, max_retries + 1, type(e).__name__, delay)
                await asyncio.sleep(delay)
            else:
                raise
        except Exception:
            # Non-retryable errors (auth, bad request, validation, etc.)
            if circuit_breaker:
                circuit_breaker.record_failure()
            raise
        except BaseException:
            # Cancelled: neither a success nor an upstream failure
            if circuit_breaker:
                circuit_breaker.release_trial()
            raise

    raise last_exception  # type: ignore[misc]


class LLMLayer:
    """Centralized LLM access for the planning assistant.

    Provides two call patterns:
    - complete_structured: Pydantic-validated output via Instructor + auto-retry
    - complete_raw: Free-text completion (direct Anthropic SDK)

    Includes circuit breaker and retry with exponential backoff for resilience.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.model_map = get_model_map(settings)
        self.raw_client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.client = instructor.from_anthropic(self.raw_client)
        self.circuit_breaker = CircuitBreaker(failure_threshold=5, reset_timeout=60.0)

    async def complete_structured(
        self,
        messages: list[dict],
        model_tier: ModelTier,
        response_model: type[BaseModel],
        system: str | None = None,
        max_tokens: int | None = None,
        max_retries: int | None = None,
        temperature: float | None = None,
    ) -> tuple[BaseModel, LLMResponse]:
        """Structured output with Pydantic validation + auto-retry.

        Args:
            messages: Conversation messages.
            model_tier: "sonnet" or "haiku".
            response_model: Pydantic model class for output validation.
            system: System prompt.
            max_tokens: Max output tokens.
            max_retries: Instructor retry count on validation failure.
            temperature: Sampling temperature.

        Returns:
            Tuple of (validated Pydantic model, LLMResponse metadata).
        """
        kwargs: dict[str, Any] = {
            "model": self.model_map[model_tier],
            "max_tokens": max_tokens or 1024,
            "messages": messages,
            "response_model": response_model,
            "max_retries": max_retries if max_retries is not None else self.settings.default_max_retries,
            "temperature": temperature if temperature is not None else 0.0,
        }
        if system:
            kwargs["system"] = system

        result, raw_response = await _retry_with_backoff(
            coro_factory=lambda: self.client.messages.create_with_completion(**kwargs),
            max_retries=2,
            circuit_breaker=self.circuit_breaker,
        )

        meta = self._extract_metadata(raw_response, model_tier)
        return result, meta

    async def complete_raw(
        self,
        messages: list[dict],
        model_tier: ModelTier,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> tuple[anthropic.types.Message, LLMResponse]:
        """Raw completion for free-text replies.

        Returns:
            Tuple of (raw Anthropic Message, LLMResponse metadata).
        """
        kwargs: dict[str, Any] = {
            "model": self.model_map[model_tier],
            "max_tokens": max_tokens or 1024,
            "messages": messages,
            "temperature": temperature if temperature is not None else 0.0,
        }
        if system:
            kwargs["system"] = system

        response = await _retry_with_backoff(
            coro_factory=lambda: self.raw_client.messages.create(**kwargs),
            max_retries=2,
            circuit_breaker=self.circuit_breaker,
        )

        meta = self._extract_metadata(response, model_tier)
        return response, meta

    async def close(self) -> None:
        await self.raw_client.close()

    def _extract_metadata(
        self, response: anthropic.types.Message, model_tier: ModelTier
    ) -> LLMResponse:
        """Extract metadata from an Anthropic API response."""
        usage = response.usage
        input_tokens = getattr(usage, "input_tokens", 0)
        output_tokens = getattr(usage, "output_tokens", 0)
        cached = getattr(usage, "cache_read_input_tokens", 0) or 0

        return LLMResponse(
            model_version=response.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_input_tokens=cached,
            stop_reason=response.stop_reason or "",
            cost=self.estimate_cost(model_tier, input_tokens, output_tokens, cached),
        )

    def estimate_cost(
        self,
        model_tier: ModelTier,
        input_tokens: int,
        output_tokens: int,
        cached_input_tokens: int = 0,
    ) -> float:
        """Estimate cost for a single API call.

        Prices per million tokens:
        - Sonnet: input $3,  output $15, cache read $0.30
        - Haiku:  input $0.80, output $4, cache read $0.08
        """
        prices = {
            "sonnet": {"input": 3.0,   "output": 15.0, "cache_read": 0.30},
            "haiku":  {"input": 0.80,  "output": 4.0,  "cache_read": 0.08},
        }
        p = prices[model_tier]
        non_cached_input = input_tokens - cached_input_tokens
        cost = (
            (non_cached_input / 1_000_000) * p["input"]
            + (cached_input_tokens / 1_000_000) * p["cache_read"]
            + (output_tokens / 1_000_000) * p["output"]
        )
        return round(cost, 6)


def message_text(message: Any) -> str:
    """Concatenate the text blocks of a Message."""
    parts: list[str] = []
    for block in getattr(message, "content", []) or []:
        if getattr(block, "type", "") == "text":
            parts.append(getattr(block, "text", ""))
    return "".join(parts)
