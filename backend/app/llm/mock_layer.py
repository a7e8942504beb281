"""Mock LLM Layer for testing without API calls."""

from __future__ import annotations

from typing import Any

from app.config import ModelTier
from app.llm.layer import LLMResponse
from pydantic import BaseModel


class MockLLMLayer:
    """Returns predefined responses for testing.

    Usage:
        mock = MockLLMLayer({
            "sonnet:GeneratedTaskList": GeneratedTaskList(tasks=[...]),
            "sonnet:raw": MockMessage(text="Hi there"),
        })
        result, meta = await mock.complete_structured(
            messages=[...],
            model_tier="sonnet",
            response_model=GeneratedTaskList,
        )

    ``failures`` maps the same keys to exceptions raised instead of a
    response, to exercise upstream error paths.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.responses = responses or {}
        self.failures = failures or {}
        self.call_log: list[dict] = []

    def _mock_meta(self, model_tier: ModelTier) -> LLMResponse:
        return LLMResponse(
            model_version=f"mock-{model_tier}",
            input_tokens=100,
            output_tokens=50,
            stop_reason="end_turn",
            cost=0.0,
        )

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
        """Return predefined response or construct a default instance."""
        key = f"{model_tier}:{response_model.__name__}"
        self.call_log.append({
            "method": "complete_structured",
            "model_tier": model_tier,
            "response_model": response_model.__name__,
            "messages": messages,
            "system": system,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if key in self.failures:
            raise self.failures[key]
        result = self.responses.get(key)
        if result is None:
            result = response_model()
        return result, self._mock_meta(model_tier)

    async def complete_raw(
        self,
        messages: list[dict],
        model_tier: ModelTier,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> tuple[Any, LLMResponse]:
        """Return a mock raw response."""
        key = f"{model_tier}:raw"
        self.call_log.append({
            "method": "complete_raw",
            "model_tier": model_tier,
            "messages": messages,
            "system": system,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if key in self.failures:
            raise self.failures[key]
        result = self.responses.get(key, MockMessage(text="Mock response"))
        return result, self._mock_meta(model_tier)

    async def close(self) -> None:
        return None

    def estimate_cost(self, model_tier: ModelTier, input_tokens: int,
                      output_tokens: int, cached_input_tokens: int = 0) -> float:
        return 0.0


class MockMessage:
    """Minimal mock of anthropic.types.Message for testing."""

    def __init__(self, text: str = "Mock response"):
        self.content = [_MockTextBlock(text)]
        self.stop_reason = "end_turn"
        self.model = "mock-model"
        self.usage = _MockUsage()


class _MockTextBlock:
    def __init__(self, text: str):
        self.type = "text"
        self.text = text


class _MockUsage:
    def __init__(self):
        self.input_tokens = 100
        self.output_tokens = 50
        self.cache_read_input_tokens = 0
