"""Tests for tier fallback and the LiteLLM-backed provider.

Covers:
- Tiers are tried in order; rate limits fall through, other errors stop
- Exhaustion is a result, not an exception
- LiteLLM exceptions map onto response statuses
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from chronicler.errors import GenerationError
from chronicler.providers.base import LLMProvider, LLMResponse, MediaPart
from chronicler.providers.fallback import generate_with_fallback
from chronicler.providers.litellm_provider import LiteLLMProvider


class _ScriptedProvider(LLMProvider):
    def __init__(self, outcomes: dict[str, LLMResponse]) -> None:
        super().__init__()
        self.outcomes = outcomes
        self.calls: list[dict] = []

    async def generate(self, model, content, **kwargs) -> LLMResponse:
        self.calls.append({"model": model, "content": content, **kwargs})
        return self.outcomes[model]


RATE_LIMITED = LLMResponse(status="rate_limited", error="429")


class TestGenerateWithFallback:
    @pytest.mark.asyncio
    async def test_falls_through_rate_limited_tiers(self) -> None:
        provider = _ScriptedProvider({
            "A": RATE_LIMITED,
            "B": RATE_LIMITED,
            "C": LLMResponse(content="from C", usage={"total_tokens": 3}),
            "D": LLMResponse(content="never"),
        })
        result = await generate_with_fallback(provider, ["A", "B", "C", "D"], "hello")

        assert result.exhausted is False
        assert result.text == "from C"
        assert result.model == "C"
        assert result.usage == {"total_tokens": 3}
        assert [c["model"] for c in provider.calls] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_all_rate_limited_is_exhaustion(self) -> None:
        provider = _ScriptedProvider({"A": RATE_LIMITED, "B": RATE_LIMITED, "C": RATE_LIMITED})
        result = await generate_with_fallback(provider, ["A", "B", "C"], "hello")

        assert result.exhausted is True
        assert result.text is None
        assert result.attempts == ["A", "B", "C"]
        assert len(provider.calls) == 3

    @pytest.mark.asyncio
    async def test_other_error_stops_immediately(self) -> None:
        provider = _ScriptedProvider({
            "A": RATE_LIMITED,
            "B": LLMResponse(status="error", error="bad request"),
            "C": LLMResponse(content="never"),
        })
        with pytest.raises(GenerationError) as exc_info:
            await generate_with_fallback(provider, ["A", "B", "C"], "hello")

        assert exc_info.value.model == "B"
        assert "bad request" in str(exc_info.value)
        assert [c["model"] for c in provider.calls] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_empty_tier_list_is_exhaustion(self) -> None:
        result = await generate_with_fallback(_ScriptedProvider({}), [], "hello")
        assert result.exhausted is True

    @pytest.mark.asyncio
    async def test_parameters_are_passed_through(self) -> None:
        provider = _ScriptedProvider({"A": LLMResponse(content="ok")})
        safety = [{"category": "HARM_CATEGORY_HARASSMENT", "threshold": "OFF"}]
        await generate_with_fallback(
            provider, ["A"], "body",
            system_instruction="sys", temperature=0.9, max_output_tokens=100,
            safety_settings=safety,
        )
        call = provider.calls[0]
        assert call["content"] == "body"
        assert call["system_instruction"] == "sys"
        assert call["temperature"] == 0.9
        assert call["max_output_tokens"] == 100
        assert call["safety_settings"] == safety


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2, total_tokens=7),
    )


class TestLiteLLMProvider:
    @pytest.mark.asyncio
    async def test_success_builds_messages_and_parses_usage(self) -> None:
        provider = LiteLLMProvider(api_key=None)
        mock = AsyncMock(return_value=_completion("hi there"))
        with patch("chronicler.providers.litellm_provider.acompletion", mock):
            response = await provider.generate(
                "gemini-2.5-flash", "transcript", system_instruction="be nice", temperature=0.9,
            )

        assert response.ok
        assert response.content == "hi there"
        assert response.usage == {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}
        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "gemini/gemini-2.5-flash"
        assert kwargs["messages"] == [
            {"role": "system", "content": "be nice"},
            {"role": "user", "content": "transcript"},
        ]
        assert kwargs["temperature"] == 0.9
        assert "max_tokens" not in kwargs

    @pytest.mark.asyncio
    async def test_media_is_sent_inline(self) -> None:
        provider = LiteLLMProvider()
        mock = AsyncMock(return_value=_completion("a cat"))
        with patch("chronicler.providers.litellm_provider.acompletion", mock):
            await provider.generate(
                "gemini/gemini-2.5-flash-lite", "describe",
                media=[MediaPart("image/png", b"\x89PNG"), MediaPart("video/mp4", b"\x00")],
                max_output_tokens=200, extras={"reasoning_effort": "disable"},
            )

        kwargs = mock.call_args.kwargs
        blocks = kwargs["messages"][0]["content"]
        assert blocks[0]["type"] == "image_url"
        assert blocks[0]["image_url"]["url"].startswith("data:image/png;base64,")
        assert blocks[1]["type"] == "file"
        assert blocks[1]["file"]["file_data"].startswith("data:video/mp4;base64,")
        assert blocks[2] == {"type": "text", "text": "describe"}
        assert kwargs["max_tokens"] == 200
        assert kwargs["reasoning_effort"] == "disable"

    @pytest.mark.asyncio
    async def test_rate_limit_maps_to_status(self) -> None:
        provider = LiteLLMProvider()
        error = litellm.RateLimitError(message="quota", llm_provider="gemini", model="gemini-2.5-pro")
        with patch("chronicler.providers.litellm_provider.acompletion", AsyncMock(side_effect=error)):
            response = await provider.generate("gemini-2.5-pro", "x")
        assert response.status == "rate_limited"
        assert response.rate_limited

    @pytest.mark.asyncio
    async def test_other_failure_maps_to_error_and_masks_key(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "preset")
        key = "AIzaSyTestKey1234567890abcdef"
        provider = LiteLLMProvider(api_key=key)
        error = RuntimeError(f"invalid key {key}")
        with patch("chronicler.providers.litellm_provider.acompletion", AsyncMock(side_effect=error)):
            response = await provider.generate("gemini-2.5-pro", "x")
        assert response.status == "error"
        assert key not in response.error
        assert "AIza****cdef" in response.error
