"""Base LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

ResponseStatus = Literal["ok", "rate_limited", "error"]


@dataclass(frozen=True)
class MediaPart:
    """Inline binary content sent alongside the text prompt."""

    mime_type: str
    data: bytes


@dataclass
class LLMResponse:
    """Outcome of one generation call.

    Failures are data, not exceptions: callers branch on ``status``.
    """

    status: ResponseStatus = "ok"
    content: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    model: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def rate_limited(self) -> bool:
        return self.status == "rate_limited"


class LLMProvider(ABC):
    """
    Abstract base class for generative text providers.

    Implementations should never raise for API failures; they report them
    through ``LLMResponse.status`` so rate limits can be told apart from
    everything else.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def generate(
        self,
        model: str,
        content: str,
        *,
        system_instruction: str | None = None,
        media: list[MediaPart] | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        safety_settings: list[dict[str, str]] | None = None,
        extras: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """
        Run one generation call on *model*.

        Args:
            model: Model identifier (e.g. 'gemini/gemini-2.5-flash').
            content: User content (the rendered transcript or an instruction).
            system_instruction: Optional system prompt.
            media: Optional inline binary parts placed before the text.
            temperature: Sampling temperature; provider default when None.
            max_output_tokens: Output length cap; provider default when None.
            safety_settings: Passed through to the API unchanged.
            extras: Additional request parameters passed through unchanged.

        Returns:
            LLMResponse with status ok, rate_limited or error.
        """
        pass
