"""LiteLLM provider implementation for Gemini (and any other LiteLLM backend)."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any

import litellm
from litellm import acompletion

from chronicler.logging import get_logger, mask_secret
from chronicler.providers.base import LLMProvider, LLMResponse, MediaPart

logger = get_logger("chronicler.providers.litellm")


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM.

    Model names carry their LiteLLM prefix (``gemini/gemini-2.5-pro``); bare
    Gemini names get the prefix added. Rate limits come back as
    ``status="rate_limited"``, every other failure as ``status="error"``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        extra_headers: dict[str, str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self.extra_headers = extra_headers or {}

        if api_key:
            os.environ.setdefault("GEMINI_API_KEY", api_key)
            logger.info("provider_initialized", api_key=mask_secret(api_key))

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop parameters a given model does not accept instead of failing
        litellm.drop_params = True

    @staticmethod
    def _resolve_model(model: str) -> str:
        if "/" not in model and model.startswith("gemini"):
            return f"gemini/{model}"
        return model

    @staticmethod
    def _media_block(part: MediaPart) -> dict[str, Any]:
        uri = f"data:{part.mime_type};base64,{base64.b64encode(part.data).decode('ascii')}"
        if part.mime_type.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": uri}}
        return {"type": "file", "file": {"file_data": uri}}

    def _build_messages(
        self,
        content: str,
        system_instruction: str | None,
        media: list[MediaPart] | None,
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        if media:
            blocks = [self._media_block(p) for p in media]
            blocks.append({"type": "text", "text": content})
            messages.append({"role": "user", "content": blocks})
        else:
            messages.append({"role": "user", "content": content})
        return messages

    def _mask(self, text: str) -> str:
        if self.api_key and self.api_key in text:
            return text.replace(self.api_key, mask_secret(self.api_key))
        return text

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
        model = self._resolve_model(model)
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(content, system_instruction, media),
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_output_tokens is not None:
            # Clamp to at least 1, LiteLLM rejects zero or negative values
            kwargs["max_tokens"] = max(1, max_output_tokens)
        if safety_settings:
            kwargs["safety_settings"] = safety_settings
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers
        for key, value in (extras or {}).items():
            kwargs.setdefault(key, value)

        if logging.getLogger("chronicler").isEnabledFor(logging.DEBUG):
            logger.debug(
                "litellm_request",
                model=model,
                content_chars=len(content),
                system_chars=len(system_instruction or ""),
                media_parts=len(media or []),
            )

        try:
            response = await acompletion(**kwargs)
        except litellm.RateLimitError as e:
            return LLMResponse(status="rate_limited", error=self._mask(str(e)), model=model)
        except Exception as e:
            error_msg = self._mask(str(e))
            logger.error("llm_call_failed", model=model, error_type=type(e).__name__, error=error_msg)
            return LLMResponse(status="error", error=error_msg, model=model)

        return self._parse_response(response, model)

    @staticmethod
    def _parse_response(response: Any, model: str) -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]
        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(status="ok", content=choice.message.content or "", usage=usage, model=model)
