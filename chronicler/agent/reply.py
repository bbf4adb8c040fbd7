"""Sampled reply generation from the live log plus memory."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Callable

from chronicler.history.render import render_history
from chronicler.logging import get_logger
from chronicler.providers.fallback import generate_with_fallback

if TYPE_CHECKING:
    from chronicler.channels.base import BaseChannel
    from chronicler.history.log import HistoryLog
    from chronicler.ingest.events import MessageView
    from chronicler.providers.base import LLMProvider

logger = get_logger(__name__)


class ReplyGenerator:
    """Decides whether to answer a message and produces the answer text."""

    def __init__(
        self,
        provider: LLMProvider,
        platform: BaseChannel,
        *,
        models: list[str],
        instruction: str,
        probability: float = 1 / 400,
        trigger_role_ids: list[str] | None = None,
        temperature: float | None = 0.9,
        max_output_tokens: int | None = None,
        safety_settings: list[dict[str, str]] | None = None,
        rng: Callable[[], float] = random.random,
    ):
        self.provider = provider
        self.platform = platform
        self.models = models
        self.instruction = instruction
        self.probability = probability
        self.trigger_role_ids = set(trigger_role_ids or [])
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.safety_settings = safety_settings
        self._rng = rng

    def should_reply(self, message: MessageView) -> bool:
        """Random sample, or a direct mention from someone holding a trigger role."""
        if self._rng() < self.probability:
            return True
        return message.mentions_bot and bool(self.trigger_role_ids.intersection(message.author_role_ids))

    async def generate(self, channel_id: str, log: HistoryLog, memory: str) -> str | None:
        """
        Generate a reply for the conversation in *log*.

        Returns:
            The reply text, or None when every tier was rate limited.

        Raises:
            GenerationError: A tier failed for a reason other than rate limiting.
        """
        try:
            await self.platform.send_typing(channel_id)
        except Exception as e:
            logger.warning("typing_indicator_failed", channel_id=channel_id, error=str(e))

        result = await generate_with_fallback(
            self.provider,
            self.models,
            render_history(log),
            system_instruction=self.instruction + "\n" + memory,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            safety_settings=self.safety_settings,
            purpose="message generation",
        )
        if result.exhausted:
            logger.info("reply_abandoned", reason="rate_limited", attempts=result.attempts)
            return None
        text = (result.text or "").strip()
        return text or None
