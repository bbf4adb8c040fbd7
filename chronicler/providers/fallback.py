"""Tier-by-tier generation with rate-limit fallback."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chronicler.errors import GenerationError
from chronicler.logging import get_logger
from chronicler.providers.base import LLMProvider

logger = get_logger(__name__)


@dataclass
class FallbackResult:
    """Outcome of a fallback run.

    ``exhausted`` means every tier was rate limited; it is an expected
    outcome, not a failure, and callers apply their own policy to it.
    """

    text: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
    model: str | None = None
    attempts: list[str] = field(default_factory=list)
    exhausted: bool = False


async def generate_with_fallback(
    provider: LLMProvider,
    models: list[str],
    content: str,
    *,
    system_instruction: str | None = None,
    temperature: float | None = None,
    max_output_tokens: int | None = None,
    safety_settings: list[dict[str, str]] | None = None,
    extras: dict[str, Any] | None = None,
    purpose: str = "generation",
) -> FallbackResult:
    """
    Try each model tier once, in order.

    A rate-limited tier moves on to the next one. Any other failure raises
    GenerationError without touching the remaining tiers.

    Raises:
        GenerationError: A tier failed for a reason other than rate limiting.
    """
    attempts: list[str] = []
    for model in models:
        attempts.append(model)
        response = await provider.generate(
            model,
            content,
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            safety_settings=safety_settings,
            extras=extras,
        )
        if response.ok:
            logger.info("generation_succeeded", purpose=purpose, model=model, usage=response.usage)
            return FallbackResult(
                text=response.content or "",
                usage=response.usage,
                model=model,
                attempts=attempts,
            )
        if response.rate_limited:
            logger.warning("generation_rate_limited", purpose=purpose, model=model)
            continue
        raise GenerationError(model, response.error or "unknown error")

    logger.warning("generation_tiers_exhausted", purpose=purpose, attempts=attempts)
    return FallbackResult(attempts=attempts, exhausted=True)
