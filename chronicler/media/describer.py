"""Short captions for images, video and audio via the generative API."""

from __future__ import annotations

import asyncio
from typing import Any, Literal

from chronicler.errors import GenerationError
from chronicler.logging import get_logger
from chronicler.providers.base import LLMProvider, MediaPart

logger = get_logger(__name__)

MediaKind = Literal["image", "video and audio", "audio"]

IMAGE_FORMATS = frozenset({"image/png", "image/jpg", "image/jpeg", "image/webp"})
VIDEO_FORMATS = frozenset({
    "video/mp4",
    "video/mpeg",
    "video/mov",
    "video/quicktime",
    "video/avi",
    "video/x-flv",
    "video/mpg",
    "video/webm",
    "video/wmv",
    "video/3gpp",
})
AUDIO_FORMATS = frozenset({
    "audio/wav",
    "audio/x-wav",
    "audio/mp3",
    "audio/mpeg",
    "audio/aiff",
    "audio/aac",
    "audio/ogg",
    "audio/flac",
})


def base_mime(mime_type: str | None) -> str:
    """Lower-cased mime type without parameters (``image/png; q=1`` -> ``image/png``)."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def classify_media(mime_type: str | None) -> MediaKind | None:
    mime = base_mime(mime_type)
    if mime in IMAGE_FORMATS:
        return "image"
    if mime in VIDEO_FORMATS:
        return "video and audio"
    if mime in AUDIO_FORMATS:
        return "audio"
    return None


class MediaDescriber:
    """
    Asks a single model for a three-sentence summary of a media payload.

    There is no tier fallback here. A rate limit sleeps ``retry_delay``
    seconds and retries the same call, forever; the caller blocks on it.
    Any other failure raises GenerationError.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        *,
        retry_delay: float = 5.0,
        max_output_tokens: int = 200,
        safety_settings: list[dict[str, str]] | None = None,
        extras: dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.model = model
        self.retry_delay = retry_delay
        self.max_output_tokens = max_output_tokens
        self.safety_settings = safety_settings
        self.extras = extras or {}

    async def describe(self, kind: MediaKind, mime_type: str, payload: bytes) -> str:
        prompt = f"Concisely summarise this {kind} in 3 sentences."
        media = [MediaPart(mime_type=base_mime(mime_type), data=payload)]
        retries = 0
        while True:
            response = await self.provider.generate(
                self.model,
                prompt,
                media=media,
                max_output_tokens=self.max_output_tokens,
                safety_settings=self.safety_settings,
                extras=self.extras,
            )
            if response.ok:
                logger.info("media_described", kind=kind, mime_type=mime_type, usage=response.usage, retries=retries)
                return (response.content or "").replace("\n", " ")
            if not response.rate_limited:
                raise GenerationError(self.model, response.error or "unknown error")
            retries += 1
            logger.warning("media_describe_rate_limited", model=self.model, retries=retries, delay=self.retry_delay)
            await asyncio.sleep(self.retry_delay)

    async def describe_or_passthrough(
        self,
        mime_type: str | None,
        payload: bytes,
        kind: MediaKind | None = None,
    ) -> str:
        """Describe supported payloads; anything else is represented by its mime string."""
        detected = classify_media(mime_type)
        if detected is None or (kind is not None and detected != kind):
            return mime_type or "unknown"
        return await self.describe(detected, mime_type or "", payload)
