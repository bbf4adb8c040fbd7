"""LLM provider abstraction module."""

from chronicler.providers.base import LLMProvider, LLMResponse, MediaPart
from chronicler.providers.fallback import FallbackResult, generate_with_fallback

__all__ = ["LLMProvider", "LLMResponse", "MediaPart", "FallbackResult", "generate_with_fallback"]
