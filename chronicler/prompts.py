"""System instructions for reply generation and memory writing."""

from __future__ import annotations

from pathlib import Path

from chronicler.config.schema import PromptsConfig

DEFAULT_REPLY_PROMPT = """You are a regular member of this group chat.
You will be given the recent conversation as a transcript. Each message shows its channel,
the author, the time, any reply it is responding to, descriptions of attached media and
link previews, and reactions.
Write exactly one new chat message that fits naturally at the end of the transcript.
Do not prefix it with your name or a timestamp. Keep it short unless the conversation calls for more.
Below is your memory of older conversation that no longer appears in the transcript:
"""

DEFAULT_MEMORY_PROMPT = """You maintain the long-term memory of a group chat.
You will be given a transcript of the oldest messages, which are about to be forgotten,
followed (below) by the current memory.
Rewrite the memory so it keeps everything still useful from the current memory and adds
what matters from the transcript: who the people are, their relationships, running jokes,
ongoing topics, notable events and their dates. Drop trivia.
Respond with the complete new memory only, as plain text.
Current memory:
"""


def _read_or_default(path: str | None, default: str) -> str:
    if not path:
        return default
    return Path(path).expanduser().read_text(encoding="utf-8")


def load_prompts(config: PromptsConfig) -> tuple[str, str]:
    """Return ``(reply_prompt, memory_prompt)``, preferring configured files."""
    return (
        _read_or_default(config.reply_path, DEFAULT_REPLY_PROMPT),
        _read_or_default(config.memory_path, DEFAULT_MEMORY_PROMPT),
    )
