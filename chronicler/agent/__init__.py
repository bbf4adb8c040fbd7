"""Event processing: the chronicle loop and reply generation."""

from chronicler.agent.loop import ChronicleLoop
from chronicler.agent.reply import ReplyGenerator

__all__ = ["ChronicleLoop", "ReplyGenerator"]
