"""chronicler - chat history buffer with LLM memory compaction."""

__version__ = "0.1.0"
__logo__ = "📜"
