"""Per-scope memory text and its archive."""

from chronicler.memory.store import NO_MEMORY, MemoryStore

__all__ = ["MemoryStore", "NO_MEMORY"]
