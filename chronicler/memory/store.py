"""Compacted long-term memory for one conversation scope."""

from __future__ import annotations

import time
from pathlib import Path

from chronicler.logging import get_logger
from chronicler.utils.helpers import atomic_write_text, ensure_dir, safe_filename, write_new_text

logger = get_logger(__name__)

NO_MEMORY = "[No previous memory]"


class MemoryStore:
    """
    Live memory text plus an append-only archive of previous versions.

    Layout under ``data_dir``::

        memories/<scope>.txt                      live memory
        memory_history/<scope> - <epoch_ms>.txt   archived versions
    """

    def __init__(self, data_dir: Path, scope: str):
        self.scope = scope
        self._name = safe_filename(scope)
        self.memory_dir = ensure_dir(data_dir / "memories")
        self.archive_dir = ensure_dir(data_dir / "memory_history")
        self.memory_file = self.memory_dir / f"{self._name}.txt"

    def exists(self) -> bool:
        return self.memory_file.exists()

    def read(self) -> str:
        if self.memory_file.exists():
            return self.memory_file.read_text(encoding="utf-8")
        return NO_MEMORY

    def archive(self, text: str) -> Path:
        """Snapshot *text* under a creation timestamp; never overwrites."""
        stamp = int(time.time() * 1000)
        return write_new_text(self.archive_dir / f"{self._name} - {stamp}.txt", text)

    def replace(self, text: str) -> Path:
        """Archive the current memory, then swap in *text*. Returns the archive path."""
        archived = self.archive(self.read())
        atomic_write_text(self.memory_file, text)
        logger.info(
            "memory_replaced",
            scope=self.scope,
            archive=archived.name,
            memory_chars=len(text),
        )
        return archived

    def list_archives(self) -> list[Path]:
        return sorted(self.archive_dir.glob(f"{self._name} - *.txt"))
