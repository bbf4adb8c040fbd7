"""Per-scope history log management."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from chronicler.history.log import HistoryLog
from chronicler.history.render import render_history
from chronicler.logging import get_logger
from chronicler.utils.helpers import atomic_write_text, ensure_dir, safe_filename

logger = get_logger(__name__)


class HistoryManager:
    """
    Owns one HistoryLog per conversation scope.

    Logs are stored as JSONL files in ``<data_dir>/messages``. A log is read
    from disk once and then served from the cache; the process is the only
    writer.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.messages_dir = ensure_dir(data_dir / "messages")
        self.readable_dir = data_dir / "readable"
        self._cache: dict[str, HistoryLog] = {}

    def _get_log_path(self, scope: str) -> Path:
        return self.messages_dir / f"{safe_filename(scope)}.jsonl"

    def get_or_create(self, scope: str) -> HistoryLog:
        """
        Get the log for *scope*, loading it from disk on first access.

        Args:
            scope: Conversation scope (a guild id).

        Returns:
            The history log.
        """
        log = self._cache.get(scope)
        if log is not None:
            return log
        log = HistoryLog.load(self._get_log_path(scope), scope=scope)
        if len(log):
            logger.info("history_loaded", scope=scope, record_count=len(log))
        self._cache[scope] = log
        return log

    def invalidate(self, scope: str) -> None:
        """Remove a log from the in-memory cache."""
        self._cache.pop(scope, None)

    def write_readable(self, scope: str, log: HistoryLog) -> Path:
        """Dump the rendered transcript of *log* for humans to inspect."""
        path = ensure_dir(self.readable_dir) / f"{safe_filename(scope)}.log"
        atomic_write_text(path, render_history(log))
        return path

    def list_scopes(self) -> list[dict[str, Any]]:
        """
        List all persisted scopes.

        Returns:
            List of dicts with scope, record count and path, newest file first.
        """
        scopes = []
        paths = sorted(self.messages_dir.glob("*.jsonl"), key=lambda p: p.stat().st_mtime, reverse=True)
        for path in paths:
            with open(path, encoding="utf-8") as f:
                count = sum(1 for line in f if line.strip())
            scopes.append({"scope": path.stem, "records": count, "path": str(path)})
        return scopes
