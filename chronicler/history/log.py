"""Ordered, persisted log of chat records for one conversation scope."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Iterable, Iterator

from chronicler.history.record import Record
from chronicler.logging import get_logger
from chronicler.utils.helpers import atomic_write_text

logger = get_logger(__name__)


class HistoryLog:
    """
    The canonical conversation order for one scope.

    Records keep insertion order. The only reordering allowed is
    ``extract_prefix_and_trim`` removing a strict prefix (and
    ``restore_prefix`` putting it back). Every mutation is flushed to
    ``path`` as JSONL before the method returns.
    """

    def __init__(self, scope: str = "", path: Path | None = None, records: Iterable[Record] = ()):
        self.scope = scope
        self.path = path
        self._records: list[Record] = []
        self._index: dict[str, int] = {}
        self._reset(list(records))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(tuple(self._records))

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._index

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    def get(self, record_id: str) -> Record | None:
        pos = self._index.get(record_id)
        return self._records[pos] if pos is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, record: Record) -> None:
        """Add *record* at the end.

        A record whose id is already present replaces the existing one in
        place, so upstream redelivery cannot break id uniqueness.
        """
        pos = self._index.get(record.id)
        if pos is not None:
            logger.warning("history_duplicate_append", scope=self.scope, record_id=record.id)
            self._records[pos] = record
        else:
            self._index[record.id] = len(self._records)
            self._records.append(record)
        self.flush()

    def update_by_id(self, record_id: str, record: Record) -> bool:
        """Replace the record with *record_id*, keeping its position.

        Raises:
            ValueError: *record* carries a different id.
        """
        if record.id != record_id:
            raise ValueError(f"replacement id {record.id!r} does not match {record_id!r}")
        pos = self._index.get(record_id)
        if pos is None:
            return False
        self._records[pos] = record
        self.flush()
        return True

    def add_reaction(self, record_id: str, user: str, emoji: str) -> bool:
        record = self.get(record_id)
        if record is None or not record.add_reaction(user, emoji):
            return False
        self.flush()
        return True

    def remove_reaction(self, record_id: str, user: str, emoji: str) -> bool:
        record = self.get(record_id)
        if record is None or not record.remove_reaction(user, emoji):
            return False
        self.flush()
        return True

    def extract_prefix_and_trim(self, high_water: int, low_water: int) -> list[Record]:
        """Cut the log down to its newest *low_water* records and return the rest.

        Requires ``len(self) > high_water`` and ``0 <= low_water < high_water``.
        The swap happens in a single assignment with no suspension point, so
        no reader can observe a half-trimmed log.
        """
        if low_water < 0 or low_water >= high_water:
            raise ValueError(f"low_water ({low_water}) must be in [0, high_water={high_water})")
        if len(self._records) <= high_water:
            raise ValueError(
                f"log length {len(self._records)} does not exceed high_water {high_water}"
            )
        cut = len(self._records) - low_water
        prefix, suffix = self._records[:cut], self._records[cut:]
        self._reset(suffix)
        self.flush()
        return prefix

    def restore_prefix(self, prefix: list[Record]) -> None:
        """Put a previously extracted prefix back in front of the current records."""
        self._reset([*prefix, *self._records])
        self.flush()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _reset(self, records: list[Record]) -> None:
        index: dict[str, int] = {}
        kept: list[Record] = []
        for record in records:
            if record.id in index:
                logger.warning("history_duplicate_dropped", scope=self.scope, record_id=record.id)
                continue
            index[record.id] = len(kept)
            kept.append(record)
        self._records, self._index = kept, index

    def dumps(self) -> str:
        return "".join(json.dumps(r.to_dict(), ensure_ascii=False) + "\n" for r in self._records)

    def flush(self) -> None:
        """Write the full log to ``path`` atomically (no-op for in-memory logs)."""
        if self.path is None:
            return
        started = time.perf_counter()
        atomic_write_text(self.path, self.dumps())
        logger.debug(
            "history_flushed",
            scope=self.scope,
            record_count=len(self._records),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )

    @classmethod
    def load(cls, path: Path, scope: str = "") -> HistoryLog:
        """Load a log from JSONL; a missing file yields an empty log bound to *path*."""
        records: list[Record] = []
        if path.exists():
            with open(path, encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(Record.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        logger.warning(
                            "history_line_skipped", scope=scope, path=str(path), line=lineno, error=str(e),
                        )
        return cls(scope=scope, path=path, records=records)
