"""Keep at most one compaction in flight per scope."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class CompactionCoordinator:
    """Tracks in-flight compactions and per-scope locks."""

    def __init__(self) -> None:
        self.in_progress: set[str] = set()
        self.locks: dict[str, asyncio.Lock] = {}

    def is_running(self, scope: str) -> bool:
        return scope in self.in_progress

    def get_lock(self, scope: str) -> asyncio.Lock:
        lock = self.locks.get(scope)
        if lock is None:
            lock = asyncio.Lock()
            self.locks[scope] = lock
        return lock

    def prune_lock(self, scope: str, lock: asyncio.Lock) -> None:
        """Drop lock entry if no longer in use; batch-clean when dict grows large."""
        if not lock.locked():
            self.locks.pop(scope, None)
        if len(self.locks) > 100:
            stale = [k for k, v in self.locks.items() if not v.locked()]
            for key in stale:
                del self.locks[key]

    async def run_if_idle(
        self,
        scope: str,
        work: Callable[[], Awaitable[T]],
    ) -> T | None:
        """Run *work* unless a compaction for *scope* is already running.

        Returns None without running anything in that case.
        """
        if scope in self.in_progress:
            return None
        lock = self.get_lock(scope)
        self.in_progress.add(scope)
        try:
            async with lock:
                return await work()
        finally:
            self.in_progress.discard(scope)
            self.prune_lock(scope, lock)
