"""Compress the oldest part of a history log into memory."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Literal

from chronicler.compaction.coordinator import CompactionCoordinator
from chronicler.errors import CompactionError, GenerationError
from chronicler.history.render import render_history
from chronicler.logging import get_logger
from chronicler.providers.fallback import FallbackResult, generate_with_fallback

if TYPE_CHECKING:
    from chronicler.history.log import HistoryLog
    from chronicler.history.record import Record
    from chronicler.memory.store import MemoryStore
    from chronicler.providers.base import LLMProvider

logger = get_logger(__name__)


@dataclass
class CompactionResult:
    status: Literal["compacted", "restored"]
    extracted: int
    log_length: int
    model: str | None = None
    archive_path: Path | None = None


@dataclass
class CompactionContext:
    scope: str
    log: HistoryLog
    memory: MemoryStore
    prefix: list[Record] = field(default_factory=list)
    content: str = ""
    current_memory: str = ""
    result: FallbackResult = field(default_factory=FallbackResult)


class CompactionPipeline:
    """
    Step runner for one compaction attempt.

    extract -> render -> generate -> commit (archive + replace memory)
    or, when every tier is rate limited, restore the extracted prefix.
    """

    def __init__(
        self,
        provider: LLMProvider,
        memory_for: Callable[[str], MemoryStore],
        *,
        models: list[str],
        instruction: str,
        high_water: int = 2000,
        low_water: int = 1000,
        safety_settings: list[dict[str, str]] | None = None,
        coordinator: CompactionCoordinator | None = None,
    ):
        self.provider = provider
        self.memory_for = memory_for
        self.models = models
        self.instruction = instruction
        self.high_water = high_water
        self.low_water = low_water
        self.safety_settings = safety_settings
        self.coordinator = coordinator or CompactionCoordinator()

    def needs_compaction(self, log: HistoryLog) -> bool:
        return len(log) > self.high_water

    async def maybe_compact(self, scope: str, log: HistoryLog) -> CompactionResult | None:
        """Compact *log* if it is over the high-water mark and no compaction is in flight."""
        if not self.needs_compaction(log):
            return None
        result = await self.coordinator.run_if_idle(scope, lambda: self.compact(scope, log))
        if result is None:
            logger.debug("compaction_skipped_in_flight", scope=scope)
        return result

    async def compact(self, scope: str, log: HistoryLog) -> CompactionResult:
        """
        Run one compaction attempt.

        Raises:
            CompactionError: Generation failed for a reason other than rate
                limiting, or returned blank text. The log stays trimmed and
                memory is untouched.
        """
        ctx = CompactionContext(scope=scope, log=log, memory=self.memory_for(scope))
        self._step_extract(ctx)
        try:
            await self._step_generate(ctx)
        except GenerationError as e:
            raise CompactionError(scope, len(ctx.prefix), e) from e
        if ctx.result.exhausted:
            return self._step_restore(ctx)
        return self._step_commit(ctx)

    def _step_extract(self, ctx: CompactionContext) -> None:
        before = len(ctx.log)
        ctx.prefix = ctx.log.extract_prefix_and_trim(self.high_water, self.low_water)
        ctx.content = render_history(ctx.prefix)
        logger.info(
            "compaction_started",
            scope=ctx.scope,
            log_length=before,
            extracted=len(ctx.prefix),
            content_chars=len(ctx.content),
        )

    async def _step_generate(self, ctx: CompactionContext) -> None:
        ctx.current_memory = ctx.memory.read()
        ctx.result = await generate_with_fallback(
            self.provider,
            self.models,
            ctx.content,
            system_instruction=self.instruction + ctx.current_memory,
            safety_settings=self.safety_settings,
            purpose="memory generation",
        )
        if not ctx.result.exhausted and not (ctx.result.text or "").strip():
            # A blank memory must never replace the live one
            raise GenerationError(ctx.result.model or "unknown", "empty memory text")

    def _step_restore(self, ctx: CompactionContext) -> CompactionResult:
        ctx.log.restore_prefix(ctx.prefix)
        logger.warning(
            "compaction_restored",
            scope=ctx.scope,
            restored=len(ctx.prefix),
            log_length=len(ctx.log),
        )
        return CompactionResult(status="restored", extracted=len(ctx.prefix), log_length=len(ctx.log))

    def _step_commit(self, ctx: CompactionContext) -> CompactionResult:
        archive_path = ctx.memory.replace(ctx.result.text)
        logger.info(
            "compaction_finished",
            scope=ctx.scope,
            model=ctx.result.model,
            extracted=len(ctx.prefix),
            log_length=len(ctx.log),
            usage=ctx.result.usage,
        )
        return CompactionResult(
            status="compacted",
            extracted=len(ctx.prefix),
            log_length=len(ctx.log),
            model=ctx.result.model,
            archive_path=archive_path,
        )
