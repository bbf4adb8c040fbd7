"""Event loop: the single consumer that owns every history log."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import TYPE_CHECKING, Callable

import structlog

from chronicler.errors import CompactionError, GenerationError
from chronicler.ingest.enricher import RecordEnricher
from chronicler.logging import get_logger

if TYPE_CHECKING:
    from chronicler.agent.reply import ReplyGenerator
    from chronicler.bus.events import ChatEvent
    from chronicler.bus.queue import EventBus
    from chronicler.channels.base import BaseChannel
    from chronicler.compaction.pipeline import CompactionPipeline
    from chronicler.history.log import HistoryLog
    from chronicler.history.manager import HistoryManager
    from chronicler.ingest.events import MessageView, ReactionChange
    from chronicler.memory.store import MemoryStore

logger = get_logger(__name__)


class ChronicleLoop:
    """
    Consumes chat events from the bus, one at a time.

    It:
    1. Builds a record for each new or edited message and writes it to the log
    2. Applies reaction changes
    3. Occasionally generates and sends a reply
    4. Compacts the log into memory once it passes the high-water mark

    A failing event is logged and skipped; the loop keeps running.
    """

    def __init__(
        self,
        bus: EventBus,
        platform: BaseChannel,
        history: HistoryManager,
        memory_for: Callable[[str], MemoryStore],
        enricher: RecordEnricher,
        replier: ReplyGenerator,
        compactor: CompactionPipeline,
        *,
        write_readable: bool = True,
    ):
        self.bus = bus
        self.platform = platform
        self.history = history
        self.memory_for = memory_for
        self.enricher = enricher
        self.replier = replier
        self.compactor = compactor
        self.write_readable = write_readable
        self._running = False
        self._stopped_event = asyncio.Event()

    async def run(self) -> None:
        """Run the loop, processing events from the bus."""
        self._running = True
        self._stopped_event.clear()
        logger.info("Chronicle loop started")
        try:
            while self._running:
                try:
                    event = await asyncio.wait_for(self.bus.consume(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                try:
                    await self.handle(event)
                except Exception as e:
                    logger.exception(
                        "Error processing event",
                        error_type=type(e).__name__,
                        kind=event.kind,
                        scope=event.scope,
                        message_id=event.message_id,
                    )
        finally:
            self._running = False
            self._stopped_event.set()
            logger.info("Chronicle loop stopped")

    def stop(self) -> None:
        """Signal the loop to stop. Returns immediately; use wait_stopped() to await shutdown."""
        self._running = False
        logger.info("Chronicle loop stopping")

    async def wait_stopped(self, timeout: float = 30.0) -> bool:
        """Wait for the loop to finish the current event and shut down.

        Returns:
            True if the loop stopped cleanly, False if timeout was reached.
        """
        try:
            await asyncio.wait_for(self._stopped_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Chronicle loop did not stop in time", timeout=timeout)
            return False

    async def handle(self, event: ChatEvent) -> None:
        """Process a single event. Exceptions propagate to the caller."""
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            scope=event.scope, event_kind=event.kind, message_id=event.message_id,
        )
        log = self.history.get_or_create(event.scope)

        if event.kind == "message_created" and event.message is not None:
            await self._on_message_created(event.scope, log, event.message)
        elif event.kind == "message_updated" and event.message is not None:
            await self._on_message_updated(log, event.message)
        elif event.kind == "reaction_added" and event.reaction is not None:
            self._on_reaction(log, event.reaction, added=True)
        elif event.kind == "reaction_removed" and event.reaction is not None:
            self._on_reaction(log, event.reaction, added=False)
        else:
            logger.warning("Ignoring malformed event")

    async def _on_message_created(self, scope: str, log: HistoryLog, message: MessageView) -> None:
        record = await self.enricher.build(message)
        log.append(record)
        logger.info(
            "message_ingested",
            record_count=len(log),
            attachments=len(record.attachments),
            embeds=len(record.embeds),
        )
        if self.write_readable:
            self.history.write_readable(scope, log)

        try:
            if self.replier.should_reply(message):
                await self._reply(scope, log, message)
        finally:
            await self._compact(scope, log)

    async def _reply(self, scope: str, log: HistoryLog, message: MessageView) -> None:
        memory = self.memory_for(scope).read()
        try:
            text = await self.replier.generate(message.channel_id, log, memory)
        except GenerationError as e:
            logger.error("reply_generation_failed", model=e.model, error=e.message)
            return
        if text is None:
            return
        try:
            delivered = await self.platform.send(message.channel_id, text)
        except Exception as e:
            logger.exception("reply_send_failed", error_type=type(e).__name__)
            return
        record = dataclasses.replace(RecordEnricher.build_core(delivered), body=text)
        log.append(record)
        logger.info("reply_sent", reply_id=record.id, reply_chars=len(text), record_count=len(log))

    async def _compact(self, scope: str, log: HistoryLog) -> None:
        try:
            await self.compactor.maybe_compact(scope, log)
        except CompactionError as e:
            logger.error(
                "compaction_records_lost",
                dropped=e.dropped,
                log_length=len(log),
                error=str(e.cause),
            )

    async def _on_message_updated(self, log: HistoryLog, message: MessageView) -> None:
        existing = log.get(message.id)
        if existing is None:
            logger.debug("update_for_unknown_record")
            return
        record = await self.enricher.build(message, previous=existing)
        log.update_by_id(message.id, record)
        logger.info("message_updated")

    def _on_reaction(self, log: HistoryLog, reaction: ReactionChange, *, added: bool) -> None:
        if added:
            changed = log.add_reaction(reaction.message_id, reaction.user, reaction.emoji)
        else:
            changed = log.remove_reaction(reaction.message_id, reaction.user, reaction.emoji)
        logger.debug(
            "reaction_added" if added else "reaction_removed",
            user=reaction.user,
            emoji=reaction.emoji,
            changed=changed,
        )
