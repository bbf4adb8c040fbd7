"""Async event queue decoupling channel adapters from the processing loop."""

from __future__ import annotations

import asyncio

from chronicler.bus.events import ChatEvent


class EventBus:
    """
    FIFO queue of chat events.

    Adapters publish as events arrive; a single consumer drains the queue,
    so events are handled one at a time in delivery order.
    """

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[ChatEvent] = asyncio.Queue()

    async def publish(self, event: ChatEvent) -> None:
        await self.inbound.put(event)

    async def consume(self) -> ChatEvent:
        """Wait for the next event."""
        return await self.inbound.get()

    @property
    def size(self) -> int:
        return self.inbound.qsize()
