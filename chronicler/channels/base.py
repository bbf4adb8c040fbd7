"""Base channel interface for chat platforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from chronicler.bus.events import ChatEvent
from chronicler.bus.queue import EventBus
from chronicler.ingest.events import MessageView
from chronicler.logging import get_logger

logger = get_logger(__name__)


class BaseChannel(ABC):
    """
    Abstract base class for chat platform adapters.

    An adapter turns native events into ChatEvents on the bus and serves the
    follow-up calls the core needs while building records and replying.
    """

    name: str = "base"

    def __init__(self, config: Any, bus: EventBus):
        """
        Initialize the channel.

        Args:
            config: Channel-specific configuration.
            bus: The event bus for communication.
        """
        self.config = config
        self.bus = bus
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """
        Connect to the platform and begin listening.

        This should be a long-running async task that forwards events to the
        bus via _publish().
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel and clean up resources."""
        pass

    @abstractmethod
    async def fetch_reference(self, message: MessageView) -> MessageView | None:
        """Return the message *message* replies to, or None if it has no reference."""
        pass

    @abstractmethod
    async def refetch(self, message: MessageView) -> MessageView:
        """Fetch the current state of *message* from the platform."""
        pass

    @abstractmethod
    async def fetch_reaction_members(self, message: MessageView, emoji: str) -> list[str]:
        """Display names of everyone who reacted to *message* with *emoji*."""
        pass

    @abstractmethod
    async def send(self, channel_id: str, content: str) -> MessageView:
        """
        Post *content* to *channel_id*.

        Returns:
            The delivered message.
        """
        pass

    @abstractmethod
    async def send_typing(self, channel_id: str) -> None:
        pass

    async def _publish(self, event: ChatEvent) -> None:
        logger.debug(
            "channel_event_published",
            channel=self.name,
            kind=event.kind,
            scope=event.scope,
            message_id=event.message_id,
        )
        await self.bus.publish(event)

    @property
    def is_running(self) -> bool:
        """Check if the channel is running."""
        return self._running
