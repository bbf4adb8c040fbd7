"""Event bus module."""

from chronicler.bus.events import ChatEvent, EventKind
from chronicler.bus.queue import EventBus

__all__ = ["ChatEvent", "EventBus", "EventKind"]
