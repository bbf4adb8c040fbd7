"""Event types carried on the bus."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from chronicler.ingest.events import MessageView, ReactionChange

EventKind = Literal["message_created", "message_updated", "reaction_added", "reaction_removed"]


@dataclass
class ChatEvent:
    """One event from a chat channel, scoped to a conversation (guild)."""

    kind: EventKind
    scope: str
    channel: str = "discord"
    message: MessageView | None = None
    reaction: ReactionChange | None = None

    @property
    def message_id(self) -> str | None:
        if self.message is not None:
            return self.message.id
        if self.reaction is not None:
            return self.reaction.message_id
        return None
