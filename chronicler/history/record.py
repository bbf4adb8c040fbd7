"""Canonical record of one chat message."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ReplyRef:
    """Snapshot of the message a record replies to."""

    author: str
    message: str


@dataclass(frozen=True)
class Reaction:
    user: str
    emoji: str


@dataclass
class Record:
    """
    One chat message in canonical form.

    ``author`` is the display name at ingestion time, not a live reference.
    ``attachments`` and ``embeds`` hold derived description text and are only
    ever appended to; an edit replaces the whole record instead.
    """

    id: str
    channel: str
    author: str
    created: str  # YYYY-MM-DD HH:MM
    body: str
    reply_to: ReplyRef | None = None
    attachments: list[str] = field(default_factory=list)
    embeds: list[str] = field(default_factory=list)
    reactions: list[Reaction] = field(default_factory=list)

    def has_reaction(self, user: str, emoji: str) -> bool:
        return Reaction(user, emoji) in self.reactions

    def add_reaction(self, user: str, emoji: str) -> bool:
        """Add the pair unless already present. Returns True when added."""
        reaction = Reaction(user, emoji)
        if reaction in self.reactions:
            return False
        self.reactions.append(reaction)
        return True

    def remove_reaction(self, user: str, emoji: str) -> bool:
        """Remove the exact pair. Returns True when something was removed."""
        before = len(self.reactions)
        self.reactions = [r for r in self.reactions if r != Reaction(user, emoji)]
        return len(self.reactions) != before

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "channel": self.channel,
            "author": self.author,
            "created": self.created,
            "body": self.body,
            "attachments": list(self.attachments),
            "embeds": list(self.embeds),
            "reactions": [{"user": r.user, "emoji": r.emoji} for r in self.reactions],
        }
        if self.reply_to is not None:
            data["reply_to"] = {"author": self.reply_to.author, "message": self.reply_to.message}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Record:
        reply = data.get("reply_to")
        return cls(
            id=str(data["id"]),
            channel=data.get("channel", ""),
            author=data.get("author", ""),
            created=data.get("created", ""),
            body=data.get("body", ""),
            reply_to=ReplyRef(reply["author"], reply["message"]) if reply else None,
            attachments=list(data.get("attachments") or []),
            embeds=list(data.get("embeds") or []),
            reactions=[Reaction(r["user"], r["emoji"]) for r in data.get("reactions") or []],
        )
