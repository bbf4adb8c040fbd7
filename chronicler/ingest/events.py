"""Platform-neutral views of chat events, produced by channel adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class MentionTables:
    """Id to display-name maps for the mentions in one message."""

    users: dict[str, str] = field(default_factory=dict)
    roles: dict[str, str] = field(default_factory=dict)
    channels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AttachmentView:
    url: str
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class EmbedView:
    author: str | None = None
    title: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    image_url: str | None = None
    video_url: str | None = None


@dataclass
class MessageView:
    """
    A message as seen by the core.

    ``raw`` keeps the adapter's native object so the adapter can serve
    follow-up calls (fetch reference, re-fetch, reaction members) for it.
    """

    id: str
    scope: str
    channel_id: str
    channel_name: str
    author_id: str
    author_name: str
    created_at: datetime
    content: str
    mentions: MentionTables = field(default_factory=MentionTables)
    reference_id: str | None = None
    attachments: list[AttachmentView] = field(default_factory=list)
    embeds: list[EmbedView] = field(default_factory=list)
    reaction_emojis: list[str] = field(default_factory=list)
    author_role_ids: list[str] = field(default_factory=list)
    mentions_bot: bool = False
    raw: Any = None


@dataclass(frozen=True)
class ReactionChange:
    message_id: str
    user: str
    emoji: str
