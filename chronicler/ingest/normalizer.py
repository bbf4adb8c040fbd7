"""Mention resolution, truncation and timestamp formatting."""

from __future__ import annotations

import re
from datetime import datetime

from chronicler.ingest.events import MentionTables

_MENTION_RE = re.compile(r"<(@!?|@&|#)(\d+)>")


def normalize_content(body: str, mentions: MentionTables) -> str:
    """Replace mention tokens with display names.

    ``<@id>`` / ``<@!id>`` become ``@user``, ``<@&id>`` becomes ``@role`` and
    ``<#id>`` becomes ``#channel``. Unknown ids keep the raw token.
    """

    def _sub(m: re.Match[str]) -> str:
        kind, ident = m.group(1), m.group(2)
        if kind == "@&":
            name = mentions.roles.get(ident)
            return f"@{name}" if name is not None else m.group(0)
        if kind == "#":
            name = mentions.channels.get(ident)
            return f"#{name}" if name is not None else m.group(0)
        name = mentions.users.get(ident)
        return f"@{name}" if name is not None else m.group(0)

    return _MENTION_RE.sub(_sub, body or "")


def truncate(text: str, length: int = 50) -> str:
    """Cut *text* to *length* characters, ending in ``...`` when shortened.

    >>> truncate("abcdefghij", 5)
    'ab...'
    """
    if len(text) > length:
        return f"{text[:max(length - 3, 0)]}..."
    return text


def format_timestamp(dt: datetime) -> str:
    """``YYYY-MM-DD HH:MM`` in local time."""
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%Y-%m-%d %H:%M")
