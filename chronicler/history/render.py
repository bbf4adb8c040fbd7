"""Render records as the plain-text transcript sent to the model."""

from __future__ import annotations

import json
from typing import Iterable

from chronicler.history.record import Record


def render_record(record: Record) -> str:
    lines = [f"#{record.channel}"]
    if record.reply_to is not None:
        lines.append(f'[REPLY @{record.reply_to.author}] "{record.reply_to.message}":')
    lines.append(f"[{record.author}] {record.created}")
    lines.append(record.body)
    if record.attachments:
        lines.append(json.dumps(record.attachments, ensure_ascii=False))
    if record.embeds:
        lines.append(json.dumps(record.embeds, ensure_ascii=False))
    if record.reactions:
        lines.append("[REACTIONS]")
        lines.append(", ".join(f"{r.user}: {r.emoji}" for r in record.reactions))
    lines.append("---")
    return "\n".join(lines) + "\n"


def render_history(records: Iterable[Record]) -> str:
    """Render *records* in order under a ``[MESSAGES]`` header."""
    return "[MESSAGES]\n" + "".join(render_record(r) for r in records)
