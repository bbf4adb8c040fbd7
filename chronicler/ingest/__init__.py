"""Turning platform events into canonical records."""

from chronicler.ingest.enricher import RecordEnricher
from chronicler.ingest.events import AttachmentView, EmbedView, MentionTables, MessageView, ReactionChange
from chronicler.ingest.normalizer import format_timestamp, normalize_content, truncate

__all__ = [
    "AttachmentView",
    "EmbedView",
    "MentionTables",
    "MessageView",
    "ReactionChange",
    "RecordEnricher",
    "format_timestamp",
    "normalize_content",
    "truncate",
]
