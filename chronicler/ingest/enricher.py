"""Build canonical records from incoming messages."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chronicler.history.record import Record, ReplyRef
from chronicler.ingest.events import EmbedView, MessageView
from chronicler.ingest.normalizer import format_timestamp, normalize_content, truncate
from chronicler.logging import get_logger
from chronicler.media.describer import MediaKind, classify_media

if TYPE_CHECKING:
    from chronicler.channels.base import BaseChannel
    from chronicler.media.describer import MediaDescriber
    from chronicler.media.fetch import MediaFetcher

logger = get_logger(__name__)

_URL_RE = re.compile(r"https?://")


@dataclass
class EnrichmentContext:
    message: MessageView
    record: Record
    previous: Record | None = None
    completed: list[str] = field(default_factory=list)


class RecordEnricher:
    """
    Turns a MessageView into a fully populated Record before it is appended.

    Steps run in order: reply, reactions, attachments, embeds. If a step
    fails, the remaining steps are skipped and the record is returned with
    what was completed. Rate limits never reach this level; the describer
    retries them itself.
    """

    def __init__(
        self,
        platform: BaseChannel,
        describer: MediaDescriber,
        fetcher: MediaFetcher,
        *,
        truncate_length: int = 50,
        settle_delay: float = 1.0,
    ):
        self.platform = platform
        self.describer = describer
        self.fetcher = fetcher
        self.truncate_length = truncate_length
        self.settle_delay = settle_delay

    @staticmethod
    def build_core(message: MessageView) -> Record:
        """Record with only the fields known without any external call."""
        return Record(
            id=message.id,
            channel=message.channel_name,
            author=message.author_name,
            created=format_timestamp(message.created_at),
            body=normalize_content(message.content, message.mentions),
        )

    async def build(self, message: MessageView, previous: Record | None = None) -> Record:
        """
        Build the record for *message*.

        Args:
            message: The incoming (or edited) message.
            previous: The record being replaced on an edit. Its reply snapshot is
                kept, and its fields stand in for any step that fails.

        Returns:
            The record, possibly with later enrichment steps missing.
        """
        ctx = EnrichmentContext(message=message, record=self.build_core(message), previous=previous)
        steps = (
            ("reply", self._step_reply),
            ("reactions", self._step_reactions),
            ("attachments", self._step_attachments),
            ("embeds", self._step_embeds),
        )
        for name, step in steps:
            try:
                await step(ctx)
            except Exception as e:
                logger.exception(
                    "record_enrichment_aborted",
                    message_id=message.id,
                    step=name,
                    completed=ctx.completed,
                    error_type=type(e).__name__,
                )
                break
            ctx.completed.append(name)
        self._carry_over(ctx, [name for name, _ in steps if name not in ctx.completed])
        return ctx.record

    @staticmethod
    def _carry_over(ctx: EnrichmentContext, skipped: list[str]) -> None:
        """On an edit, keep the previous record's fields for steps that did not finish."""
        previous = ctx.previous
        if previous is None or not skipped:
            return
        if "reply" in skipped:
            ctx.record.reply_to = previous.reply_to
        if "reactions" in skipped:
            ctx.record.reactions = list(previous.reactions)
        if "attachments" in skipped:
            ctx.record.attachments = list(previous.attachments)
        if "embeds" in skipped:
            ctx.record.embeds = list(previous.embeds)
        logger.info("record_enrichment_carried_over", message_id=ctx.record.id, fields=skipped)

    async def _step_reply(self, ctx: EnrichmentContext) -> None:
        if ctx.previous is not None and ctx.previous.reply_to is not None:
            ctx.record.reply_to = ctx.previous.reply_to
            return
        if ctx.message.reference_id is None:
            return
        ref = await self.platform.fetch_reference(ctx.message)
        if ref is None:
            return
        ctx.record.reply_to = ReplyRef(
            author=ref.author_name,
            message=truncate(normalize_content(ref.content, ref.mentions), self.truncate_length),
        )

    async def _step_reactions(self, ctx: EnrichmentContext) -> None:
        for emoji in ctx.message.reaction_emojis:
            for user in await self.platform.fetch_reaction_members(ctx.message, emoji):
                ctx.record.add_reaction(user, emoji)

    async def _step_attachments(self, ctx: EnrichmentContext) -> None:
        for attachment in ctx.message.attachments:
            kind = classify_media(attachment.content_type)
            if kind is None:
                desc = attachment.content_type or "unknown"
            else:
                fetched = await self.fetcher.fetch(attachment.url)
                desc = await self.describer.describe(kind, attachment.content_type or "", fetched.data)
            ctx.record.attachments.append(desc)

    async def _step_embeds(self, ctx: EnrichmentContext) -> None:
        if not _URL_RE.search(ctx.message.content or ""):
            return
        # Link previews are generated by the platform after the message is posted
        await asyncio.sleep(self.settle_delay)
        current = await self.platform.refetch(ctx.message)
        for embed in current.embeds:
            block = await self._embed_block(embed)
            if block:
                ctx.record.embeds.append(block)

    async def _embed_block(self, embed: EmbedView) -> str:
        parts = [embed.author, embed.title, embed.description]
        if embed.image_url is None and embed.video_url is None and embed.thumbnail_url is not None:
            parts.append(f"[THUMBNAIL] {await self._describe_url(embed.thumbnail_url, 'image')}")
        if embed.image_url is not None:
            parts.append(f"[IMAGE] {await self._describe_url(embed.image_url, 'image')}")
        if embed.video_url is not None:
            parts.append(f"[VIDEO] {await self._describe_url(embed.video_url, 'video and audio')}")
        return "\n".join(p for p in parts if p)

    async def _describe_url(self, url: str, kind: MediaKind) -> str:
        fetched = await self.fetcher.fetch(url)
        return await self.describer.describe_or_passthrough(fetched.content_type, fetched.data, kind=kind)
