"""Discord channel implementation using discord.py."""

from __future__ import annotations

from typing import Any

import discord
from discord.ext import commands

from chronicler.bus.events import ChatEvent, EventKind
from chronicler.bus.queue import EventBus
from chronicler.channels.base import BaseChannel
from chronicler.config.schema import DiscordConfig
from chronicler.ingest.events import (
    AttachmentView,
    EmbedView,
    MentionTables,
    MessageView,
    ReactionChange,
)
from chronicler.logging import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LEN = 2000


def _split_message(content: str, limit: int = MAX_MESSAGE_LEN) -> list[str]:
    """Split *content* into chunks Discord accepts, preferring line breaks."""
    chunks: list[str] = []
    rest = content
    while len(rest) > limit:
        cut = rest.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(rest[:cut])
        rest = rest[cut:].lstrip("\n")
    if rest:
        chunks.append(rest)
    return chunks


def _embed_view(embed: discord.Embed) -> EmbedView:
    return EmbedView(
        author=getattr(embed.author, "name", None),
        title=embed.title,
        description=embed.description,
        thumbnail_url=getattr(embed.thumbnail, "url", None),
        image_url=getattr(embed.image, "url", None),
        video_url=getattr(embed.video, "url", None),
    )


class DiscordChannel(BaseChannel):
    """Discord adapter: guild messages, edits and reactions in, replies out."""

    name = "discord"

    def __init__(self, config: DiscordConfig, bus: EventBus):
        super().__init__(config, bus)
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        self.bot = commands.Bot(command_prefix=commands.when_mentioned, intents=intents)
        self.bot.add_listener(self._on_ready, "on_ready")
        self.bot.add_listener(self._on_message, "on_message")
        self.bot.add_listener(self._on_raw_message_edit, "on_raw_message_edit")
        self.bot.add_listener(self._on_raw_reaction_add, "on_raw_reaction_add")
        self.bot.add_listener(self._on_raw_reaction_remove, "on_raw_reaction_remove")

    async def start(self) -> None:
        token = self.config.resolved_token
        if not token:
            logger.error("Discord token not configured")
            return
        self._running = True
        try:
            await self.bot.start(token)
        finally:
            self._running = False

    async def stop(self) -> None:
        self._running = False
        await self.bot.close()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _is_own(self, user: Any) -> bool:
        return self.bot.user is not None and getattr(user, "id", None) == self.bot.user.id

    def _to_view(self, message: discord.Message) -> MessageView:
        guild = message.guild
        author = message.author
        reference = message.reference
        return MessageView(
            id=str(message.id),
            scope=str(guild.id) if guild else "dm",
            channel_id=str(message.channel.id),
            channel_name=getattr(message.channel, "name", None) or str(message.channel.id),
            author_id=str(author.id),
            author_name=author.display_name,
            created_at=message.created_at,
            content=message.content or "",
            mentions=MentionTables(
                users={str(u.id): u.display_name for u in message.mentions},
                roles={str(r.id): r.name for r in message.role_mentions},
                channels={str(c.id): c.name for c in message.channel_mentions},
            ),
            reference_id=str(reference.message_id) if reference and reference.message_id else None,
            attachments=[
                AttachmentView(url=a.url, content_type=a.content_type, filename=a.filename)
                for a in message.attachments
            ],
            embeds=[_embed_view(e) for e in message.embeds],
            reaction_emojis=[str(r.emoji) for r in message.reactions],
            author_role_ids=[str(r.id) for r in getattr(author, "roles", [])],
            mentions_bot=any(self._is_own(u) for u in message.mentions),
            raw=message,
        )

    async def _member_name(self, guild_id: int, user_id: int, member: discord.Member | None) -> str:
        if member is not None:
            return member.display_name
        guild = self.bot.get_guild(guild_id)
        if guild is not None:
            cached = guild.get_member(user_id)
            if cached is not None:
                return cached.display_name
            try:
                return (await guild.fetch_member(user_id)).display_name
            except discord.NotFound:
                pass
        return (await self.bot.fetch_user(user_id)).display_name

    # ------------------------------------------------------------------
    # Platform calls used while building records and replying
    # ------------------------------------------------------------------

    async def fetch_reference(self, message: MessageView) -> MessageView | None:
        raw: discord.Message = message.raw
        if raw.reference is None or raw.reference.message_id is None:
            return None
        resolved = raw.reference.resolved
        if not isinstance(resolved, discord.Message):
            resolved = await raw.channel.fetch_message(raw.reference.message_id)
        return self._to_view(resolved)

    async def refetch(self, message: MessageView) -> MessageView:
        raw: discord.Message = message.raw
        return self._to_view(await raw.channel.fetch_message(raw.id))

    async def fetch_reaction_members(self, message: MessageView, emoji: str) -> list[str]:
        raw: discord.Message = message.raw
        for reaction in raw.reactions:
            if str(reaction.emoji) != emoji:
                continue
            names: list[str] = []
            async for user in reaction.users():
                member = raw.guild.get_member(user.id) if raw.guild else None
                names.append((member or user).display_name)
            return names
        return []

    async def _resolve_channel(self, channel_id: str) -> Any:
        channel = self.bot.get_channel(int(channel_id))
        if channel is None:
            channel = await self.bot.fetch_channel(int(channel_id))
        return channel

    async def send(self, channel_id: str, content: str) -> MessageView:
        channel = await self._resolve_channel(channel_id)
        first: discord.Message | None = None
        for chunk in _split_message(content):
            sent = await channel.send(chunk)
            first = first or sent
        if first is None:
            raise ValueError("Refusing to send an empty message")
        return self._to_view(first)

    async def send_typing(self, channel_id: str) -> None:
        channel = await self._resolve_channel(channel_id)
        await channel.typing()

    # ------------------------------------------------------------------
    # Gateway events
    # ------------------------------------------------------------------

    async def _on_ready(self) -> None:
        logger.info("Discord connected", user=str(self.bot.user), guilds=len(self.bot.guilds))

    async def _on_message(self, message: discord.Message) -> None:
        if self._is_own(message.author) or message.guild is None:
            return
        await self._publish(ChatEvent(
            kind="message_created", scope=str(message.guild.id), channel=self.name,
            message=self._to_view(message),
        ))

    async def _fetch_native(self, channel_id: int, message_id: int) -> discord.Message:
        channel = await self._resolve_channel(str(channel_id))
        return await channel.fetch_message(message_id)

    async def _on_raw_message_edit(self, payload: discord.RawMessageUpdateEvent) -> None:
        # Raw events also cover messages that are no longer in the cache.
        # Embed resolution arrives as an update without an edit timestamp.
        if payload.guild_id is None or payload.data.get("edited_timestamp") is None:
            return
        cached = payload.cached_message
        if cached is not None and cached.content == payload.data.get("content"):
            return
        try:
            message = await self._fetch_native(payload.channel_id, payload.message_id)
        except discord.HTTPException as e:
            logger.warning("Failed to fetch edited message", message_id=payload.message_id, error=str(e))
            return
        if self._is_own(message.author):
            return
        await self._publish(ChatEvent(
            kind="message_updated", scope=str(payload.guild_id), channel=self.name,
            message=self._to_view(message),
        ))

    async def _on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await self._publish_reaction("reaction_added", payload)

    async def _on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        await self._publish_reaction("reaction_removed", payload)

    async def _publish_reaction(self, kind: EventKind, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None:
            return
        try:
            name = await self._member_name(payload.guild_id, payload.user_id, payload.member)
        except discord.HTTPException as e:
            logger.warning("Failed to resolve reacting member", user_id=payload.user_id, error=str(e))
            return
        await self._publish(ChatEvent(
            kind=kind, scope=str(payload.guild_id), channel=self.name,
            reaction=ReactionChange(
                message_id=str(payload.message_id), user=name, emoji=str(payload.emoji),
            ),
        ))
