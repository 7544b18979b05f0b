"""Audit listener Cog for Auditcord.

Routes guild events to the moderation logger. Snapshots are taken here, at the
platform boundary, so the logger only ever sees plain snapshot values.

This cog is where failures stop: a handler that raises is logged and only that
event's notification is dropped.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, List, Tuple, TypeVar

import discord
from discord.ext import commands

from auditcord.datatypes.snapshots import (
    IGNORED_CHANNEL_TYPES,
    ChannelSnapshot,
    EmojiSnapshot,
    MemberSnapshot,
    RoleSnapshot,
    StickerSnapshot,
)
from auditcord.moderation.moderation_logger import ModerationLogger
from auditcord.util.logger import get_logger

logger = get_logger("audit_listener")

S = TypeVar("S")


def partition_by_id(
    before: Iterable[object],
    after: Iterable[object],
    snapshot: Callable[[object], S],
) -> Tuple[List[S], List[S], List[Tuple[S, S]]]:
    """Split two entity lists into (created, deleted, changed pairs) by ID.

    Unchanged entities are left out of the changed pairs.
    """
    old: Dict[int, S] = {item.id: snapshot(item) for item in before}
    new: Dict[int, S] = {item.id: snapshot(item) for item in after}

    created = [new[item_id] for item_id in new if item_id not in old]
    deleted = [old[item_id] for item_id in old if item_id not in new]
    changed = [
        (old[item_id], new[item_id])
        for item_id in new
        if item_id in old and old[item_id] != new[item_id]
    ]
    return created, deleted, changed


class AuditListenerCog(commands.Cog):
    """Forwards guild mutation and message events to the moderation logger."""

    def __init__(self, discord_bot_instance, moderation_logger: ModerationLogger):
        self.bot = discord_bot_instance
        self.moderation_logger = moderation_logger
        logger.info("[AUDIT LISTENER] Audit listener cog loaded")

    @contextmanager
    def _guard(self, event_name: str, guild_id: int) -> Iterator[None]:
        try:
            yield
        except Exception:
            logger.exception("[AUDIT LISTENER] Failed to log %s in guild %s", event_name, guild_id)

    # --------------------------
    # Channels
    # --------------------------
    @commands.Cog.listener(name="on_guild_channel_create")
    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel):
        if channel.type in IGNORED_CHANNEL_TYPES:
            return
        with self._guard("channel create", channel.guild.id):
            await self.moderation_logger.handle_channel_create(channel.guild.id, ChannelSnapshot.from_channel(channel))

    @commands.Cog.listener(name="on_guild_channel_delete")
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel):
        if channel.type in IGNORED_CHANNEL_TYPES:
            return
        with self._guard("channel delete", channel.guild.id):
            await self.moderation_logger.handle_channel_delete(channel.guild.id, ChannelSnapshot.from_channel(channel))

    @commands.Cog.listener(name="on_guild_channel_update")
    async def on_guild_channel_update(self, before: discord.abc.GuildChannel, after: discord.abc.GuildChannel):
        if before.type in IGNORED_CHANNEL_TYPES:
            return
        with self._guard("channel update", after.guild.id):
            await self.moderation_logger.handle_channel_update(
                after.guild.id,
                ChannelSnapshot.from_channel(before),
                ChannelSnapshot.from_channel(after),
            )

    # --------------------------
    # Roles
    # --------------------------
    @commands.Cog.listener(name="on_guild_role_create")
    async def on_guild_role_create(self, role: discord.Role):
        with self._guard("role create", role.guild.id):
            await self.moderation_logger.handle_role_create(role.guild.id, RoleSnapshot.from_role(role))

    @commands.Cog.listener(name="on_guild_role_delete")
    async def on_guild_role_delete(self, role: discord.Role):
        with self._guard("role delete", role.guild.id):
            await self.moderation_logger.handle_role_delete(role.guild.id, RoleSnapshot.from_role(role))

    @commands.Cog.listener(name="on_guild_role_update")
    async def on_guild_role_update(self, before: discord.Role, after: discord.Role):
        with self._guard("role update", after.guild.id):
            await self.moderation_logger.handle_role_update(
                after.guild.id, RoleSnapshot.from_role(before), RoleSnapshot.from_role(after)
            )

    # --------------------------
    # Emojis and stickers
    # --------------------------
    @commands.Cog.listener(name="on_guild_emojis_update")
    async def on_guild_emojis_update(self, guild: discord.Guild, before, after):
        created, deleted, changed = partition_by_id(before, after, EmojiSnapshot.from_emoji)
        for emoji in created:
            with self._guard("emoji create", guild.id):
                await self.moderation_logger.handle_emoji_create(guild.id, emoji)
        for emoji in deleted:
            with self._guard("emoji delete", guild.id):
                await self.moderation_logger.handle_emoji_delete(guild.id, emoji)
        for old, new in changed:
            with self._guard("emoji update", guild.id):
                await self.moderation_logger.handle_emoji_update(guild.id, old, new)

    @commands.Cog.listener(name="on_guild_stickers_update")
    async def on_guild_stickers_update(self, guild: discord.Guild, before, after):
        created, deleted, changed = partition_by_id(before, after, StickerSnapshot.from_sticker)
        for sticker in created:
            with self._guard("sticker create", guild.id):
                await self.moderation_logger.handle_sticker_create(guild.id, sticker)
        for sticker in deleted:
            with self._guard("sticker delete", guild.id):
                await self.moderation_logger.handle_sticker_delete(guild.id, sticker)
        for old, new in changed:
            with self._guard("sticker update", guild.id):
                await self.moderation_logger.handle_sticker_update(guild.id, old, new)

    # --------------------------
    # Members
    # --------------------------
    @commands.Cog.listener(name="on_member_ban")
    async def on_member_ban(self, guild: discord.Guild, user: discord.User):
        with self._guard("ban", guild.id):
            await self.moderation_logger.handle_member_ban(guild.id, user)

    @commands.Cog.listener(name="on_member_unban")
    async def on_member_unban(self, guild: discord.Guild, user: discord.User):
        with self._guard("unban", guild.id):
            await self.moderation_logger.handle_member_unban(guild.id, user)

    @commands.Cog.listener(name="on_member_remove")
    async def on_member_remove(self, member: discord.Member):
        with self._guard("member remove", member.guild.id):
            await self.moderation_logger.handle_member_remove(member)

    @commands.Cog.listener(name="on_member_update")
    async def on_member_update(self, before: discord.Member, after: discord.Member):
        with self._guard("member update", after.guild.id):
            await self.moderation_logger.handle_member_update(
                after.guild.id, MemberSnapshot.from_member(before), MemberSnapshot.from_member(after)
            )

    # --------------------------
    # Messages
    # --------------------------
    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        if message.guild is None:
            return
        with self._guard("message", message.guild.id):
            await self.moderation_logger.handle_message_create(message)

    @commands.Cog.listener(name="on_message_delete")
    async def on_message_delete(self, message: discord.Message):
        if message.guild is None:
            return
        with self._guard("message delete", message.guild.id):
            await self.moderation_logger.handle_message_delete(message)


def setup(discord_bot_instance, moderation_logger: ModerationLogger):
    discord_bot_instance.add_cog(AuditListenerCog(discord_bot_instance, moderation_logger))
