"""
Moderation logger: one handler per guild event.

Every mutation handler follows the same pipeline: diff the snapshots (update
events only), attribute the event to an audit-log entry, render the
notification and hand it to the emitter. Upstream errors are not caught here;
the listener cog that calls these handlers decides what to do with them.

Handlers return ``True`` when a notification was delivered.
"""

from __future__ import annotations

import datetime
from typing import Iterable, Optional, Tuple

import discord

from auditcord.audit.correlator import AuditCorrelator
from auditcord.audit.differ import (
    diff_channel,
    diff_emoji,
    diff_member,
    diff_role,
    diff_sticker,
    roles_changed,
)
from auditcord.datatypes.audit_datatypes import AuditAttribution, AuditCategory
from auditcord.datatypes.snapshots import (
    ChannelKind,
    ChannelSnapshot,
    EmojiSnapshot,
    MemberSnapshot,
    RoleSnapshot,
    StickerSnapshot,
)
from auditcord.notify.emitter import NotificationEmitter
from auditcord.notify.media import NO_CONTENT, build_media_log
from auditcord.notify.notification import LogLevel, Notification
from auditcord.util.format_utils import (
    bold,
    bool_to_str,
    code_block,
    format_bitrate,
    format_region,
    inline_code,
    plural,
)
from auditcord.util.logger import get_logger

logger = get_logger("moderation_logger")

NO_REASON = "No Reason Set"
KICK_FOOTER = "Sometimes the user kicking is inaccurate as there is no new audit log entry"
REPLY_FOOTER = "This mention was a message reply"
GHOST_PING_MARKER = "(ghostping)"

# Channel types whose deleted messages are logged
LOGGED_MESSAGE_CHANNEL_TYPES = (discord.ChannelType.text, discord.ChannelType.news)


def _details(pairs: Iterable[Tuple[str, object]]) -> str:
    return "\n".join(f"{bold(label)}: {inline_code(value)}" for label, value in pairs)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ModerationLogger:
    """Turns guild events into log channel notifications.

    Args:
        correlator: Resolves who caused an event.
        emitter: Delivers notifications.
        config_manager: Anything with ``get(guild_id) -> LoggerConfig``.
        kick_window_seconds: Maximum age of a kick entry that explains a member leaving.
        ghost_ping_default_seconds: Ghost ping window for guilds without their own.
    """

    def __init__(
        self,
        correlator: AuditCorrelator,
        emitter: NotificationEmitter,
        config_manager,
        kick_window_seconds: int = 30,
        ghost_ping_default_seconds: int = 60,
    ) -> None:
        self.correlator = correlator
        self.emitter = emitter
        self.config_manager = config_manager
        self.kick_window_seconds = kick_window_seconds
        self.ghost_ping_default_seconds = ghost_ping_default_seconds

    async def _attribute(self, guild_id: int, category: AuditCategory) -> AuditAttribution:
        attribution = await self.correlator.correlate(guild_id, category)
        if not attribution.found:
            logger.debug("[MODERATION LOGGER] No %s audit entry found for guild %s", category, guild_id)
        return attribution

    # --------------------------
    # Channels
    # --------------------------
    async def handle_channel_create(self, guild_id: int, channel: ChannelSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.CHANNEL_CREATE)

        if channel.kind is ChannelKind.CATEGORY:
            title = f'Category "{channel.name}" has been created by {attribution.actor_tag}'
        else:
            title = f'{channel.kind.value} channel "{channel.name}" has been created by {attribution.actor_tag}'

        category = channel.parent_name or "No Category"
        description = None
        if channel.voice is not None:
            description = _details((
                ("Category", category),
                ("Bitrate", format_bitrate(channel.voice.bitrate)),
                ("Region", format_region(channel.voice.rtc_region)),
            ))
        elif channel.text is not None:
            description = _details((
                ("Category", category),
                ("NSFW", bool_to_str(channel.text.nsfw)),
            ))

        return await self.emitter.emit(guild_id, LogLevel.INFO, title, description, attribution.actor_avatar_url)

    async def handle_channel_delete(self, guild_id: int, channel: ChannelSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.CHANNEL_DELETE)

        if channel.kind is ChannelKind.CATEGORY:
            title = f'Category "{channel.name}" has been deleted by {attribution.actor_tag}'
        else:
            title = f'{channel.kind.value} channel "{channel.name}" has been deleted by {attribution.actor_tag}'

        return await self.emitter.emit(guild_id, LogLevel.UPDATE, title, None, attribution.actor_avatar_url)

    async def handle_channel_update(self, guild_id: int, old: ChannelSnapshot, new: ChannelSnapshot) -> bool:
        changes = diff_channel(old, new)
        if changes.suppressed:
            return False

        attribution = await self._attribute(guild_id, AuditCategory.CHANNEL_UPDATE)
        count = len(changes)
        title = f'{attribution.actor_tag} made {count} {plural(count, "change")} to "{old.name}"'
        return await self.emitter.emit(guild_id, LogLevel.UPDATE, title, changes, attribution.actor_avatar_url)

    # --------------------------
    # Roles
    # --------------------------
    async def handle_role_create(self, guild_id: int, role: RoleSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.ROLE_CREATE)
        description = _details((
            ("Name", role.name),
            ("Color", role.color),
            ("Hoist", bool_to_str(role.hoist)),
            ("Mentionable", bool_to_str(role.mentionable)),
            ("ID", role.id),
        ))
        title = f"A new role was just created by {attribution.actor_tag}"
        return await self.emitter.emit(guild_id, LogLevel.INFO, title, description, attribution.actor_avatar_url)

    async def handle_role_delete(self, guild_id: int, role: RoleSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.ROLE_DELETE)
        description = _details((
            ("Color", role.color),
            ("Hoist", bool_to_str(role.hoist)),
            ("Mentionable", bool_to_str(role.mentionable)),
            ("ID", role.id),
        ))
        title = f'The role "{role.name}" was just deleted by {attribution.actor_tag}'
        return await self.emitter.emit(guild_id, LogLevel.INFO, title, description, attribution.actor_avatar_url)

    async def handle_role_update(self, guild_id: int, old: RoleSnapshot, new: RoleSnapshot) -> bool:
        changes = diff_role(old, new)
        if changes.suppressed:
            return False

        attribution = await self._attribute(guild_id, AuditCategory.ROLE_UPDATE)
        title = f'The role "{old.name}" was just edited by {attribution.actor_tag}'
        return await self.emitter.emit(guild_id, LogLevel.INFO, title, changes, attribution.actor_avatar_url)

    # --------------------------
    # Emojis
    # --------------------------
    async def handle_emoji_create(self, guild_id: int, emoji: EmojiSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.EMOJI_CREATE)
        title = f'The emote "{emoji.name}" has been created by {attribution.actor_tag}'
        description = bold("Requires Nitro") if emoji.animated else None
        return await self.emitter.emit(
            guild_id, LogLevel.INFO, title, description, attribution.actor_avatar_url, image_url=emoji.url
        )

    async def handle_emoji_delete(self, guild_id: int, emoji: EmojiSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.EMOJI_DELETE)
        title = f'The emote "{emoji.name}" has been deleted by {attribution.actor_tag}'
        return await self.emitter.emit(
            guild_id, LogLevel.UPDATE, title, None, attribution.actor_avatar_url, image_url=emoji.url
        )

    async def handle_emoji_update(self, guild_id: int, old: EmojiSnapshot, new: EmojiSnapshot) -> bool:
        if not diff_emoji(old, new):
            return False

        attribution = await self._attribute(guild_id, AuditCategory.EMOJI_UPDATE)
        title = f'The emote "{old.name}" has been re-named to "{new.name}" by {attribution.actor_tag}'
        return await self.emitter.emit(
            guild_id, LogLevel.INFO, title, None, attribution.actor_avatar_url, image_url=new.url
        )

    # --------------------------
    # Stickers
    # --------------------------
    def _sticker_details(self, sticker: StickerSnapshot) -> str:
        return _details((
            ("Format", sticker.format or "Unknown"),
            ("ID", sticker.id),
            ("Description", sticker.description or "None"),
        ))

    async def handle_sticker_create(self, guild_id: int, sticker: StickerSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.STICKER_CREATE)
        title = f'The sticker "{sticker.name}" was just created by {attribution.actor_tag}'
        return await self.emitter.emit(
            guild_id,
            LogLevel.INFO,
            title,
            self._sticker_details(sticker),
            attribution.actor_avatar_url,
            image_url=sticker.url,
        )

    async def handle_sticker_delete(self, guild_id: int, sticker: StickerSnapshot) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.STICKER_DELETE)
        title = f'The sticker "{sticker.name}" was just deleted by {attribution.actor_tag}'
        return await self.emitter.emit(
            guild_id, LogLevel.UPDATE, title, self._sticker_details(sticker), attribution.actor_avatar_url
        )

    async def handle_sticker_update(self, guild_id: int, old: StickerSnapshot, new: StickerSnapshot) -> bool:
        changes = diff_sticker(old, new)
        if not changes:
            return False

        attribution = await self._attribute(guild_id, AuditCategory.STICKER_UPDATE)
        title = f'The sticker "{old.name}" was just edited by {attribution.actor_tag}'
        return await self.emitter.emit(guild_id, LogLevel.UPDATE, title, changes, attribution.actor_avatar_url)

    # --------------------------
    # Members
    # --------------------------
    async def handle_member_ban(self, guild_id: int, user: discord.abc.User) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.BAN_ADD)
        reason = attribution.reason or NO_REASON
        title = f'"{user}" was banned for "{reason}" by {attribution.actor_tag}'
        return await self.emitter.emit(guild_id, LogLevel.ALERT, title, None, attribution.actor_avatar_url)

    async def handle_member_unban(self, guild_id: int, user: discord.abc.User) -> bool:
        attribution = await self._attribute(guild_id, AuditCategory.BAN_REMOVE)
        reason = attribution.reason or NO_REASON
        quoted_reason = f'"{reason}"'
        title = f'"{user}" has been un-banned by {attribution.actor_tag}'
        description = f'They were originally banned for the following reason:\n{bold(quoted_reason)}'
        return await self.emitter.emit(guild_id, LogLevel.ALERT, title, description, attribution.actor_avatar_url)

    def _is_fresh(self, attribution: AuditAttribution, now: datetime.datetime) -> bool:
        if attribution.created_at is None:
            return False
        age = (now - attribution.created_at).total_seconds()
        return age <= self.kick_window_seconds

    async def handle_member_remove(self, member: discord.Member, now: Optional[datetime.datetime] = None) -> bool:
        """Log a kick when the newest kick entry targets this member and is recent."""
        guild_id = member.guild.id
        attribution = await self._attribute(guild_id, AuditCategory.MEMBER_KICK)
        if not attribution.found or attribution.target_id != member.id:
            return False
        if not self._is_fresh(attribution, now or _utcnow()):
            logger.debug("[MODERATION LOGGER] Kick entry %s is stale, not attributing it", attribution.entry_id)
            return False

        notification = Notification(
            level=LogLevel.ALERT,
            author_name=f"{member} was just kicked by {attribution.actor_tag}",
            author_icon_url=attribution.actor_avatar_url,
            description=f"{bold('Reason')}\n{code_block(attribution.reason or 'NO_REASON')}",
            footer=KICK_FOOTER,
        )
        return await self.emitter.deliver(guild_id, [notification])

    async def handle_member_update(self, guild_id: int, old: MemberSnapshot, new: MemberSnapshot) -> bool:
        changes = diff_member(old, new)
        if not changes:
            return False

        category = AuditCategory.MEMBER_ROLE_UPDATE if roles_changed(old, new) else AuditCategory.MEMBER_UPDATE
        attribution = await self._attribute(guild_id, category)
        title = f'{attribution.actor_tag} updated the member "{new.tag}"'
        return await self.emitter.emit(guild_id, LogLevel.UPDATE, title, changes, attribution.actor_avatar_url)

    async def handle_strike_add(
        self,
        guild_id: int,
        member: discord.abc.User,
        moderator: discord.abc.User,
        reason: str,
        strike_count: int,
    ) -> bool:
        title = f"{member} received a strike from {moderator}"
        description = (
            f"{bold('Reason')}\n{code_block(reason or NO_REASON)}\n"
            f"{bold('Active strikes')}: {inline_code(strike_count)}"
        )
        return await self.emitter.emit(
            guild_id, LogLevel.ALERT, title, description, moderator.display_avatar.url
        )

    # --------------------------
    # Messages
    # --------------------------
    @staticmethod
    def _is_ghost_ping(message: discord.Message) -> bool:
        if any(not user.bot for user in message.mentions):
            return True
        return bool(message.role_mentions)

    @staticmethod
    def _replied_user(message: discord.Message) -> Optional[discord.abc.User]:
        reference = message.reference
        resolved = getattr(reference, "resolved", None) if reference is not None else None
        author = getattr(resolved, "author", None)
        if author is None or author.bot:
            return None
        return author

    async def handle_message_delete(self, message: discord.Message, now: Optional[datetime.datetime] = None) -> bool:
        if message.guild is None or message.author.bot:
            return False

        guild_id = message.guild.id
        config = self.config_manager.get(guild_id)
        channel = message.channel
        if (
            config.is_log_channel(channel.id)
            or getattr(channel, "type", None) not in LOGGED_MESSAGE_CHANNEL_TYPES
            or config.is_ignored(channel.id)
        ):
            return False

        minutes = ((now or _utcnow()) - message.created_at).total_seconds() / 60
        threshold_minutes = config.threshold_seconds(self.ghost_ping_default_seconds) / 60

        ghost_ping = self._is_ghost_ping(message)
        replied_user = self._replied_user(message)
        content = message.content or NO_CONTENT
        channel_line = f"{bold('Channel')}: {inline_code(channel.name)}"
        time_line = f"{bold('Time Between')}: {inline_code(f'{minutes:.2f}')} minutes"

        notification = Notification(
            level=LogLevel.INFO,
            author_name=f"Deleted message from {message.author}",
            author_icon_url=message.author.display_avatar.url,
        )
        if replied_user is not None:
            notification.footer = REPLY_FOOTER
            notification.description = "\n".join((
                bold("Potential Ghost Ping"),
                time_line,
                f"{bold('Mentioned User')}: {replied_user.mention}",
                channel_line,
                f"{bold('Content')}:",
                content,
            ))
        elif ghost_ping:
            notification.description = "\n".join((
                bold("Potential Ghost Ping"),
                time_line,
                channel_line,
                f"{bold('Content')}:",
                content,
            ))
        else:
            notification.description = "\n".join((channel_line, f"{bold('Content')}:", content))

        suspicious = ghost_ping or replied_user is not None
        if suspicious and minutes <= threshold_minutes:
            return await self.emitter.deliver(guild_id, [notification], ping_mod_role=True)
        return await self.emitter.deliver(
            guild_id, [notification], content=GHOST_PING_MARKER if suspicious else None
        )

    async def handle_message_create(self, message: discord.Message) -> bool:
        if message.guild is None or message.author.bot:
            return False

        config = self.config_manager.get(message.guild.id)
        if config.is_ignored(message.channel.id):
            return False

        media = build_media_log(message)
        if media is None:
            return False

        files = [await attachment.to_file() for attachment in media.attachments]
        return await self.emitter.deliver(message.guild.id, media.notifications, files=files)
