"""
Diffable snapshots of guild entities.

Each snapshot is a frozen, flattened copy of the few fields the differ looks at.
Snapshots are built once from the platform objects delivered with an event, so
the differ never has to re-inspect Discord types while comparing them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

import discord


class ChannelKind(Enum):
    TEXT = "Text"
    NEWS = "News"
    FORUM = "Forum"
    VOICE = "Voice"
    STAGE = "Stage"
    CATEGORY = "Category"
    UNSUPPORTED = "UNSUPPORTED_CHANNEL_TYPE"

    @property
    def is_text_like(self) -> bool:
        return self in (ChannelKind.TEXT, ChannelKind.NEWS, ChannelKind.FORUM)

    @property
    def is_voice_like(self) -> bool:
        return self in (ChannelKind.VOICE, ChannelKind.STAGE)

    @classmethod
    def from_channel_type(cls, channel_type: object) -> "ChannelKind":
        mapping = {
            discord.ChannelType.text: cls.TEXT,
            discord.ChannelType.news: cls.NEWS,
            discord.ChannelType.voice: cls.VOICE,
            discord.ChannelType.stage_voice: cls.STAGE,
            discord.ChannelType.category: cls.CATEGORY,
        }
        forum_type = getattr(discord.ChannelType, "forum", None)
        if forum_type is not None:
            mapping[forum_type] = cls.FORUM
        return mapping.get(channel_type, cls.UNSUPPORTED)


# Channel types that never reach the logger (threads and DMs)
IGNORED_CHANNEL_TYPES = frozenset(
    channel_type
    for channel_type in (
        getattr(discord.ChannelType, "private_thread", None),
        getattr(discord.ChannelType, "public_thread", None),
        getattr(discord.ChannelType, "news_thread", None),
        getattr(discord.ChannelType, "private", None),
        getattr(discord.ChannelType, "group", None),
    )
    if channel_type is not None
)

PermissionPairs = Tuple[Tuple[str, bool], ...]
OverwritePairs = Tuple[Tuple[str, Optional[bool]], ...]


@dataclass(frozen=True, slots=True)
class TextSettings:
    nsfw: bool = False
    topic: str | None = None
    slowmode_delay: int = 0


@dataclass(frozen=True, slots=True)
class VoiceSettings:
    bitrate: int = 64000
    rtc_region: str | None = None


@dataclass(frozen=True, slots=True)
class OverwriteSnapshot:
    """One permission overwrite on a channel.

    ``permissions`` keeps every permission key with ``True`` (allow),
    ``False`` (deny) or ``None`` (neutral), in platform order.
    """

    target_id: int
    target_name: str
    target_kind: str = "role"
    permissions: OverwritePairs = ()

    @classmethod
    def from_discord(cls, target, overwrite: discord.PermissionOverwrite) -> "OverwriteSnapshot":
        return cls(
            target_id=target.id,
            target_name=getattr(target, "name", None) or str(target),
            target_kind="role" if isinstance(target, discord.Role) else "member",
            permissions=tuple((name, value) for name, value in overwrite),
        )


@dataclass(frozen=True, slots=True)
class ChannelSnapshot:
    id: int
    name: str
    kind: ChannelKind
    position: int = 0
    parent_id: int | None = None
    parent_name: str | None = None
    text: TextSettings | None = None
    voice: VoiceSettings | None = None
    overwrites: Tuple[OverwriteSnapshot, ...] = ()

    @classmethod
    def from_channel(cls, channel) -> "ChannelSnapshot":
        kind = ChannelKind.from_channel_type(channel.type)
        category = getattr(channel, "category", None)

        text = None
        if kind.is_text_like:
            text = TextSettings(
                nsfw=bool(getattr(channel, "nsfw", False)),
                topic=getattr(channel, "topic", None),
                slowmode_delay=int(getattr(channel, "slowmode_delay", 0) or 0),
            )

        voice = None
        if kind.is_voice_like:
            region = getattr(channel, "rtc_region", None)
            voice = VoiceSettings(
                bitrate=int(channel.bitrate),
                rtc_region=str(region) if region is not None else None,
            )

        overwrites = tuple(
            OverwriteSnapshot.from_discord(target, overwrite)
            for target, overwrite in getattr(channel, "overwrites", {}).items()
        )

        return cls(
            id=channel.id,
            name=channel.name,
            kind=kind,
            position=channel.position,
            parent_id=getattr(channel, "category_id", None),
            parent_name=category.name if category is not None else None,
            text=text,
            voice=voice,
            overwrites=overwrites,
        )


@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    id: int
    name: str
    color: str = "#000000"
    hoist: bool = False
    mentionable: bool = False
    position: int = 0
    permissions: PermissionPairs = ()

    @classmethod
    def from_role(cls, role: discord.Role) -> "RoleSnapshot":
        return cls(
            id=role.id,
            name=role.name,
            color=str(role.color),
            hoist=role.hoist,
            mentionable=role.mentionable,
            position=role.position,
            permissions=tuple((name, bool(value)) for name, value in role.permissions),
        )


@dataclass(frozen=True, slots=True)
class EmojiSnapshot:
    id: int
    name: str
    animated: bool = False
    url: str | None = None

    @classmethod
    def from_emoji(cls, emoji: discord.Emoji) -> "EmojiSnapshot":
        return cls(id=emoji.id, name=emoji.name, animated=emoji.animated, url=str(emoji.url))


@dataclass(frozen=True, slots=True)
class StickerSnapshot:
    id: int
    name: str
    description: str | None = None
    format: str | None = None
    url: str | None = None

    @classmethod
    def from_sticker(cls, sticker) -> "StickerSnapshot":
        sticker_format = getattr(sticker, "format", None)
        return cls(
            id=sticker.id,
            name=sticker.name,
            description=getattr(sticker, "description", None),
            format=getattr(sticker_format, "name", None) or (str(sticker_format) if sticker_format else None),
            url=str(sticker.url),
        )


@dataclass(frozen=True, slots=True)
class MemberSnapshot:
    id: int
    tag: str
    nickname: str | None = None
    roles: Tuple[Tuple[int, str], ...] = ()
    timed_out_until: datetime | None = None

    @classmethod
    def from_member(cls, member: discord.Member) -> "MemberSnapshot":
        return cls(
            id=member.id,
            tag=str(member),
            nickname=member.nick,
            roles=tuple((role.id, role.name) for role in member.roles if not role.is_default()),
            timed_out_until=getattr(member, "communication_disabled_until", None),
        )


EntitySnapshot = Union[ChannelSnapshot, RoleSnapshot, EmojiSnapshot, StickerSnapshot, MemberSnapshot]
