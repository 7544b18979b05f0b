"""
Audit-log categories, fetched entries and the attribution handed to notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import discord

# Actor tag used when no audit entry (or no executor) could be found
UNKNOWN_ACTOR = "USR_FETCH_ERR"


class AuditCategory(Enum):
    """One audit-log action type per handled platform event.

    Values are the attribute names of :class:`discord.AuditLogAction`.
    """

    CHANNEL_CREATE = "channel_create"
    CHANNEL_UPDATE = "channel_update"
    CHANNEL_DELETE = "channel_delete"
    ROLE_CREATE = "role_create"
    ROLE_UPDATE = "role_update"
    ROLE_DELETE = "role_delete"
    EMOJI_CREATE = "emoji_create"
    EMOJI_UPDATE = "emoji_update"
    EMOJI_DELETE = "emoji_delete"
    STICKER_CREATE = "sticker_create"
    STICKER_UPDATE = "sticker_update"
    STICKER_DELETE = "sticker_delete"
    BAN_ADD = "ban"
    BAN_REMOVE = "unban"
    MEMBER_KICK = "kick"
    MEMBER_UPDATE = "member_update"
    MEMBER_ROLE_UPDATE = "member_role_update"

    @property
    def action(self) -> discord.AuditLogAction:
        return getattr(discord.AuditLogAction, self.value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Flattened view of one audit-log entry, as returned by an audit-log source."""

    id: int
    actor_tag: str | None = None
    actor_avatar_url: str | None = None
    reason: str | None = None
    target_id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_discord(cls, entry: discord.AuditLogEntry) -> "AuditEntry":
        user = entry.user
        target = entry.target
        return cls(
            id=entry.id,
            actor_tag=str(user) if user is not None else None,
            actor_avatar_url=user.display_avatar.url if user is not None else None,
            reason=entry.reason,
            target_id=getattr(target, "id", None),
            created_at=entry.created_at,
        )


@dataclass(frozen=True, slots=True)
class AuditAttribution:
    """Who caused an event, as far as the audit log can tell.

    Produced once per handled event and never stored.
    """

    actor_tag: str = UNKNOWN_ACTOR
    actor_avatar_url: str | None = None
    entry_id: int | None = None
    reason: str | None = None
    target_id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def unknown(cls) -> "AuditAttribution":
        return cls()

    @classmethod
    def from_entry(cls, entry: AuditEntry | None) -> "AuditAttribution":
        if entry is None:
            return cls.unknown()
        return cls(
            actor_tag=entry.actor_tag or UNKNOWN_ACTOR,
            actor_avatar_url=entry.actor_avatar_url,
            entry_id=entry.id,
            reason=entry.reason,
            target_id=entry.target_id,
            created_at=entry.created_at,
        )

    @property
    def found(self) -> bool:
        return self.entry_id is not None
