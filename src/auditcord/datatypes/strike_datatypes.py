"""
Records for member strikes, per-guild strike settings and text tags.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from auditcord.datatypes.discord_datatypes import GuildID, UserID

# A strike "month" is a fixed 31 days
STRIKE_MONTH = timedelta(days=31)


def strike_expiry(created_at: datetime, months: int) -> datetime:
    return created_at + STRIKE_MONTH * months


@dataclass(frozen=True, slots=True)
class Strike:
    guild_id: GuildID
    user_id: UserID
    reason: str
    created_at: datetime
    expire_at: datetime
    id: Optional[int] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expire_at <= (now or datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class StrikeConfig:
    guild_id: GuildID
    expire_months: int


@dataclass(frozen=True, slots=True)
class Tag:
    guild_id: GuildID
    name: str
    text: str
    author_id: UserID
