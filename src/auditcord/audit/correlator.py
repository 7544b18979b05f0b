"""
Attribution of guild events to the audit-log entries that caused them.

The correlator remembers the last entry ID it attributed and never hands the
same entry out twice in a row. Memory is keyed by ``(guild, category)`` and each
key is serialized with its own ``asyncio.Lock``, so two events of the same kind
racing through the read-clear-write sequence cannot both claim one entry.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Protocol, Tuple, Union

import discord

from auditcord.datatypes.audit_datatypes import AuditAttribution, AuditCategory, AuditEntry
from auditcord.util.logger import get_logger

logger = get_logger("audit_correlator")

CacheKey = Tuple[int, Optional[AuditCategory]]


class AuditLogSource(Protocol):
    async def fetch_recent_entries(self, guild_id: int, category: AuditCategory) -> List[AuditEntry]:
        """Return the newest audit entries of ``category`` for the guild, newest first."""
        ...


class DiscordAuditLogSource:
    """Reads audit-log pages through the bot's REST client."""

    def __init__(self, bot: discord.Bot, page_size: int = 5) -> None:
        self.bot = bot
        self.page_size = page_size

    async def fetch_recent_entries(self, guild_id: int, category: AuditCategory) -> List[AuditEntry]:
        guild = self.bot.get_guild(guild_id) or await self.bot.fetch_guild(guild_id)
        return [
            AuditEntry.from_discord(entry)
            async for entry in guild.audit_logs(limit=self.page_size, action=category.action)
        ]


class AuditCorrelator:
    """Consume-once memory of attributed audit entries.

    Args:
        source: Where audit entries are fetched from.
        per_category: When ``False`` a single slot per guild is shared by all
            categories, so one category can consume another's memory.
    """

    def __init__(self, source: AuditLogSource, per_category: bool = True) -> None:
        self.source = source
        self.per_category = per_category
        self._last_attributed: Dict[CacheKey, int] = {}
        self._locks: Dict[CacheKey, asyncio.Lock] = {}

    def _key(self, guild_id: int, category: AuditCategory) -> CacheKey:
        return (guild_id, category if self.per_category else None)

    def _lock_for(self, key: CacheKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def correlate(self, guild_id: int, category: Union[AuditCategory, str]) -> AuditAttribution:
        """Find the audit entry responsible for the event that just happened.

        Raises:
            ValueError: if ``category`` is not a known audit category.
            discord.HTTPException: if the audit log could not be fetched.
        """
        category = AuditCategory(category)
        key = self._key(int(guild_id), category)

        async with self._lock_for(key):
            consumed = self._last_attributed.pop(key, None)
            entries = await self.source.fetch_recent_entries(int(guild_id), category)

            entry = next((candidate for candidate in entries if candidate.id != consumed), None)
            if entry is not None:
                self._last_attributed[key] = entry.id

            logger.debug(
                "[AUDIT CORRELATOR] guild=%s category=%s consumed=%s attributed=%s",
                guild_id,
                category,
                consumed,
                entry.id if entry is not None else None,
            )
            return AuditAttribution.from_entry(entry)

    def forget_guild(self, guild_id: int) -> None:
        """Drop every remembered entry for a guild, e.g. after the bot left it."""
        guild_id = int(guild_id)
        for key in [key for key in self._last_attributed if key[0] == guild_id]:
            del self._last_attributed[key]
        for key in [key for key in self._locks if key[0] == guild_id and not self._locks[key].locked()]:
            del self._locks[key]
