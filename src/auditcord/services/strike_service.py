"""
Member strikes: issuing, listing and per-guild expiry.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from auditcord.configuration.app_configuration import app_config
from auditcord.database.db_connection import ConnectionManager, db_connection
from auditcord.datatypes.discord_datatypes import GuildID, UserID
from auditcord.datatypes.strike_datatypes import Strike, StrikeConfig, strike_expiry
from auditcord.settings.repositories.strike_repo import StrikeRepository
from auditcord.util.logger import get_logger

logger = get_logger("strike_service")

MAX_EXPIRY_MONTHS = 120


class StrikeService:
    def __init__(self, connection: ConnectionManager = db_connection, default_expiry_months: Optional[int] = None) -> None:
        self._db = connection
        self._repo = StrikeRepository()
        self._default_expiry_months = default_expiry_months

    @property
    def default_expiry_months(self) -> int:
        if self._default_expiry_months is not None:
            return self._default_expiry_months
        return app_config.strike_expiry_months

    async def expiry_months(self, guild_id: Union[GuildID, int]) -> int:
        async with self._db.read() as conn:
            config = await self._repo.get_config(conn, GuildID(guild_id))
        return config.expire_months if config is not None else self.default_expiry_months

    async def set_expiry_months(self, guild_id: Union[GuildID, int], months: int) -> StrikeConfig:
        """
        Raises:
            ValueError: if ``months`` is outside 1..120.
        """
        if not 1 <= months <= MAX_EXPIRY_MONTHS:
            raise ValueError(f"Strike expiry must be between 1 and {MAX_EXPIRY_MONTHS} months")
        config = StrikeConfig(guild_id=GuildID(guild_id), expire_months=months)
        async with self._db.transaction() as conn:
            await self._repo.set_config(conn, config)
        logger.info("[STRIKES] Guild %s strike expiry set to %d month(s)", config.guild_id, months)
        return config

    async def add_strike(
        self,
        guild_id: Union[GuildID, int],
        user_id: Union[UserID, int],
        reason: str,
        now: Optional[datetime] = None,
    ) -> List[Strike]:
        """Store a strike, purge the member's expired ones and return what remains."""
        guild_id, user_id = GuildID(guild_id), UserID(user_id)
        now = now or datetime.now(timezone.utc)
        months = await self.expiry_months(guild_id)
        strike = Strike(
            guild_id=guild_id,
            user_id=user_id,
            reason=reason,
            created_at=now,
            expire_at=strike_expiry(now, months),
        )

        async with self._db.transaction() as conn:
            await self._repo.add(conn, strike)
            purged = await self._repo.delete_expired(conn, guild_id, user_id, now)

        if purged:
            logger.debug("[STRIKES] Purged %d expired strike(s) of %s in %s", purged, user_id, guild_id)
        return await self.active_strikes(guild_id, user_id, now)

    async def active_strikes(
        self,
        guild_id: Union[GuildID, int],
        user_id: Union[UserID, int],
        now: Optional[datetime] = None,
    ) -> List[Strike]:
        now = now or datetime.now(timezone.utc)
        async with self._db.read() as conn:
            strikes = await self._repo.for_member(conn, GuildID(guild_id), UserID(user_id))
        return [strike for strike in strikes if not strike.is_expired(now)]


strike_service = StrikeService()
