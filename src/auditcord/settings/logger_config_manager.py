"""
Cached access to per-guild logger settings.

Settings are loaded once at startup and kept in memory; every change is
written through to SQLite before the cache is updated.
"""

from __future__ import annotations

from typing import Dict, Union

from auditcord.database.db_connection import ConnectionManager, db_connection
from auditcord.datatypes.discord_datatypes import ChannelID, GuildID
from auditcord.datatypes.logger_config import LoggerConfig, LoggerConfigUpdate
from auditcord.settings.repositories.logger_config_repo import LoggerConfigRepository
from auditcord.util.logger import get_logger

logger = get_logger("logger_config_manager")


class LoggerConfigManager:
    """
    In-memory cache of :class:`LoggerConfig` per guild backed by SQLite.

    - get(guild_id): current settings, defaults when the guild never configured anything
    - apply_update(guild_id, update): validate-then-persist a single setting
    - ignore_channel / unignore_channel: maintain the ignored channel list
    """

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._db = connection
        self._repo = LoggerConfigRepository()
        self._configs: Dict[GuildID, LoggerConfig] = {}
        self._loaded = False

    async def async_init(self) -> None:
        if self._loaded:
            return
        async with self._db.read() as conn:
            self._configs.update(await self._repo.get_all(conn))
        self._loaded = True
        logger.info("[LOGGER CONFIG] Loaded settings for %d guild(s)", len(self._configs))

    def get(self, guild_id: Union[GuildID, int]) -> LoggerConfig:
        guild_id = GuildID(guild_id)
        config = self._configs.get(guild_id)
        if config is None:
            config = LoggerConfig(guild_id=guild_id)
            self._configs[guild_id] = config
        return config

    async def apply_update(self, guild_id: Union[GuildID, int], update: LoggerConfigUpdate) -> LoggerConfig:
        config = update.apply(self.get(guild_id))
        async with self._db.transaction() as conn:
            await self._repo.upsert(conn, config)
        self._configs[config.guild_id] = config
        logger.info(
            "[LOGGER CONFIG] Guild %s set %s to %s", config.guild_id, update.key.value, update.value
        )
        return config

    async def ignore_channel(self, guild_id: Union[GuildID, int], channel_id: Union[ChannelID, int]) -> bool:
        """Add a channel to the ignore list; False if it was already ignored."""
        config = self.get(guild_id)
        channel_id = ChannelID(channel_id)
        if channel_id in config.ignored_channel_ids:
            return False
        async with self._db.transaction() as conn:
            await self._repo.add_ignored_channel(conn, config.guild_id, channel_id)
        config.ignored_channel_ids.add(channel_id)
        return True

    async def unignore_channel(self, guild_id: Union[GuildID, int], channel_id: Union[ChannelID, int]) -> bool:
        """Remove a channel from the ignore list; False if it was not ignored."""
        config = self.get(guild_id)
        channel_id = ChannelID(channel_id)
        if channel_id not in config.ignored_channel_ids:
            return False
        async with self._db.transaction() as conn:
            await self._repo.remove_ignored_channel(conn, config.guild_id, channel_id)
        config.ignored_channel_ids.discard(channel_id)
        return True


logger_config_manager = LoggerConfigManager()
