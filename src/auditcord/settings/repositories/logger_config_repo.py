"""
Repository for the logger_config and logger_ignored_channels tables.
"""

from __future__ import annotations

from typing import Dict

import aiosqlite

from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from auditcord.datatypes.logger_config import LoggerConfig
from auditcord.util.logger import get_logger

logger = get_logger("logger_config_repo")


class LoggerConfigRepository:
    """CRUD for per-guild logger settings."""

    async def get_all(self, conn: aiosqlite.Connection) -> Dict[GuildID, LoggerConfig]:
        configs: Dict[GuildID, LoggerConfig] = {}

        async with conn.execute(
            "SELECT guild_id, log_channel_id, mod_role_id, ghost_ping_threshold FROM logger_config"
        ) as cursor:
            rows = await cursor.fetchall()
        for row in rows:
            guild_id = GuildID(row[0])
            configs[guild_id] = LoggerConfig(
                guild_id=guild_id,
                log_channel_id=ChannelID(row[1]) if row[1] is not None else None,
                mod_role_id=RoleID(row[2]) if row[2] is not None else None,
                ghost_ping_threshold=row[3],
            )

        async with conn.execute("SELECT guild_id, channel_id FROM logger_ignored_channels") as cursor:
            rows = await cursor.fetchall()
        for guild_id_int, channel_id in rows:
            guild_id = GuildID(guild_id_int)
            config = configs.setdefault(guild_id, LoggerConfig(guild_id=guild_id))
            config.ignored_channel_ids.add(ChannelID(channel_id))

        return configs

    async def upsert(self, conn: aiosqlite.Connection, config: LoggerConfig) -> None:
        """Write the scalar settings of a guild. Ignored channels are stored separately."""
        await conn.execute(
            """
            INSERT INTO logger_config (guild_id, log_channel_id, mod_role_id, ghost_ping_threshold)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET
                log_channel_id       = excluded.log_channel_id,
                mod_role_id          = excluded.mod_role_id,
                ghost_ping_threshold = excluded.ghost_ping_threshold
            """,
            (
                int(config.guild_id),
                int(config.log_channel_id) if config.log_channel_id is not None else None,
                int(config.mod_role_id) if config.mod_role_id is not None else None,
                config.ghost_ping_threshold,
            ),
        )

    async def add_ignored_channel(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> None:
        await conn.execute(
            "INSERT OR IGNORE INTO logger_ignored_channels (guild_id, channel_id) VALUES (?, ?)",
            (int(guild_id), int(channel_id)),
        )

    async def remove_ignored_channel(
        self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID
    ) -> bool:
        cursor = await conn.execute(
            "DELETE FROM logger_ignored_channels WHERE guild_id = ? AND channel_id = ?",
            (int(guild_id), int(channel_id)),
        )
        return cursor.rowcount > 0
