"""
Table creation and schema version tracking.
"""

from pathlib import Path
from typing import Optional

import aiosqlite

from auditcord.database.db_connection import DB_PATH, db_connection
from auditcord.util.logger import get_logger

logger = get_logger("db_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the tables used by the logger configuration, strikes and tags."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        await db.commit()
        logger.info("[SCHEMA] Schema ready (version %s)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS logger_config (
                guild_id INTEGER PRIMARY KEY,
                log_channel_id INTEGER,
                mod_role_id INTEGER,
                ghost_ping_threshold INTEGER
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS logger_ignored_channels (
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                PRIMARY KEY (guild_id, channel_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS strikes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                reason TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP NOT NULL,
                expire_at TIMESTAMP NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS strike_config (
                guild_id INTEGER PRIMARY KEY,
                expire_months INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS tags (
                guild_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                text TEXT NOT NULL,
                author_id INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (guild_id, name)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_ignored_channels_guild ON logger_ignored_channels(guild_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_strikes_member ON strikes(guild_id, user_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_strikes_expiry ON strikes(expire_at)")


async def initialize_database(path: Optional[Path] = None) -> None:
    """Open the shared connection and make sure every table exists."""
    await db_connection.open(path or DB_PATH)
    await SchemaManager.initialize_schema(db_connection.connection)
