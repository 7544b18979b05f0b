"""
Repository for the strikes and strike_config tables.

Timestamps are stored as ISO-8601 UTC strings, which sort chronologically.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

import aiosqlite

from auditcord.datatypes.discord_datatypes import GuildID, UserID
from auditcord.datatypes.strike_datatypes import Strike, StrikeConfig


def _to_strike(row) -> Strike:
    return Strike(
        id=row[0],
        guild_id=GuildID(row[1]),
        user_id=UserID(row[2]),
        reason=row[3],
        created_at=datetime.fromisoformat(row[4]),
        expire_at=datetime.fromisoformat(row[5]),
    )


class StrikeRepository:
    """CRUD for strikes and the per-guild strike expiry."""

    async def add(self, conn: aiosqlite.Connection, strike: Strike) -> int:
        cursor = await conn.execute(
            """
            INSERT INTO strikes (guild_id, user_id, reason, created_at, expire_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                int(strike.guild_id),
                int(strike.user_id),
                strike.reason,
                strike.created_at.isoformat(),
                strike.expire_at.isoformat(),
            ),
        )
        return cursor.lastrowid

    async def for_member(self, conn: aiosqlite.Connection, guild_id: GuildID, user_id: UserID) -> List[Strike]:
        async with conn.execute(
            """
            SELECT id, guild_id, user_id, reason, created_at, expire_at
            FROM strikes
            WHERE guild_id = ? AND user_id = ?
            ORDER BY created_at
            """,
            (int(guild_id), int(user_id)),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_to_strike(row) for row in rows]

    async def delete_expired(
        self, conn: aiosqlite.Connection, guild_id: GuildID, user_id: UserID, now: datetime
    ) -> int:
        cursor = await conn.execute(
            "DELETE FROM strikes WHERE guild_id = ? AND user_id = ? AND expire_at <= ?",
            (int(guild_id), int(user_id), now.isoformat()),
        )
        return cursor.rowcount

    async def get_config(self, conn: aiosqlite.Connection, guild_id: GuildID) -> StrikeConfig | None:
        async with conn.execute(
            "SELECT guild_id, expire_months FROM strike_config WHERE guild_id = ?",
            (int(guild_id),),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return StrikeConfig(guild_id=GuildID(row[0]), expire_months=row[1])

    async def set_config(self, conn: aiosqlite.Connection, config: StrikeConfig) -> None:
        await conn.execute(
            """
            INSERT INTO strike_config (guild_id, expire_months) VALUES (?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET expire_months = excluded.expire_months
            """,
            (int(config.guild_id), config.expire_months),
        )
