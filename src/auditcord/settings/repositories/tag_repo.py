"""
Repository for the tags table.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from auditcord.datatypes.discord_datatypes import GuildID, UserID
from auditcord.datatypes.strike_datatypes import Tag


class TagRepository:
    """CRUD for per-guild text tags. Names are stored lower-cased."""

    async def get(self, conn: aiosqlite.Connection, guild_id: GuildID, name: str) -> Tag | None:
        async with conn.execute(
            "SELECT guild_id, name, text, author_id FROM tags WHERE guild_id = ? AND name = ?",
            (int(guild_id), name),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return Tag(guild_id=GuildID(row[0]), name=row[1], text=row[2], author_id=UserID(row[3]))

    async def list_names(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[str]:
        async with conn.execute(
            "SELECT name FROM tags WHERE guild_id = ? ORDER BY name",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def insert(self, conn: aiosqlite.Connection, tag: Tag) -> bool:
        """Insert a new tag; returns False when the name is taken."""
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO tags (guild_id, name, text, author_id) VALUES (?, ?, ?, ?)",
            (int(tag.guild_id), tag.name, tag.text, int(tag.author_id)),
        )
        return cursor.rowcount > 0

    async def update_text(self, conn: aiosqlite.Connection, guild_id: GuildID, name: str, text: str) -> bool:
        cursor = await conn.execute(
            "UPDATE tags SET text = ? WHERE guild_id = ? AND name = ?",
            (text, int(guild_id), name),
        )
        return cursor.rowcount > 0

    async def delete(self, conn: aiosqlite.Connection, guild_id: GuildID, name: str) -> bool:
        cursor = await conn.execute(
            "DELETE FROM tags WHERE guild_id = ? AND name = ?",
            (int(guild_id), name),
        )
        return cursor.rowcount > 0
