"""
Per-guild named text snippets.
"""

from __future__ import annotations

import re
from typing import List, Union

from auditcord.database.db_connection import ConnectionManager, db_connection
from auditcord.datatypes.discord_datatypes import GuildID, UserID
from auditcord.datatypes.strike_datatypes import Tag
from auditcord.settings.repositories.tag_repo import TagRepository
from auditcord.util.logger import get_logger

logger = get_logger("tag_service")

_TAG_NAME = re.compile(r"^[\w-]{1,32}$")
MAX_TAG_LENGTH = 2000


class TagError(ValueError):
    """Raised for invalid tag names or text, and for missing or duplicate tags."""


def normalize_tag_name(name: str) -> str:
    """
    Raises:
        TagError: if the name is not 1-32 word characters or dashes.
    """
    normalized = name.strip().lower()
    if not _TAG_NAME.match(normalized):
        raise TagError("Tag names are 1-32 letters, digits, underscores or dashes")
    return normalized


def _check_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise TagError("Tag text can not be empty")
    if len(text) > MAX_TAG_LENGTH:
        raise TagError(f"Tag text can not be longer than {MAX_TAG_LENGTH} characters")
    return text


class TagService:
    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._db = connection
        self._repo = TagRepository()

    async def get(self, guild_id: Union[GuildID, int], name: str) -> Tag:
        async with self._db.read() as conn:
            tag = await self._repo.get(conn, GuildID(guild_id), normalize_tag_name(name))
        if tag is None:
            raise TagError(f"There is no tag called `{name}`")
        return tag

    async def list_names(self, guild_id: Union[GuildID, int]) -> List[str]:
        async with self._db.read() as conn:
            return await self._repo.list_names(conn, GuildID(guild_id))

    async def create(self, guild_id: Union[GuildID, int], name: str, text: str, author_id: Union[UserID, int]) -> Tag:
        tag = Tag(
            guild_id=GuildID(guild_id),
            name=normalize_tag_name(name),
            text=_check_text(text),
            author_id=UserID(author_id),
        )
        async with self._db.transaction() as conn:
            created = await self._repo.insert(conn, tag)
        if not created:
            raise TagError(f"A tag called `{tag.name}` already exists")
        logger.info("[TAGS] Created tag %s in guild %s", tag.name, tag.guild_id)
        return tag

    async def edit(self, guild_id: Union[GuildID, int], name: str, text: str) -> None:
        normalized = normalize_tag_name(name)
        async with self._db.transaction() as conn:
            updated = await self._repo.update_text(conn, GuildID(guild_id), normalized, _check_text(text))
        if not updated:
            raise TagError(f"There is no tag called `{normalized}`")

    async def delete(self, guild_id: Union[GuildID, int], name: str) -> None:
        normalized = normalize_tag_name(name)
        async with self._db.transaction() as conn:
            deleted = await self._repo.delete(conn, GuildID(guild_id), normalized)
        if not deleted:
            raise TagError(f"There is no tag called `{normalized}`")
        logger.info("[TAGS] Deleted tag %s in guild %s", normalized, guild_id)


tag_service = TagService()
