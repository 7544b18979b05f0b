from datetime import datetime, timedelta, timezone

import pytest

from auditcord.database.db_connection import ConnectionManager
from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from auditcord.datatypes.logger_config import LoggerConfig, LoggerConfigKey, LoggerConfigUpdate
from auditcord.datatypes.strike_datatypes import Strike, StrikeConfig, Tag
from auditcord.settings.logger_config_manager import LoggerConfigManager
from auditcord.settings.repositories import LoggerConfigRepository, StrikeRepository, TagRepository


@pytest.mark.asyncio
async def test_schema_creates_tables(db):
    async with db.read() as conn:
        async with conn.execute("SELECT name FROM sqlite_master WHERE type='table'") as cursor:
            tables = {row[0] for row in await cursor.fetchall()}

    assert {"logger_config", "logger_ignored_channels", "strikes", "strike_config", "tags", "schema_version"} <= tables


@pytest.mark.asyncio
async def test_connection_must_be_opened_first():
    with pytest.raises(RuntimeError):
        ConnectionManager().connection


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(db):
    repo = TagRepository()

    with pytest.raises(RuntimeError):
        async with db.transaction() as conn:
            await repo.insert(conn, Tag(GuildID(1), "rules", "Be nice", UserID(2)))
            raise RuntimeError("boom")

    async with db.read() as conn:
        assert await repo.get(conn, GuildID(1), "rules") is None


# --------------------------
# Logger config
# --------------------------
@pytest.mark.asyncio
async def test_logger_config_round_trip(db):
    repo = LoggerConfigRepository()
    config = LoggerConfig(
        guild_id=GuildID(1),
        log_channel_id=ChannelID(500),
        mod_role_id=RoleID(555),
        ghost_ping_threshold=45,
    )

    async with db.transaction() as conn:
        await repo.upsert(conn, config)
        await repo.add_ignored_channel(conn, GuildID(1), ChannelID(600))

    async with db.read() as conn:
        configs = await repo.get_all(conn)

    assert configs[GuildID(1)] == LoggerConfig(
        guild_id=GuildID(1),
        log_channel_id=ChannelID(500),
        mod_role_id=RoleID(555),
        ignored_channel_ids={ChannelID(600)},
        ghost_ping_threshold=45,
    )
    assert GuildID(2) not in configs


@pytest.mark.asyncio
async def test_logger_config_get_all_includes_ignore_only_guilds(db):
    repo = LoggerConfigRepository()
    async with db.transaction() as conn:
        await repo.upsert(conn, LoggerConfig(guild_id=GuildID(1), log_channel_id=ChannelID(500)))
        await repo.add_ignored_channel(conn, GuildID(2), ChannelID(700))

    async with db.read() as conn:
        configs = await repo.get_all(conn)

    assert configs[GuildID(1)].log_channel_id == ChannelID(500)
    assert configs[GuildID(2)].ignored_channel_ids == {ChannelID(700)}


@pytest.mark.asyncio
async def test_manager_persists_updates(db):
    manager = LoggerConfigManager(connection=db)
    await manager.async_init()

    await manager.apply_update(1, LoggerConfigUpdate(LoggerConfigKey.LOG_CHANNEL, ChannelID(500)))
    assert await manager.ignore_channel(1, 600) is True
    assert await manager.ignore_channel(1, 600) is False

    reloaded = LoggerConfigManager(connection=db)
    await reloaded.async_init()
    config = reloaded.get(1)

    assert config.log_channel_id == ChannelID(500)
    assert config.is_ignored(600)


@pytest.mark.asyncio
async def test_manager_unignore(db):
    manager = LoggerConfigManager(connection=db)
    await manager.async_init()

    assert await manager.unignore_channel(1, 600) is False
    await manager.ignore_channel(1, 600)
    assert await manager.unignore_channel(1, 600) is True
    assert not manager.get(1).is_ignored(600)


def test_manager_defaults_for_unknown_guild():
    config = LoggerConfigManager().get(123)

    assert config.guild_id == GuildID(123)
    assert config.log_channel_id is None
    assert config.ignored_channel_ids == set()


# --------------------------
# Strikes and tags
# --------------------------
@pytest.mark.asyncio
async def test_strike_repository(db):
    repo = StrikeRepository()
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    old = Strike(GuildID(1), UserID(2), "old", now - timedelta(days=100), now - timedelta(days=7))
    fresh = Strike(GuildID(1), UserID(2), "fresh", now, now + timedelta(days=93))

    async with db.transaction() as conn:
        first_id = await repo.add(conn, old)
        await repo.add(conn, fresh)
        purged = await repo.delete_expired(conn, GuildID(1), UserID(2), now)
        await repo.set_config(conn, StrikeConfig(GuildID(1), 6))

    async with db.read() as conn:
        strikes = await repo.for_member(conn, GuildID(1), UserID(2))
        config = await repo.get_config(conn, GuildID(1))
        missing = await repo.get_config(conn, GuildID(9))

    assert first_id == 1
    assert purged == 1
    assert [strike.reason for strike in strikes] == ["fresh"]
    assert strikes[0].created_at == now
    assert config.expire_months == 6
    assert missing is None


@pytest.mark.asyncio
async def test_tag_repository(db):
    repo = TagRepository()

    async with db.transaction() as conn:
        assert await repo.insert(conn, Tag(GuildID(1), "rules", "Be nice", UserID(2))) is True
        assert await repo.insert(conn, Tag(GuildID(1), "rules", "Duplicate", UserID(3))) is False
        await repo.insert(conn, Tag(GuildID(1), "faq", "Read the docs", UserID(2)))
        assert await repo.update_text(conn, GuildID(1), "faq", "Read the pins") is True
        assert await repo.delete(conn, GuildID(1), "missing") is False

    async with db.read() as conn:
        assert await repo.list_names(conn, GuildID(1)) == ["faq", "rules"]
        tag = await repo.get(conn, GuildID(1), "faq")

    assert tag.text == "Read the pins"
    assert tag.author_id == UserID(2)
