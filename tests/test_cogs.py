from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from auditcord.cog.commands import logger_cmds, strike_cmds, tag_cmds
from auditcord.cog.listener import events_listener
from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from auditcord.datatypes.logger_config import LoggerConfig, LoggerConfigKey
from auditcord.datatypes.strike_datatypes import Strike, Tag
from auditcord.services.tag_service import TagError


class FakeUser:
    def __init__(self, user_id=2, tag="mod", **permissions):
        self.id = user_id
        self.tag = tag
        self.guild_permissions = SimpleNamespace(**permissions)
        self.display_avatar = SimpleNamespace(url=f"https://cdn/{tag}.png")

    def __str__(self):
        return self.tag


def make_ctx(guild_id=10, **permissions):
    return SimpleNamespace(guild_id=guild_id, user=FakeUser(**permissions), respond=AsyncMock())


def response(ctx):
    call = ctx.respond.await_args
    return (call.args[0] if call.args else None), call.kwargs


@pytest.mark.parametrize(
    "module, cog_class, args",
    [
        (logger_cmds, logger_cmds.LoggerConfigCog, ()),
        (strike_cmds, strike_cmds.StrikeCog, (MagicMock(),)),
        (tag_cmds, tag_cmds.TagCog, ()),
        (events_listener, events_listener.EventsListenerCog, (MagicMock(), MagicMock())),
    ],
)
def test_setup_adds_cog(module, cog_class, args):
    captured = {}
    fake_bot = SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog))

    module.setup(fake_bot, *args)

    assert isinstance(captured["cog"], cog_class)


# --------------------------
# /loggercfg
# --------------------------
@pytest.mark.asyncio
async def test_loggercfg_requires_administrator(monkeypatch):
    manager = SimpleNamespace(apply_update=AsyncMock())
    monkeypatch.setattr(logger_cmds, "logger_config_manager", manager)
    ctx = make_ctx(manage_guild=True)

    await logger_cmds.LoggerConfigCog.set_value.callback(
        logger_cmds.LoggerConfigCog(SimpleNamespace()), ctx, "log_channel", "123456789012345678"
    )

    message, kwargs = response(ctx)
    assert message == "You need the Administrator permission to use this command."
    assert kwargs == {"ephemeral": True}
    manager.apply_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_loggercfg_outside_guild():
    ctx = make_ctx(guild_id=None, administrator=True)

    await logger_cmds.LoggerConfigCog.show.callback(logger_cmds.LoggerConfigCog(SimpleNamespace()), ctx)

    assert response(ctx) == ("This command can only be used in a server.", {"ephemeral": True})


@pytest.mark.asyncio
async def test_loggercfg_set_applies_update(monkeypatch):
    manager = SimpleNamespace(apply_update=AsyncMock())
    monkeypatch.setattr(logger_cmds, "logger_config_manager", manager)
    ctx = make_ctx(administrator=True)

    await logger_cmds.LoggerConfigCog.set_value.callback(
        logger_cmds.LoggerConfigCog(SimpleNamespace()), ctx, "log_channel", "<#123456789012345678>"
    )

    guild_id, update = manager.apply_update.await_args.args
    assert guild_id == 10
    assert update.key is LoggerConfigKey.LOG_CHANNEL
    assert response(ctx) == ("Set `log_channel` to `123456789012345678`", {"ephemeral": True})


@pytest.mark.asyncio
async def test_loggercfg_set_reports_bad_value(monkeypatch):
    manager = SimpleNamespace(apply_update=AsyncMock())
    monkeypatch.setattr(logger_cmds, "logger_config_manager", manager)
    ctx = make_ctx(administrator=True)

    await logger_cmds.LoggerConfigCog.set_value.callback(
        logger_cmds.LoggerConfigCog(SimpleNamespace()), ctx, "ghost_ping_threshold", "-5"
    )

    message, kwargs = response(ctx)
    assert "negative" in message
    assert kwargs == {"ephemeral": True}
    manager.apply_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_loggercfg_ignore_twice(monkeypatch):
    manager = SimpleNamespace(ignore_channel=AsyncMock(side_effect=[True, False]))
    monkeypatch.setattr(logger_cmds, "logger_config_manager", manager)
    cog = logger_cmds.LoggerConfigCog(SimpleNamespace())
    channel = SimpleNamespace(id=600, mention="<#600>")

    first = make_ctx(administrator=True)
    await logger_cmds.LoggerConfigCog.ignore.callback(cog, first, channel)
    second = make_ctx(administrator=True)
    await logger_cmds.LoggerConfigCog.ignore.callback(cog, second, channel)

    assert response(first)[0] == "Messages in <#600> are no longer logged."
    assert response(second)[0] == "<#600> is already ignored."


def test_config_embed_lists_settings():
    config = LoggerConfig(
        guild_id=GuildID(10),
        log_channel_id=ChannelID(500),
        mod_role_id=RoleID(555),
        ignored_channel_ids={ChannelID(700), ChannelID(600)},
        ghost_ping_threshold=30,
    )

    embed = logger_cmds.build_config_embed(config)

    values = [field.value for field in embed.fields]
    assert values == ["<#500>", "<@&555>", "30 seconds", "<#600>, <#700>"]


# --------------------------
# /strike, /record, /strike_expiry
# --------------------------
def make_strike(reason="spam"):
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    return Strike(GuildID(10), 3, reason, now, datetime(2025, 9, 2, tzinfo=timezone.utc))


@pytest.mark.asyncio
async def test_strike_saves_and_logs(monkeypatch):
    service = SimpleNamespace(add_strike=AsyncMock(return_value=[make_strike(), make_strike()]))
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    moderation_logger = SimpleNamespace(handle_strike_add=AsyncMock())
    cog = strike_cmds.StrikeCog(SimpleNamespace(), moderation_logger)
    ctx = make_ctx(ban_members=True)
    member = FakeUser(user_id=3, tag="alice")

    await strike_cmds.StrikeCog.strike.callback(cog, ctx, member, "spam")

    service.add_strike.assert_awaited_once_with(10, 3, "spam")
    embed = ctx.respond.await_args.kwargs["embed"]
    assert embed.description == "Saved strike number 2 for the reason\n**spam**"
    moderation_logger.handle_strike_add.assert_awaited_once_with(10, member, ctx.user, "spam", 2)


@pytest.mark.asyncio
async def test_strike_without_reason(monkeypatch):
    service = SimpleNamespace(add_strike=AsyncMock(return_value=[make_strike()]))
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    cog = strike_cmds.StrikeCog(SimpleNamespace(), SimpleNamespace(handle_strike_add=AsyncMock()))

    await strike_cmds.StrikeCog.strike.callback(cog, make_ctx(ban_members=True), FakeUser(user_id=3), None)

    assert service.add_strike.await_args.args[2] == strike_cmds.NO_REASON


@pytest.mark.asyncio
async def test_strike_survives_log_failure(monkeypatch):
    service = SimpleNamespace(add_strike=AsyncMock(return_value=[make_strike()]))
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    failure = discord.HTTPException(SimpleNamespace(status=500, reason="Server Error"), "boom")
    cog = strike_cmds.StrikeCog(SimpleNamespace(), SimpleNamespace(handle_strike_add=AsyncMock(side_effect=failure)))
    ctx = make_ctx(ban_members=True)

    await strike_cmds.StrikeCog.strike.callback(cog, ctx, FakeUser(user_id=3), "spam")

    ctx.respond.assert_awaited_once()


@pytest.mark.asyncio
async def test_strike_requires_ban_members(monkeypatch):
    service = SimpleNamespace(add_strike=AsyncMock())
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    cog = strike_cmds.StrikeCog(SimpleNamespace(), SimpleNamespace(handle_strike_add=AsyncMock()))
    ctx = make_ctx(kick_members=True)

    await strike_cmds.StrikeCog.strike.callback(cog, ctx, FakeUser(user_id=3), "spam")

    assert response(ctx) == ("You need the Ban Members permission to use this command.", {"ephemeral": True})
    service.add_strike.assert_not_awaited()


@pytest.mark.asyncio
async def test_record_lists_strikes(monkeypatch):
    service = SimpleNamespace(active_strikes=AsyncMock(return_value=[make_strike("spam"), make_strike("slurs")]))
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    cog = strike_cmds.StrikeCog(SimpleNamespace(), SimpleNamespace())
    ctx = make_ctx(ban_members=True)

    await strike_cmds.StrikeCog.record.callback(cog, ctx, FakeUser(user_id=3, tag="alice"))

    embed = ctx.respond.await_args.kwargs["embed"]
    assert embed.description.startswith("**1.**\n**Expires**: <t:")
    assert '"**slurs**"' in embed.description
    assert embed.author.name == "alice"


@pytest.mark.asyncio
async def test_record_without_strikes(monkeypatch):
    monkeypatch.setattr(strike_cmds, "strike_service", SimpleNamespace(active_strikes=AsyncMock(return_value=[])))
    ctx = make_ctx(administrator=True)

    await strike_cmds.StrikeCog.record.callback(strike_cmds.StrikeCog(SimpleNamespace(), None), ctx, FakeUser(user_id=3))

    assert ctx.respond.await_args.kwargs["embed"].description == "This user has no strikes on record"


@pytest.mark.asyncio
async def test_strike_expiry_reports_range_error(monkeypatch):
    service = SimpleNamespace(set_expiry_months=AsyncMock(side_effect=ValueError("out of range")))
    monkeypatch.setattr(strike_cmds, "strike_service", service)
    ctx = make_ctx(ban_members=True)

    await strike_cmds.StrikeCog.strike_expiry.callback(strike_cmds.StrikeCog(SimpleNamespace(), None), ctx, 500)

    assert response(ctx) == ("out of range", {"ephemeral": True})


# --------------------------
# /tag
# --------------------------
@pytest.mark.asyncio
async def test_tag_show_posts_text(monkeypatch):
    service = SimpleNamespace(get=AsyncMock(return_value=Tag(GuildID(10), "rules", "Be nice", 2)))
    monkeypatch.setattr(tag_cmds, "tag_service", service)
    ctx = make_ctx()

    await tag_cmds.TagCog.show.callback(tag_cmds.TagCog(SimpleNamespace()), ctx, "rules")

    message, kwargs = response(ctx)
    assert message == "Be nice"
    assert "ephemeral" not in kwargs


@pytest.mark.asyncio
async def test_tag_show_missing(monkeypatch):
    service = SimpleNamespace(get=AsyncMock(side_effect=TagError("There is no tag called `x`")))
    monkeypatch.setattr(tag_cmds, "tag_service", service)
    ctx = make_ctx()

    await tag_cmds.TagCog.show.callback(tag_cmds.TagCog(SimpleNamespace()), ctx, "x")

    assert response(ctx) == ("There is no tag called `x`", {"ephemeral": True})


@pytest.mark.asyncio
async def test_tag_create_requires_manage_messages(monkeypatch):
    service = SimpleNamespace(create=AsyncMock())
    monkeypatch.setattr(tag_cmds, "tag_service", service)
    ctx = make_ctx()

    await tag_cmds.TagCog.create.callback(tag_cmds.TagCog(SimpleNamespace()), ctx, "rules", "Be nice")

    assert response(ctx)[0] == "You need the Manage Messages permission to use this command."
    service.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_tag_list(monkeypatch):
    monkeypatch.setattr(tag_cmds, "tag_service", SimpleNamespace(list_names=AsyncMock(return_value=["faq", "rules"])))
    ctx = make_ctx()

    await tag_cmds.TagCog.list_tags.callback(tag_cmds.TagCog(SimpleNamespace()), ctx)

    assert response(ctx) == ("`faq`, `rules`", {"ephemeral": True})


# --------------------------
# Events listener
# --------------------------
@pytest.mark.asyncio
async def test_on_ready_sets_presence():
    bot = SimpleNamespace(user=SimpleNamespace(id=99), guilds=[], change_presence=AsyncMock())
    cog = events_listener.EventsListenerCog(bot, MagicMock(), MagicMock())

    await cog.on_ready()

    activity = bot.change_presence.await_args.kwargs["activity"]
    assert activity.name == "the audit log"


@pytest.mark.asyncio
async def test_on_ready_without_user():
    bot = SimpleNamespace(user=None, change_presence=AsyncMock())

    await events_listener.EventsListenerCog(bot, MagicMock(), MagicMock()).on_ready()

    bot.change_presence.assert_not_awaited()


@pytest.mark.asyncio
async def test_guild_remove_clears_caches():
    correlator, emitter = MagicMock(), MagicMock()
    cog = events_listener.EventsListenerCog(SimpleNamespace(), correlator, emitter)

    await cog.on_guild_remove(SimpleNamespace(id=10, name="Test"))

    correlator.forget_guild.assert_called_once_with(10)
    emitter.forget_guild.assert_called_once_with(10)


@pytest.mark.asyncio
async def test_command_error_is_reported():
    cog = events_listener.EventsListenerCog(SimpleNamespace(), MagicMock(), MagicMock())
    ctx = SimpleNamespace(command=SimpleNamespace(qualified_name="strike"), guild_id=10, respond=AsyncMock())

    await cog.on_application_command_error(ctx, RuntimeError("boom"))

    assert response(ctx) == ("Something went wrong while running this command.", {"ephemeral": True})
