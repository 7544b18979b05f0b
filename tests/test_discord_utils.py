from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from auditcord.util import discord_utils


def make_ctx(guild_id=10, **permissions):
    return SimpleNamespace(
        guild_id=guild_id,
        user=SimpleNamespace(guild_permissions=SimpleNamespace(**permissions)),
        respond=AsyncMock(),
    )


def test_has_permissions_requires_every_permission():
    ctx = make_ctx(ban_members=True, kick_members=False)

    assert discord_utils.has_permissions(ctx, ban_members=True)
    assert not discord_utils.has_permissions(ctx, ban_members=True, kick_members=True)


def test_administrator_passes_every_check():
    assert discord_utils.has_permissions(make_ctx(administrator=True), manage_messages=True)


def test_user_without_guild_permissions():
    ctx = SimpleNamespace(user=SimpleNamespace())

    assert not discord_utils.has_permissions(ctx, manage_messages=True)


@pytest.mark.asyncio
async def test_ensure_permissions_outside_guild():
    ctx = make_ctx(guild_id=None, administrator=True)

    assert await discord_utils.ensure_permissions(ctx, administrator=True) is False
    ctx.respond.assert_awaited_once_with("This command can only be used in a server.", ephemeral=True)


@pytest.mark.asyncio
async def test_ensure_permissions_names_missing_permission():
    ctx = make_ctx(manage_messages=False)

    assert await discord_utils.ensure_permissions(ctx, manage_messages=True) is False
    ctx.respond.assert_awaited_once_with(
        "You need the Manage Messages permission to use this command.", ephemeral=True
    )


@pytest.mark.asyncio
async def test_ensure_permissions_passes_silently():
    ctx = make_ctx(manage_messages=True)

    assert await discord_utils.ensure_permissions(ctx, manage_messages=True) is True
    ctx.respond.assert_not_awaited()
