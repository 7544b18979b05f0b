"""
Discord helpers shared by the slash command cogs.
"""

import discord

from auditcord.util.format_utils import title_words


def has_permissions(application_context: discord.ApplicationContext, **required_permissions: bool) -> bool:
    """
    Check if the command issuer has all specified permissions in the guild.

    Administrators pass every check. Users without guild permissions (DMs) never pass.
    """
    permissions = getattr(application_context.user, "guild_permissions", None)
    if permissions is None:
        return False
    if getattr(permissions, "administrator", False):
        return True
    return all(getattr(permissions, name, False) for name in required_permissions)


async def ensure_permissions(application_context: discord.ApplicationContext, **required_permissions: bool) -> bool:
    """Reply ephemerally and return False when the issuer lacks a permission or is outside a guild."""
    if not application_context.guild_id:
        await application_context.respond("This command can only be used in a server.", ephemeral=True)
        return False
    if not has_permissions(application_context, **required_permissions):
        names = ", ".join(title_words(name) for name in required_permissions)
        await application_context.respond(f"You need the {names} permission to use this command.", ephemeral=True)
        return False
    return True
