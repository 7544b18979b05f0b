"""
Logger configuration cog.

/loggercfg set <key> <value>   change one setting (log_channel, mod_role, ghost_ping_threshold)
/loggercfg ignore <channel>    stop logging messages from a channel
/loggercfg unignore <channel>  resume logging messages from a channel
/loggercfg show                display the current settings

All commands require Administrator; responses are ephemeral.
"""

import discord
from discord.ext import commands

from auditcord.configuration.app_configuration import app_config
from auditcord.datatypes.logger_config import ConfigUpdateError, LoggerConfig, LoggerConfigKey, LoggerConfigUpdate
from auditcord.settings.logger_config_manager import logger_config_manager
from auditcord.util.discord_utils import ensure_permissions
from auditcord.util.format_utils import bold, inline_code
from auditcord.util.logger import get_logger

logger = get_logger("logger_commands")


def build_config_embed(config: LoggerConfig) -> discord.Embed:
    threshold = config.threshold_seconds(app_config.ghost_ping_threshold_seconds)
    ignored = ", ".join(f"<#{channel_id}>" for channel_id in sorted(config.ignored_channel_ids, key=int)) or "None"

    embed = discord.Embed(title="Moderation Logger Settings", colour=discord.Colour.blurple())
    embed.add_field(
        name="Log channel",
        value=f"<#{config.log_channel_id}>" if config.log_channel_id is not None else "Not set",
        inline=False,
    )
    embed.add_field(
        name="Moderator role",
        value=f"<@&{config.mod_role_id}>" if config.mod_role_id is not None else "Not set",
        inline=False,
    )
    embed.add_field(name="Ghost ping threshold", value=f"{threshold} seconds", inline=False)
    embed.add_field(name="Ignored channels", value=ignored, inline=False)
    return embed


class LoggerConfigCog(commands.Cog):
    """Slash commands for the per-guild moderation logger settings."""

    loggercfg = discord.SlashCommandGroup("loggercfg", "Configure the moderation logger")

    def __init__(self, discord_bot_instance):
        self.discord_bot_instance = discord_bot_instance
        logger.info("[LOGGER CMDS] Logger configuration cog loaded")

    @loggercfg.command(name="set", description="Change a moderation logger setting.")
    async def set_value(
        self,
        ctx: discord.ApplicationContext,
        key: discord.Option(str, "Setting to change", choices=[key.value for key in LoggerConfigKey]),
        value: discord.Option(str, "New value (ID, mention, seconds, or 'none' to clear)"),
    ):
        if not await ensure_permissions(ctx, administrator=True):
            return

        try:
            update = LoggerConfigUpdate.parse(key, value)
        except ConfigUpdateError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return

        await logger_config_manager.apply_update(ctx.guild_id, update)
        shown = inline_code(update.value) if update.value is not None else bold("cleared")
        await ctx.respond(f"Set {inline_code(update.key.value)} to {shown}", ephemeral=True)

    @loggercfg.command(name="ignore", description="Stop logging messages from a channel.")
    async def ignore(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel to ignore"),
    ):
        if not await ensure_permissions(ctx, administrator=True):
            return

        if await logger_config_manager.ignore_channel(ctx.guild_id, channel.id):
            await ctx.respond(f"Messages in {channel.mention} are no longer logged.", ephemeral=True)
        else:
            await ctx.respond(f"{channel.mention} is already ignored.", ephemeral=True)

    @loggercfg.command(name="unignore", description="Resume logging messages from a channel.")
    async def unignore(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel to log again"),
    ):
        if not await ensure_permissions(ctx, administrator=True):
            return

        if await logger_config_manager.unignore_channel(ctx.guild_id, channel.id):
            await ctx.respond(f"Messages in {channel.mention} are logged again.", ephemeral=True)
        else:
            await ctx.respond(f"{channel.mention} was not ignored.", ephemeral=True)

    @loggercfg.command(name="show", description="Show the current moderation logger settings.")
    async def show(self, ctx: discord.ApplicationContext):
        if not await ensure_permissions(ctx, administrator=True):
            return

        await ctx.respond(embed=build_config_embed(logger_config_manager.get(ctx.guild_id)), ephemeral=True)


def setup(discord_bot_instance):
    discord_bot_instance.add_cog(LoggerConfigCog(discord_bot_instance))
