"""Event listener Cog for Auditcord.

Handles bot lifecycle events: presence on connect, dropping per-guild caches
when the bot leaves a guild, and slash command errors.
"""

import discord
from discord.ext import commands

from auditcord.audit.correlator import AuditCorrelator
from auditcord.notify.emitter import NotificationEmitter
from auditcord.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance, correlator: AuditCorrelator, emitter: NotificationEmitter):
        self.bot = discord_bot_instance
        self.correlator = correlator
        self.emitter = emitter
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user is None:
            logger.warning("[EVENTS LISTENER] Bot partially connected, but user information not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name="the audit log"),
        )
        logger.info("[EVENTS LISTENER] Connected as %s (ID: %s) in %d guild(s)", self.bot.user, self.bot.user.id, len(self.bot.guilds))

    @commands.Cog.listener(name="on_guild_remove")
    async def on_guild_remove(self, guild: discord.Guild):
        """Forget the audit memory and webhook cache of a guild the bot left."""
        self.correlator.forget_guild(guild.id)
        self.emitter.forget_guild(guild.id)
        logger.info("[EVENTS LISTENER] Removed from guild %s (ID: %s), caches cleared", guild.name, guild.id)

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        logger.error(
            "[EVENTS LISTENER] Command /%s failed in guild %s",
            getattr(ctx.command, "qualified_name", "?"),
            ctx.guild_id,
            exc_info=error,
        )
        try:
            await ctx.respond("Something went wrong while running this command.", ephemeral=True)
        except discord.HTTPException:
            logger.debug("[EVENTS LISTENER] Could not report the command error to the user")


def setup(discord_bot_instance, correlator: AuditCorrelator, emitter: NotificationEmitter):
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, correlator, emitter))
