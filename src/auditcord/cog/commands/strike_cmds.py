"""
Strike cog: /strike, /record and /strike_expiry.

All three commands require Ban Members.
"""

import discord
from discord.ext import commands

from auditcord.moderation.moderation_logger import ModerationLogger
from auditcord.services.strike_service import strike_service
from auditcord.util.discord_utils import ensure_permissions
from auditcord.util.format_utils import bold, inline_code
from auditcord.util.logger import get_logger

logger = get_logger("strike_commands")

STRIKE_COLOUR = discord.Colour(0x37FF05)
NO_REASON = "No reason set"


class StrikeCog(commands.Cog):
    """Member strikes with a per-guild expiry."""

    def __init__(self, discord_bot_instance, moderation_logger: ModerationLogger):
        self.discord_bot_instance = discord_bot_instance
        self.moderation_logger = moderation_logger
        logger.info("[STRIKE CMDS] Strike cog loaded")

    @commands.slash_command(name="strike", description="Strike a member for a given reason.")
    async def strike(
        self,
        ctx: discord.ApplicationContext,
        member: discord.Option(discord.Member, "Member to strike"),
        reason: discord.Option(str, "Why the member is being struck", required=False, default=None),
    ):
        if not await ensure_permissions(ctx, ban_members=True):
            return

        reason = reason or NO_REASON
        strikes = await strike_service.add_strike(ctx.guild_id, member.id, reason)

        embed = discord.Embed(
            description=f"Saved strike number {len(strikes)} for the reason\n{bold(reason)}",
            colour=STRIKE_COLOUR,
        )
        embed.set_author(name=str(ctx.user), icon_url=ctx.user.display_avatar.url)
        await ctx.respond(embed=embed)

        try:
            await self.moderation_logger.handle_strike_add(ctx.guild_id, member, ctx.user, reason, len(strikes))
        except discord.HTTPException:
            logger.exception("[STRIKE CMDS] Could not log strike for %s in guild %s", member.id, ctx.guild_id)

    @commands.slash_command(name="record", description="Show the active strikes of a member.")
    async def record(
        self,
        ctx: discord.ApplicationContext,
        member: discord.Option(discord.Member, "Member whose record to show"),
    ):
        if not await ensure_permissions(ctx, ban_members=True):
            return

        strikes = await strike_service.active_strikes(ctx.guild_id, member.id)
        if strikes:
            description = "\n".join(
                f"{bold(f'{index}.')}\n"
                f"{bold('Expires')}: <t:{int(strike.expire_at.timestamp())}:f>\n"
                f"{bold('Reason')}:\n\"{bold(strike.reason)}\"\n---"
                for index, strike in enumerate(strikes, start=1)
            )
        else:
            description = "This user has no strikes on record"

        embed = discord.Embed(description=description[:4096], colour=STRIKE_COLOUR)
        embed.set_author(name=str(member), icon_url=member.display_avatar.url)
        await ctx.respond(embed=embed, ephemeral=True)

    @commands.slash_command(name="strike_expiry", description="Set after how many months strikes expire.")
    async def strike_expiry(
        self,
        ctx: discord.ApplicationContext,
        months: discord.Option(int, "Months (of 31 days) until a strike expires", min_value=1, max_value=120),
    ):
        if not await ensure_permissions(ctx, ban_members=True):
            return

        try:
            config = await strike_service.set_expiry_months(ctx.guild_id, months)
        except ValueError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Strikes now expire after {inline_code(config.expire_months)} month(s).", ephemeral=True)


def setup(discord_bot_instance, moderation_logger: ModerationLogger):
    discord_bot_instance.add_cog(StrikeCog(discord_bot_instance, moderation_logger))
