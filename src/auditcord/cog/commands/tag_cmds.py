"""
Tag cog: per-guild named text snippets.

/tag show and /tag list are open to everyone; create, edit and delete need
Manage Messages.
"""

import discord
from discord.ext import commands

from auditcord.services.tag_service import TagError, tag_service
from auditcord.util.discord_utils import ensure_permissions
from auditcord.util.format_utils import inline_code
from auditcord.util.logger import get_logger

logger = get_logger("tag_commands")


class TagCog(commands.Cog):
    tag = discord.SlashCommandGroup("tag", "Saved text snippets")

    def __init__(self, discord_bot_instance):
        self.discord_bot_instance = discord_bot_instance
        logger.info("[TAG CMDS] Tag cog loaded")

    @tag.command(name="show", description="Post a saved tag.")
    async def show(self, ctx: discord.ApplicationContext, name: discord.Option(str, "Tag name")):
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return
        try:
            tag = await tag_service.get(ctx.guild_id, name)
        except TagError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(tag.text, allowed_mentions=discord.AllowedMentions.none())

    @tag.command(name="list", description="List the tags of this server.")
    async def list_tags(self, ctx: discord.ApplicationContext):
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return
        names = await tag_service.list_names(ctx.guild_id)
        if not names:
            await ctx.respond("This server has no tags yet.", ephemeral=True)
            return
        await ctx.respond(", ".join(inline_code(name) for name in names)[:2000], ephemeral=True)

    @tag.command(name="create", description="Save a new tag.")
    async def create(
        self,
        ctx: discord.ApplicationContext,
        name: discord.Option(str, "Tag name"),
        text: discord.Option(str, "Tag text"),
    ):
        if not await ensure_permissions(ctx, manage_messages=True):
            return
        try:
            tag = await tag_service.create(ctx.guild_id, name, text, ctx.user.id)
        except TagError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Saved tag {inline_code(tag.name)}", ephemeral=True)

    @tag.command(name="edit", description="Replace the text of a tag.")
    async def edit(
        self,
        ctx: discord.ApplicationContext,
        name: discord.Option(str, "Tag name"),
        text: discord.Option(str, "New tag text"),
    ):
        if not await ensure_permissions(ctx, manage_messages=True):
            return
        try:
            await tag_service.edit(ctx.guild_id, name, text)
        except TagError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Updated tag {inline_code(name.strip().lower())}", ephemeral=True)

    @tag.command(name="delete", description="Delete a tag.")
    async def delete(self, ctx: discord.ApplicationContext, name: discord.Option(str, "Tag name")):
        if not await ensure_permissions(ctx, manage_messages=True):
            return
        try:
            await tag_service.delete(ctx.guild_id, name)
        except TagError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Deleted tag {inline_code(name.strip().lower())}", ephemeral=True)


def setup(discord_bot_instance):
    discord_bot_instance.add_cog(TagCog(discord_bot_instance))
