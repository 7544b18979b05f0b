"""
Auditcord
=========

A Discord bot that mirrors guild changes (channels, roles, emojis, stickers,
bans, kicks, member updates and message deletions) into a per-guild log
channel, attributing each change to the moderator found in the audit log.
It also offers member strikes, text tags and logger configuration commands.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. AUDITCORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("AUDITCORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from auditcord.audit.correlator import AuditCorrelator, DiscordAuditLogSource
from auditcord.configuration.app_configuration import app_config
from auditcord.database.db_connection import db_connection
from auditcord.database.db_schema import initialize_database
from auditcord.moderation.moderation_logger import ModerationLogger
from auditcord.notify.emitter import NotificationEmitter
from auditcord.settings.logger_config_manager import logger_config_manager
from auditcord.util.logger import get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for guild structure, members, bans, emojis, stickers and message content."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    intents.bans = True
    intents.emojis_and_stickers = True
    intents.messages = True
    intents.message_content = True
    return intents


def build_moderation_logger(bot: discord.Bot) -> ModerationLogger:
    """Wire the correlator, emitter and moderation logger from the application config."""
    correlator = AuditCorrelator(
        DiscordAuditLogSource(bot, page_size=app_config.audit_page_size),
        per_category=app_config.audit_per_category_cache,
    )
    emitter = NotificationEmitter(bot, logger_config_manager, app_config.webhook_name)
    return ModerationLogger(
        correlator,
        emitter,
        logger_config_manager,
        kick_window_seconds=app_config.kick_attribution_window_seconds,
        ghost_ping_default_seconds=app_config.ghost_ping_threshold_seconds,
    )


def load_cogs(discord_bot_instance: discord.Bot, moderation_logger: ModerationLogger) -> None:
    from auditcord.cog.commands import logger_cmds, strike_cmds, tag_cmds
    from auditcord.cog.listener import audit_listener, events_listener

    audit_listener.setup(discord_bot_instance, moderation_logger)
    events_listener.setup(discord_bot_instance, moderation_logger.correlator, moderation_logger.emitter)
    logger_cmds.setup(discord_bot_instance)
    strike_cmds.setup(discord_bot_instance, moderation_logger)
    tag_cmds.setup(discord_bot_instance)

    logger.info("All cogs loaded successfully.")


def create_bot() -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot, build_moderation_logger(bot))
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the Discord connection and the database."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord connection: %s", exc)

    await db_connection.close()
    logger.info("Shutdown complete.")


async def async_main() -> int:
    token = load_environment()

    try:
        logger.info("Initializing database and loading logger settings...")
        await initialize_database()
        await logger_config_manager.async_init()
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        await db_connection.close()
        return 1

    try:
        bot = create_bot()
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await db_connection.close()
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that runs the bot and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting Auditcord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
