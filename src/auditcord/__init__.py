"""Auditcord: a moderation audit logger and utility bot for Discord guilds."""

__version__ = "0.1.0"
