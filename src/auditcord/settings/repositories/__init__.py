"""Repository layer for the SQLite tables."""
from auditcord.settings.repositories.logger_config_repo import LoggerConfigRepository
from auditcord.settings.repositories.strike_repo import StrikeRepository
from auditcord.settings.repositories.tag_repo import TagRepository

__all__ = [
    "LoggerConfigRepository",
    "StrikeRepository",
    "TagRepository",
]
