"""
Per-guild moderation logger settings and the request type used to change them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Set, Union

from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, RoleID

# Bare snowflake, optionally wrapped in channel (<#id>) or role (<@&id>) mention syntax
_CHANNEL_PATTERN = re.compile(r"^(?:<#)?(\d{10,25})>?$")
_ROLE_PATTERN = re.compile(r"^(?:<@&)?(\d{10,25})>?$")
_CLEAR_VALUES = frozenset({"none", "off", "reset", "clear"})


class ConfigUpdateError(ValueError):
    """Raised when a logger configuration update is rejected."""


@dataclass
class LoggerConfig:
    """Logger settings of one guild.

    ``ghost_ping_threshold`` is in seconds; ``None`` falls back to the
    application default.
    """

    guild_id: GuildID
    log_channel_id: Optional[ChannelID] = None
    mod_role_id: Optional[RoleID] = None
    ignored_channel_ids: Set[ChannelID] = field(default_factory=set)
    ghost_ping_threshold: Optional[int] = None

    def is_ignored(self, channel_id: Union[int, str, ChannelID]) -> bool:
        return ChannelID(channel_id) in self.ignored_channel_ids

    def is_log_channel(self, channel_id: Union[int, str, ChannelID]) -> bool:
        return self.log_channel_id is not None and self.log_channel_id == ChannelID(channel_id)

    def threshold_seconds(self, default: int) -> int:
        return default if self.ghost_ping_threshold is None else self.ghost_ping_threshold


class LoggerConfigKey(Enum):
    LOG_CHANNEL = "log_channel"
    MOD_ROLE = "mod_role"
    GHOST_PING_THRESHOLD = "ghost_ping_threshold"


@dataclass(frozen=True)
class LoggerConfigUpdate:
    """A validated change to exactly one mutable logger setting.

    ``value`` is ``None`` when the setting is being cleared.
    """

    key: LoggerConfigKey
    value: Union[ChannelID, RoleID, int, None]

    @classmethod
    def parse(cls, key: str, raw_value: str) -> "LoggerConfigUpdate":
        """Build an update from user input.

        Raises:
            ConfigUpdateError: for unknown keys or malformed values.
        """
        try:
            config_key = LoggerConfigKey(key.strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in LoggerConfigKey)
            raise ConfigUpdateError(f"Unknown setting `{key}`. Valid settings: {valid}") from None

        value = raw_value.strip()
        if value.lower() in _CLEAR_VALUES:
            return cls(config_key, None)

        if config_key is LoggerConfigKey.LOG_CHANNEL:
            match = _CHANNEL_PATTERN.match(value)
            if match is None:
                raise ConfigUpdateError(f"`{raw_value}` is not a channel ID or channel mention")
            return cls(config_key, ChannelID(match.group(1)))

        if config_key is LoggerConfigKey.MOD_ROLE:
            match = _ROLE_PATTERN.match(value)
            if match is None:
                raise ConfigUpdateError(f"`{raw_value}` is not a role ID or role mention")
            return cls(config_key, RoleID(match.group(1)))

        try:
            seconds = int(value)
        except ValueError:
            raise ConfigUpdateError(f"`{raw_value}` is not a whole number of seconds") from None
        if seconds < 0:
            raise ConfigUpdateError("The ghost ping threshold can not be negative")
        return cls(config_key, seconds)

    def apply(self, config: LoggerConfig) -> LoggerConfig:
        """Return a copy of ``config`` with this update applied."""
        if self.key is LoggerConfigKey.LOG_CHANNEL:
            return replace(config, log_channel_id=self.value)
        if self.key is LoggerConfigKey.MOD_ROLE:
            return replace(config, mod_role_id=self.value)
        return replace(config, ghost_ping_threshold=self.value)
