"""
Outbound notification payload and severity levels.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

import discord

# Embed author names are capped by Discord
AUTHOR_NAME_LIMIT = 256


class LogLevel(IntEnum):
    INFO = 0
    UPDATE = 1
    ALERT = 2
    MEDIA = 3

    @property
    def colour(self) -> discord.Colour:
        return discord.Colour(LEVEL_COLOURS[self])


LEVEL_COLOURS = {
    LogLevel.INFO: 0x00A35A,
    LogLevel.UPDATE: 0xFFCE5C,
    LogLevel.ALERT: 0xFF0000,
    LogLevel.MEDIA: 0x00AF9C,
}


@dataclass
class NotificationField:
    name: str
    value: str
    inline: bool = False


@dataclass
class Notification:
    """One embed worth of log output."""

    level: LogLevel
    author_name: Optional[str] = None
    author_icon_url: Optional[str] = None
    description: Optional[str] = None
    footer: Optional[str] = None
    image_url: Optional[str] = None
    fields: List[NotificationField] = field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = False) -> "Notification":
        self.fields.append(NotificationField(name, value, inline))
        return self

    def to_embed(self, timestamp: Optional[datetime.datetime] = None) -> discord.Embed:
        embed = discord.Embed(
            colour=self.level.colour,
            description=self.description,
            timestamp=timestamp or datetime.datetime.now(datetime.timezone.utc),
        )
        if self.author_name:
            name = self.author_name
            if len(name) > AUTHOR_NAME_LIMIT:
                name = name[: AUTHOR_NAME_LIMIT - 1] + "…"
            if self.author_icon_url:
                embed.set_author(name=name, icon_url=self.author_icon_url)
            else:
                embed.set_author(name=name)
        if self.footer:
            embed.set_footer(text=self.footer)
        if self.image_url:
            embed.set_image(url=self.image_url)
        for notification_field in self.fields:
            embed.add_field(name=notification_field.name, value=notification_field.value, inline=notification_field.inline)
        return embed
