"""
Media extraction for message logging.

Attachments with a Discord-renderable extension are forwarded as files; all
other attachments are described in their own embed so moderators can judge
them without opening them. Media links in the message content are shown as
images, except Tenor links which embeds can not display.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

import discord

from auditcord.notify.notification import LogLevel, Notification
from auditcord.util.format_utils import bold, convert_bytes, inline_code

SUPPORTED_MEDIA = frozenset({"jpg", "jpeg", "png", "mp4", "mp3", "webp", "mov", "webm"})

URL_REGEX = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
MEDIA_SUFFIX_REGEX = re.compile(r"\.(?:jpe?g|png|gif|gifv|webp|mp4|mp3|mov|webm)(?:\?\S*)?$", re.IGNORECASE)
TENOR_REGEX = re.compile(r"^https?://(?:www\.|media\.|c\.)?tenor\.com/\S+", re.IGNORECASE)

NO_CONTENT = "NO_CONTENT"
MALICIOUS_FILES_FOOTER = "Potentially malicious files are listed below in embeds if present"


def split_extension(filename: str) -> Tuple[str, str]:
    """``"cat.final.PNG"`` -> ``("cat.final", "png")``."""
    name, _, extension = filename.rpartition(".")
    if not name:
        return filename, ""
    return name, extension.lower()


def extract_media_urls(content: str) -> List[str]:
    """Whitespace separated tokens of ``content`` that look like media or Tenor links."""
    return [
        token
        for token in content.split()
        if MEDIA_SUFFIX_REGEX.search(token) or TENOR_REGEX.match(token)
    ]


def is_url(value: str) -> bool:
    return URL_REGEX.match(value) is not None


def is_tenor_url(value: str) -> bool:
    return TENOR_REGEX.match(value) is not None


@dataclass
class MediaLog:
    """Embeds plus the attachments that must be re-uploaded alongside them."""

    notifications: List[Notification] = field(default_factory=list)
    attachments: List[discord.Attachment] = field(default_factory=list)


def build_media_log(message: discord.Message) -> MediaLog | None:
    """Describe the media of ``message``; ``None`` when it has neither attachments nor media links."""
    media_urls = extract_media_urls(message.content or "")
    if not message.attachments and not media_urls:
        return None

    author = message.author
    author_tag = str(author)
    avatar_url = author.display_avatar.url

    first = Notification(
        level=LogLevel.INFO,
        author_name=f"Message from {author_tag}",
        author_icon_url=avatar_url,
        description=(
            f"{bold('Author')}: {inline_code(author_tag)}\n"
            f"{bold('Channel')}: {message.channel.mention}\n"
            f"{bold('Content')}:\n"
            f"{message.content or NO_CONTENT}"
        ),
        footer=MALICIOUS_FILES_FOOTER,
    )
    log = MediaLog(notifications=[first])

    for attachment in message.attachments:
        name, extension = split_extension(attachment.filename)
        if extension in SUPPORTED_MEDIA:
            log.attachments.append(attachment)
            if first.image_url is None:
                first.image_url = f"attachment://{attachment.filename}"
            else:
                log.notifications.append(
                    Notification(
                        level=LogLevel.MEDIA,
                        author_name=author_tag,
                        author_icon_url=avatar_url,
                        image_url=f"attachment://{attachment.filename}",
                    )
                )
        else:
            log.notifications.append(
                Notification(
                    level=LogLevel.MEDIA,
                    description=(
                        f"{bold('ID')}: {inline_code(attachment.id)}\n"
                        f"{bold('URL')}: {inline_code(attachment.url)}\n"
                        f"{bold('Filename')}: {inline_code(name)}\n"
                        f"{bold('Extension')}: {inline_code(extension)}\n"
                        f"{bold('Size')}: {inline_code(convert_bytes(attachment.size))}"
                    ),
                )
            )

    if media_urls and first.image_url is None:
        head = media_urls[0]
        if is_url(head) and not is_tenor_url(head):
            first.image_url = media_urls.pop(0)
        elif is_url(head):
            first.add_field("Reason for missing media:", "Can not display tenor URLs on embeds")

    for url in media_urls:
        if not is_url(url):
            continue
        embed = Notification(level=LogLevel.MEDIA, author_name=author_tag, author_icon_url=avatar_url)
        if is_tenor_url(url):
            embed.description = f"{bold('Cannot display tenor URLs')}\n{bold('Tenor URL')}: {inline_code(url)}"
        else:
            file_name, extension = split_extension(url.split("?", 1)[0])
            embed.image_url = url
            embed.description = f"{bold('Name')}: {inline_code(file_name)}\n{bold('Extension')}: {inline_code(extension)}"
        log.notifications.append(embed)

    return log
