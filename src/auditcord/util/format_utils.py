"""
Markdown and value formatting helpers used when rendering log embeds.

Everything in here is pure and stateless.
"""

import re
from typing import Iterable

# Byte thresholds used by convert_bytes
KILOBYTE = 1024
MEGABYTE = 1024 ** 2
GIGABYTE = 1024 ** 3

_FIRST_WORD_CHAR = re.compile(r"\b(\w)")


def bold(value: object) -> str:
    return f"**{value}**"


def cursive(value: object) -> str:
    return f"*{value}*"


def inline_code(value: object) -> str:
    return f"`{value}`"


def code_block(value: object, lang: str = "") -> str:
    return f"```{lang}\n{value}\n```"


def capitalize_first(value: str) -> str:
    """Upper-case the first word character of ``value`` and leave the rest untouched.

    >>> capitalize_first("us-west")
    'Us-west'
    """
    return _FIRST_WORD_CHAR.sub(lambda match: match.group(1).upper(), value, count=1)


def bool_to_str(value: bool) -> str:
    return capitalize_first(str(bool(value)).lower())


def title_words(value: str) -> str:
    """Replace underscores with spaces and capitalize every word."""
    return _FIRST_WORD_CHAR.sub(lambda match: match.group(1).upper(), value.replace("_", " "))


def combined_length(lines: Iterable[str]) -> int:
    """Total number of characters across ``lines``."""
    return sum(len(line) for line in lines)


def convert_bytes(size: int) -> str:
    """Render a byte count as kb/mb with three decimals, otherwise gb with five.

    Both bounds are exclusive, so sizes up to one kilobyte and exactly one
    megabyte render in gigabytes.
    """
    if KILOBYTE < size < MEGABYTE:
        return f"{size / KILOBYTE:.3f}kb"
    if MEGABYTE < size < GIGABYTE:
        return f"{size / MEGABYTE:.3f}mb"
    return f"{size / GIGABYTE:.5f}gb"


def format_bitrate(bitrate: int) -> str:
    """Convert a bitrate in bits per second to a whole ``<n>kbps`` string."""
    return f"{bitrate // 1000}kbps"


def format_region(region: object | None) -> str:
    """Render a voice region; ``None`` means Discord picks one automatically."""
    if region is None:
        return "Automatic"
    return capitalize_first(str(region))


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    return singular if count == 1 else (plural_form or f"{singular}s")
