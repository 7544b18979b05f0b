"""
Per-key permission comparison for roles and channel overwrites.

Permissions are compared key by key as opaque booleans (or tri-state values for
overwrites) instead of as raw bitfields, so the output does not depend on the
platform's bit layout.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from auditcord.util.format_utils import inline_code, title_words

ALLOW_GLYPH = "✅"
DENY_GLYPH = "❌"
NEUTRAL_GLYPH = "➖"


class PermissionState(Enum):
    ALLOW = ALLOW_GLYPH
    DENY = DENY_GLYPH
    NEUTRAL = NEUTRAL_GLYPH

    @classmethod
    def from_value(cls, value: Optional[bool]) -> "PermissionState":
        if value is None:
            return cls.NEUTRAL
        return cls.ALLOW if value else cls.DENY

    @property
    def glyph(self) -> str:
        return self.value


def format_permission_name(name: str) -> str:
    """``manage_messages`` -> ``Manage Messages``."""
    return title_words(name)


def describe_transition(name: str, old: PermissionState, new: PermissionState) -> str:
    return f"Set {inline_code(format_permission_name(name))} from {old.glyph} to {new.glyph}"


def _paired(
    old: Iterable[Tuple[str, Optional[bool]]],
    new: Iterable[Tuple[str, Optional[bool]]],
) -> Iterator[Tuple[str, Optional[bool], Optional[bool]]]:
    """Yield ``(key, old_value, new_value)`` over old keys first, then keys only present in new."""
    old_map = dict(old)
    new_map = dict(new)
    for key, old_value in old_map.items():
        yield key, old_value, new_map.get(key)
    for key, new_value in new_map.items():
        if key not in old_map:
            yield key, None, new_value


def role_permission_changes(
    old: Iterable[Tuple[str, bool]],
    new: Iterable[Tuple[str, bool]],
) -> List[str]:
    """Describe denied->allowed and allowed->denied flips of a role's permissions.

    Roles have no neutral state, a missing key counts as denied.
    """
    changes: List[str] = []
    for key, old_value, new_value in _paired(old, new):
        old_state = PermissionState.ALLOW if old_value else PermissionState.DENY
        new_state = PermissionState.ALLOW if new_value else PermissionState.DENY
        if old_state is not new_state:
            changes.append(describe_transition(key, old_state, new_state))
    return changes


def overwrite_permission_changes(
    old: Iterable[Tuple[str, Optional[bool]]],
    new: Iterable[Tuple[str, Optional[bool]]],
) -> List[str]:
    """Describe every non-identity allow/deny/neutral transition of an overwrite."""
    changes: List[str] = []
    for key, old_value, new_value in _paired(old, new):
        old_state = PermissionState.from_value(old_value)
        new_state = PermissionState.from_value(new_value)
        if old_state is not new_state:
            changes.append(describe_transition(key, old_state, new_state))
    return changes


def format_change_list(header: str, changes: List[str]) -> str:
    """Render ``changes`` as an indented bullet list under ``header``."""
    return f"{header}\n  - " + "\n  - ".join(changes)
