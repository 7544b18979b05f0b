"""
Field-by-field comparison of entity snapshots.

Every differ checks a fixed set of fields in a fixed order and appends one
markdown line per changed field. The order is part of the output contract: it
is the order in which the lines are rendered in the notification body.

Channel order: name, category, text settings (NSFW, topic, slowmode), voice
settings (bitrate, region), permission overwrites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from auditcord.audit.permissions import (
    format_change_list,
    overwrite_permission_changes,
    role_permission_changes,
)
from auditcord.datatypes.snapshots import (
    ChannelSnapshot,
    EmojiSnapshot,
    EntitySnapshot,
    MemberSnapshot,
    OverwriteSnapshot,
    RoleSnapshot,
    StickerSnapshot,
)
from auditcord.util.format_utils import (
    bold,
    bool_to_str,
    combined_length,
    cursive,
    format_bitrate,
    format_region,
)

# Maximum length of an embed description
MESSAGE_BODY_LIMIT = 4096
# Topic budget, keeps room for the quotes and emphasis wrapped around both topics
TOPIC_BUDGET = 4082
# Newline and indentation overhead counted per already-added line
LINE_OVERHEAD = 3
# Lines at least this long are followed by a blank line when rendered
LONG_LINE_THRESHOLD = 45

UNSUPPORTED_CHANGES = "Unsupported changes"
NO_TOPIC = "NO_TOPIC"
NO_CATEGORY = "No Category"


@dataclass
class ChangeDescription:
    """Ordered list of human readable change lines.

    ``suppressed`` marks a diff that must not produce a notification at all,
    e.g. a channel that was only reordered.
    """

    lines: List[str] = field(default_factory=list)
    suppressed: bool = False
    spaced: bool = False

    def append(self, line: str) -> None:
        self.lines.append(line)

    def extend(self, lines: List[str]) -> None:
        self.lines.extend(lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)

    def render(self) -> str:
        """Join the lines into a notification body, capped at the embed limit."""
        if not self.lines:
            return UNSUPPORTED_CHANGES

        if self.spaced:
            rendered = [f"{line}\n" if len(line) >= LONG_LINE_THRESHOLD else line for line in self.lines]
        else:
            rendered = self.lines
        body = "\n".join(rendered)

        if len(body) > MESSAGE_BODY_LIMIT:
            body = body[: MESSAGE_BODY_LIMIT - 1] + "…"
        return body


# --------------------------
# Channels
# --------------------------
def _topic_fits(old_topic: str, new_topic: str, lines: List[str]) -> bool:
    return len(old_topic) + len(new_topic) + combined_length(lines) <= TOPIC_BUDGET - LINE_OVERHEAD * len(lines)


def _line_fits(line: str, lines: List[str]) -> bool:
    return len(line) + combined_length(lines) < MESSAGE_BODY_LIMIT - LINE_OVERHEAD * len(lines)


def diff_overwrites(old: tuple[OverwriteSnapshot, ...], new: tuple[OverwriteSnapshot, ...]) -> List[str]:
    """Compare two overwrite lists keyed by target ID."""
    old_by_target = {overwrite.target_id: overwrite for overwrite in old}
    new_by_target = {overwrite.target_id: overwrite for overwrite in new}
    lines: List[str] = []

    for target_id, overwrite in new_by_target.items():
        if target_id not in old_by_target:
            lines.append(f"Added permission overwrite for {bold(overwrite.target_name)}")

    for target_id, overwrite in old_by_target.items():
        if target_id not in new_by_target:
            lines.append(f"Removed permission overwrite for {bold(overwrite.target_name)}")

    for target_id, old_overwrite in old_by_target.items():
        new_overwrite = new_by_target.get(target_id)
        if new_overwrite is None:
            continue
        changes = overwrite_permission_changes(old_overwrite.permissions, new_overwrite.permissions)
        if changes:
            header = f"Changed permissions for {bold(new_overwrite.target_name)}:"
            lines.append(format_change_list(header, changes))

    return lines


def diff_channel(old: ChannelSnapshot, new: ChannelSnapshot) -> ChangeDescription:
    changes = ChangeDescription()
    lines = changes.lines

    if old.name != new.name:
        lines.append(f"Changed the name from {bold(old.name)} to {bold(new.name)}")

    if old.parent_id != new.parent_id:
        previous = old.parent_name if old.parent_id is not None else "being uncategorized"
        current = new.parent_name if new.parent_id is not None else NO_CATEGORY
        lines.append(f"Moved to the category {bold(current)} from {bold(previous)}")

    if old.text is not None and new.text is not None:
        if old.text.nsfw != new.text.nsfw:
            lines.append(
                f"Set the NSFW check to {bold(bool_to_str(new.text.nsfw))} from {bold(bool_to_str(old.text.nsfw))}"
            )

        if old.text.topic != new.text.topic:
            old_topic = old.text.topic or NO_TOPIC
            new_topic = new.text.topic or NO_TOPIC
            if _topic_fits(old_topic, new_topic, lines):
                lines.append(f'Topic changed from:\n"{cursive(old_topic)}" to:\n"{cursive(new_topic)}"')

        if old.text.slowmode_delay != new.text.slowmode_delay:
            line = (
                f"Set slowmode to {bold(new.text.slowmode_delay)} seconds "
                f"from {bold(old.text.slowmode_delay)}"
            )
            if _line_fits(line, lines):
                lines.append(line)

    if old.voice is not None and new.voice is not None:
        if old.voice.bitrate != new.voice.bitrate:
            lines.append(
                f"Bitrate changed from {bold(format_bitrate(old.voice.bitrate))} "
                f"to {bold(format_bitrate(new.voice.bitrate))}"
            )

        if old.voice.rtc_region != new.voice.rtc_region:
            lines.append(
                f"Region changed from {bold(format_region(old.voice.rtc_region))} "
                f"to {bold(format_region(new.voice.rtc_region))}"
            )

    lines.extend(diff_overwrites(old.overwrites, new.overwrites))

    # Reordering inside the same category is routine noise
    if not lines and old.position != new.position and old.parent_id == new.parent_id:
        changes.suppressed = True

    return changes


# --------------------------
# Roles
# --------------------------
def diff_role(old: RoleSnapshot, new: RoleSnapshot) -> ChangeDescription:
    changes = ChangeDescription(spaced=True)

    if old.name != new.name:
        changes.append(f"Changed name from {bold(old.name)} to {bold(new.name)}")

    if old.color != new.color:
        changes.append(f"Changed color from {bold(old.color)} to {bold(new.color)}")

    if old.hoist != new.hoist:
        changes.append(f"Changed hoist from {bold(bool_to_str(old.hoist))} to {bold(bool_to_str(new.hoist))}")

    if old.mentionable != new.mentionable:
        changes.append(
            f"Changed mentionable from {bold(bool_to_str(old.mentionable))} to {bold(bool_to_str(new.mentionable))}"
        )

    permission_changes = role_permission_changes(old.permissions, new.permissions)
    if permission_changes:
        changes.append(format_change_list("Changed permissions:", permission_changes))

    if not changes and old.position != new.position:
        changes.suppressed = True

    return changes


# --------------------------
# Emojis and stickers
# --------------------------
def diff_emoji(old: EmojiSnapshot, new: EmojiSnapshot) -> ChangeDescription:
    changes = ChangeDescription(spaced=True)
    if old.name != new.name:
        changes.append(f"Changed name from {bold(old.name)} to {bold(new.name)}")
    return changes


def diff_sticker(old: StickerSnapshot, new: StickerSnapshot) -> ChangeDescription:
    changes = ChangeDescription(spaced=True)
    if old.name != new.name:
        changes.append(f"Changed name from {bold(old.name)} to {bold(new.name)}")
    if old.description != new.description:
        changes.append(f'Changed description:\n*"{old.description or ""}"*\n*"{new.description or ""}"*')
    return changes


# --------------------------
# Members
# --------------------------
def _role_names(roles: tuple[tuple[int, str], ...], ids: List[int]) -> str:
    names = dict(roles)
    return ", ".join(bold(names[role_id]) for role_id in ids)


def diff_member(old: MemberSnapshot, new: MemberSnapshot) -> ChangeDescription:
    changes = ChangeDescription()

    if old.nickname != new.nickname:
        changes.append(f"Changed nickname from {bold(old.nickname or 'None')} to {bold(new.nickname or 'None')}")

    old_ids = [role_id for role_id, _ in old.roles]
    new_ids = [role_id for role_id, _ in new.roles]
    added = [role_id for role_id in new_ids if role_id not in old_ids]
    removed = [role_id for role_id in old_ids if role_id not in new_ids]
    if added:
        changes.append(f"Added roles: {_role_names(new.roles, added)}")
    if removed:
        changes.append(f"Removed roles: {_role_names(old.roles, removed)}")

    if old.timed_out_until != new.timed_out_until:
        if new.timed_out_until is None:
            changes.append("Removed timeout")
        else:
            changes.append(f"Timed out until <t:{int(new.timed_out_until.timestamp())}:f>")

    return changes


def roles_changed(old: MemberSnapshot, new: MemberSnapshot) -> bool:
    return {role_id for role_id, _ in old.roles} != {role_id for role_id, _ in new.roles}


_DIFFERS: Dict[type, Callable[[EntitySnapshot, EntitySnapshot], ChangeDescription]] = {
    ChannelSnapshot: diff_channel,
    RoleSnapshot: diff_role,
    EmojiSnapshot: diff_emoji,
    StickerSnapshot: diff_sticker,
    MemberSnapshot: diff_member,
}


def diff(old: EntitySnapshot, new: EntitySnapshot) -> ChangeDescription:
    """Compare two snapshots of the same entity type.

    Raises:
        TypeError: if the snapshots are of different types or of an unknown type.
    """
    if type(old) is not type(new):
        raise TypeError(f"Cannot diff {type(old).__name__} against {type(new).__name__}")

    differ: Optional[Callable[[EntitySnapshot, EntitySnapshot], ChangeDescription]] = _DIFFERS.get(type(old))
    if differ is None:
        raise TypeError(f"No differ registered for {type(old).__name__}")
    return differ(old, new)
