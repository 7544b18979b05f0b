"""
Audit-log attribution and change detection.

- **correlator.py**: Matches a guild event to the audit-log entry that caused it,
  handing each entry out at most once per category.

- **differ.py**: Compares before/after snapshots of channels, roles, emojis, stickers
  and members and renders the differences as markdown lines.

- **permissions.py**: Permission state glyphs and transition wording shared by the
  role and overwrite differs.
"""
