"""Notification payloads and their delivery to guild log channels."""
