"""Per-guild settings persistence and caching."""
