"""Strike and tag services used by the slash commands."""
