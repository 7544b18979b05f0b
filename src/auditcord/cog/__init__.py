"""Py-cord cogs: event listeners and slash commands."""
