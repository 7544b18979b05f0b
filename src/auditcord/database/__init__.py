"""SQLite persistence: one long-lived aiosqlite connection and the schema it serves."""
