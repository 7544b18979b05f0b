"""Event handlers that turn guild changes into log notifications."""
