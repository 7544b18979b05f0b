"""
Configuration management for Auditcord.

- **app_configuration.py**: YAML loader for process-wide settings (audit-log page size,
  correlator cache keying, webhook name, ghost ping and kick windows, strike expiry).

Per-guild logger configuration lives in :mod:`auditcord.settings`.
"""
