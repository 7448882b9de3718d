"""
Configuration management for rping.

- **app_configuration.py**: YAML configuration loader for global settings such
  as the flag/resolve emoji, the settings file location and alert formatting.
  Falls back to defaults on a missing or malformed file.

- **guild_settings.py**: Per-guild alert configuration (admin channel and ping
  role) persisted to a flat JSON file keyed by guild id.
"""
