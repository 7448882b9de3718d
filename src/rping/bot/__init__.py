"""
Discord cogs and event handlers for rping.

- **events_listener.py**: Bot lifecycle (on_ready, on_guild_join), guild-scoped
  slash command registration and application command error reporting
- **reaction_listener.py**: Raw reaction events dispatched to flag or resolve
- **alert_settings_cmds.py**: Slash commands that configure the alert channel
  and ping role, and display the current configuration
"""
