"""
Reaction-driven flagging of messages for moderator attention.

- **flag_tracker.py**: In-memory open flags (original message -> alert) with a
  reverse index and per-message locks.
- **alert_embed.py**: Embed and mention builders for alerts and the settings view.
- **flag_service.py**: The flag/resolve state machine the reaction cog calls into.
"""
