"""
rping - Reaction-driven moderator alerts for Discord

Members flag a message by reacting with the flag emoji (🛎️ by default). The
bot posts an alert embed in the guild's admin channel mentioning the configured
moderator role. A member holding that role reacts with the resolve emoji (✅)
on the alert to close it: the alert is deleted and the flag reaction is cleared
from the original message.

Core Components:

- **Guild Settings**: Per-server admin channel and ping role, persisted to a
  JSON file and edited through slash commands
- **Flag Tracker**: In-memory mapping of flagged messages to their alerts,
  with per-message locking so a message is flagged at most once
- **Flag Service**: The flag/resolve state machine driven by reaction events

Usage:
    from rping.main import main
    main()
"""
