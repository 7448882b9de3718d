"""
Utility helpers for rping.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, a per-session log file under ``logs/``, and noise
  suppression for the Discord client internals.
"""
