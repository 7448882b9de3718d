from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from rping.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_SETTINGS_FILE = "settings.json"
DEFAULT_FLAG_EMOJI = "🛎️"
DEFAULT_RESOLVE_EMOJI = "✅"
# Discord rejects embed field values longer than this
EMBED_FIELD_LIMIT = 1024


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    dictionary-like access helpers plus typed shortcuts for the values the bot
    reads. Every shortcut has a default, so a missing file still yields a
    working bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache; callers should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def settings_file(self) -> Path:
        """Location of the per-guild JSON settings store."""
        value = self._data.get("settings_file") or DEFAULT_SETTINGS_FILE
        return Path(str(value))

    @property
    def flag_emoji(self) -> str:
        """Emoji users react with to flag a message."""
        alerts = self._alerts_section()
        return str(alerts.get("flag_emoji") or DEFAULT_FLAG_EMOJI)

    @property
    def resolve_emoji(self) -> str:
        """Emoji moderators react with on an alert to resolve it."""
        alerts = self._alerts_section()
        return str(alerts.get("resolve_emoji") or DEFAULT_RESOLVE_EMOJI)

    @property
    def alert_preview_length(self) -> int:
        """Number of characters of the flagged message quoted in the alert.

        Clamped to the embed field limit; non-numeric values fall back to it.
        """
        raw = self._alerts_section().get("preview_length", EMBED_FIELD_LIMIT)
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid preview_length %r; using %d", raw, EMBED_FIELD_LIMIT)
            return EMBED_FIELD_LIMIT
        return max(1, min(value, EMBED_FIELD_LIMIT))

    @property
    def register_commands_on_join(self) -> bool:
        """Whether slash commands are registered for guilds joined at runtime."""
        commands = self._data.get("commands", {})
        if isinstance(commands, dict):
            return bool(commands.get("register_on_guild_join", True))
        return True

    def _alerts_section(self) -> Dict[str, Any]:
        alerts = self._data.get("alerts", {})
        return alerts if isinstance(alerts, dict) else {}


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
