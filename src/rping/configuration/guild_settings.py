"""
Persistent per-guild alert configuration.

Responsibilities:
- Hold the admin channel and ping role for every configured guild in memory
- Persist the whole mapping to a flat JSON file after each change

File format (kept backward-readable, no schema version):
    {
      "<guild_id>": {"admin_channel_id": "<channel_id>", "role_id_to_ping": "<role_id>"}
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rping.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, SnowflakeLike
from rping.util.logger import get_logger

logger = get_logger("guild_settings_manager")

ADMIN_CHANNEL_KEY = "admin_channel_id"
PING_ROLE_KEY = "role_id_to_ping"


@dataclass(slots=True)
class GuildSettings:
    """Alert configuration of one guild."""

    guild_id: GuildID
    admin_channel_id: Optional[ChannelID] = None
    role_id_to_ping: Optional[RoleID] = None
    # Keys written by other tools are carried through rewrites untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        """True once both the admin channel and the ping role are set."""
        return self.admin_channel_id is not None and self.role_id_to_ping is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        if self.admin_channel_id is not None:
            data[ADMIN_CHANNEL_KEY] = str(self.admin_channel_id)
        if self.role_id_to_ping is not None:
            data[PING_ROLE_KEY] = str(self.role_id_to_ping)
        return data

    @classmethod
    def from_dict(cls, guild_id: SnowflakeLike, data: Dict[str, Any]) -> "GuildSettings":
        """Build settings from one persisted entry.

        Ids may be stored as strings or numbers; both forms are accepted.
        """
        channel = data.get(ADMIN_CHANNEL_KEY)
        role = data.get(PING_ROLE_KEY)
        extra = {k: v for k, v in data.items() if k not in (ADMIN_CHANNEL_KEY, PING_ROLE_KEY)}
        return cls(
            guild_id=GuildID(guild_id),
            admin_channel_id=ChannelID(channel) if channel not in (None, "") else None,
            role_id_to_ping=RoleID(role) if role not in (None, "") else None,
            extra=extra,
        )


class GuildSettingsManager:
    """
    Manager for the per-guild alert settings file.

    The whole file is loaded once at startup and rewritten after every change.
    Writes go through a sibling temp file and ``os.replace`` so a crash
    mid-write leaves the previous file intact. There is no locking between
    overlapping command invocations; the last write wins.
    """

    def __init__(self, settings_path: Path):
        self.settings_path = Path(settings_path)
        self.guilds: Dict[GuildID, GuildSettings] = {}

    def load(self) -> Dict[GuildID, GuildSettings]:
        """Load the settings file into memory and return the mapping.

        A missing file yields an empty mapping. A corrupt file raises
        ``json.JSONDecodeError``; callers treat that as a startup failure.
        """
        if not self.settings_path.exists():
            logger.info("[SETTINGS] No settings file at %s; starting empty", self.settings_path)
            self.guilds = {}
            return self.guilds

        with self.settings_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)

        if not isinstance(raw, dict):
            raise ValueError(f"Settings file {self.settings_path} must contain a JSON object")

        self.guilds = {
            GuildID(guild_id): GuildSettings.from_dict(guild_id, entry or {})
            for guild_id, entry in raw.items()
        }
        logger.info("[SETTINGS] Loaded alert settings for %d guild(s) from %s", len(self.guilds), self.settings_path)
        return self.guilds

    def save(self) -> None:
        """Write the in-memory mapping to disk."""
        payload = {str(guild_id): settings.to_dict() for guild_id, settings in self.guilds.items()}
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.settings_path.with_name(self.settings_path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.settings_path)
        logger.debug("[SETTINGS] Saved alert settings for %d guild(s)", len(payload))

    def get(self, guild_id: SnowflakeLike) -> Optional[GuildSettings]:
        """Return the guild's settings, or None when the guild was never configured."""
        return self.guilds.get(GuildID(guild_id))

    def list_guild_ids(self) -> List[GuildID]:
        return list(self.guilds.keys())

    def _ensure_guild(self, guild_id: SnowflakeLike) -> GuildSettings:
        gid = GuildID(guild_id)
        settings = self.guilds.get(gid)
        if settings is None:
            settings = GuildSettings(guild_id=gid)
            self.guilds[gid] = settings
        return settings

    def set_channel(self, guild_id: SnowflakeLike, channel_id: SnowflakeLike) -> GuildSettings:
        """Upsert the admin channel for a guild and persist immediately."""
        settings = self._ensure_guild(guild_id)
        settings.admin_channel_id = ChannelID(channel_id)
        self.save()
        logger.info("[SETTINGS] Guild %s alert channel set to %s", settings.guild_id, settings.admin_channel_id)
        return settings

    def set_role(self, guild_id: SnowflakeLike, role_id: SnowflakeLike) -> GuildSettings:
        """Upsert the ping role for a guild and persist immediately."""
        settings = self._ensure_guild(guild_id)
        settings.role_id_to_ping = RoleID(role_id)
        self.save()
        logger.info("[SETTINGS] Guild %s alert role set to %s", settings.guild_id, settings.role_id_to_ping)
        return settings
