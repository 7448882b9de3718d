"""
In-memory bookkeeping of open flags.

A flag correlates an original (flagged) message with the alert the bot posted
for it. At most one live entry exists per original message. Entries live for
the lifetime of the process only; a restart forgets every open flag.

Concurrency model: reaction events run on one event loop but suspend at every
network call, so two flag reactions on the same message can interleave. Callers
hold ``lock(original_id)`` across check, send and record to keep the
at-most-once guarantee.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Set

from rping.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, SnowflakeLike
from rping.util.logger import get_logger

logger = get_logger("flag_tracker")


@dataclass(frozen=True, slots=True)
class FlagEntry:
    """Link between a flagged message and its alert."""

    original_message_id: MessageID
    origin_channel_id: ChannelID
    alert_message_id: MessageID
    alert_channel_id: ChannelID
    guild_id: GuildID


class FlagTracker:
    """
    Open flags keyed by original message id, with a reverse index by alert id.

    A message is either absent (unflagged), reserved (an alert is being sent)
    or recorded (an alert exists). Reservations and records both block a new
    flag on the same message.
    """

    def __init__(self) -> None:
        self._entries: Dict[MessageID, FlagEntry] = {}
        self._by_alert: Dict[MessageID, MessageID] = {}
        self._reserved: Set[MessageID] = set()
        self._locks: Dict[MessageID, asyncio.Lock] = {}
        self._lock_users: Dict[MessageID, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, original_id: object) -> bool:
        try:
            mid = MessageID(original_id)  # type: ignore[arg-type]
        except ValueError:
            return False
        return mid in self._entries or mid in self._reserved

    @asynccontextmanager
    async def lock(self, original_id: SnowflakeLike) -> AsyncIterator[None]:
        """Serialize flag transitions for one original message.

        The lock object is discarded once nobody holds or waits for it, so the
        lock table never grows past the number of in-flight transitions.
        """
        mid = MessageID(original_id)
        lock = self._locks.get(mid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[mid] = lock
        self._lock_users[mid] = self._lock_users.get(mid, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[mid] - 1
            if remaining:
                self._lock_users[mid] = remaining
            else:
                del self._lock_users[mid]
                del self._locks[mid]

    def try_flag(self, original_id: SnowflakeLike) -> bool:
        """Reserve the slot for ``original_id``.

        Returns False without changing anything when the message is already
        reserved or flagged.
        """
        mid = MessageID(original_id)
        if mid in self._entries or mid in self._reserved:
            return False
        self._reserved.add(mid)
        return True

    def release(self, original_id: SnowflakeLike) -> None:
        """Drop a reservation that never turned into an alert."""
        self._reserved.discard(MessageID(original_id))

    def record(self, entry: FlagEntry) -> None:
        """Fill a reservation with the alert that was sent for it."""
        mid = entry.original_message_id
        self._reserved.discard(mid)
        previous = self._entries.get(mid)
        if previous is not None:
            self._by_alert.pop(previous.alert_message_id, None)
        self._entries[mid] = entry
        self._by_alert[entry.alert_message_id] = mid
        logger.debug("[FLAG] Recorded alert %s for message %s", entry.alert_message_id, mid)

    def get(self, original_id: SnowflakeLike) -> Optional[FlagEntry]:
        return self._entries.get(MessageID(original_id))

    def is_alert(self, alert_message_id: SnowflakeLike) -> bool:
        return MessageID(alert_message_id) in self._by_alert

    def resolve(self, alert_message_id: SnowflakeLike) -> Optional[FlagEntry]:
        """Return the entry whose alert is ``alert_message_id``, or None.

        None means no alert was ever recorded for that message or it has
        already been resolved.
        """
        original_id = self._by_alert.get(MessageID(alert_message_id))
        if original_id is None:
            return None
        return self._entries.get(original_id)

    def remove(self, original_id: SnowflakeLike) -> Optional[FlagEntry]:
        """Delete the entry for ``original_id``; a missing entry is a no-op."""
        mid = MessageID(original_id)
        self._reserved.discard(mid)
        entry = self._entries.pop(mid, None)
        if entry is not None:
            self._by_alert.pop(entry.alert_message_id, None)
            logger.debug("[FLAG] Removed flag for message %s", mid)
        return entry
