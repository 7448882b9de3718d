"""Tests for the in-memory flag tracker."""

import asyncio

import pytest

from rping.datatypes.discord_datatypes import ChannelID, GuildID, MessageID
from rping.flagging.flag_tracker import FlagEntry, FlagTracker


def make_entry(original: int = 1, alert: int = 10) -> FlagEntry:
    return FlagEntry(
        original_message_id=MessageID(original),
        origin_channel_id=ChannelID(5),
        alert_message_id=MessageID(alert),
        alert_channel_id=ChannelID(6),
        guild_id=GuildID(7),
    )


def test_try_flag_reserves_once():
    tracker = FlagTracker()

    assert tracker.try_flag(1) is True
    assert tracker.try_flag(1) is False
    assert 1 in tracker
    # A reservation is not a recorded flag yet
    assert len(tracker) == 0


def test_release_frees_reservation():
    tracker = FlagTracker()
    tracker.try_flag(1)

    tracker.release(1)

    assert 1 not in tracker
    assert tracker.try_flag(1) is True


def test_record_blocks_reflag_and_indexes_alert():
    tracker = FlagTracker()
    tracker.try_flag(1)
    tracker.record(make_entry(1, 10))

    assert tracker.try_flag(1) is False
    assert len(tracker) == 1
    assert tracker.is_alert(10)
    assert tracker.get("1") == make_entry(1, 10)


def test_resolve_by_alert_id():
    tracker = FlagTracker()
    tracker.record(make_entry(1, 10))
    tracker.record(make_entry(2, 20))

    entry = tracker.resolve(20)

    assert entry is not None
    assert entry.original_message_id == 2
    assert tracker.resolve(99) is None


def test_remove_is_idempotent():
    tracker = FlagTracker()
    tracker.record(make_entry(1, 10))

    assert tracker.remove(1) == make_entry(1, 10)
    assert tracker.remove(1) is None
    assert tracker.resolve(10) is None
    assert not tracker.is_alert(10)
    assert len(tracker) == 0


def test_contains_rejects_unrelated_types():
    tracker = FlagTracker()
    tracker.record(make_entry(1, 10))

    assert None not in tracker
    assert 1.5 not in tracker


@pytest.mark.asyncio
async def test_lock_serializes_same_message():
    tracker = FlagTracker()
    order = []

    async def worker(name: str):
        async with tracker.lock(1):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )


@pytest.mark.asyncio
async def test_lock_table_is_emptied_after_use():
    tracker = FlagTracker()

    async with tracker.lock(1):
        async with tracker.lock(2):
            assert len(tracker._locks) == 2

    assert tracker._locks == {}
    assert tracker._lock_users == {}
