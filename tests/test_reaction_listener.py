"""Tests for raw reaction dispatch into the flag service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from rping.bot.cogs import reaction_listener
from rping.flagging.flag_service import FlagAlertService
from rping.flagging.flag_tracker import FlagTracker

from fakes import (
    ADMIN_CHANNEL_ID,
    GUILD_ID,
    ORIGIN_CHANNEL_ID,
    ROLE_ID,
    FakeGuild,
    make_member,
    make_message,
    make_reaction,
    make_text_channel,
)

BOT_USER_ID = 999
ORIGINAL_ID = 1000
ALERT_ID = 2000


def payload(emoji, message_id, channel_id, user_id, member=None, guild_id=GUILD_ID):
    return SimpleNamespace(
        emoji=emoji,
        message_id=message_id,
        channel_id=channel_id,
        user_id=user_id,
        member=member,
        guild_id=guild_id,
    )


@pytest.fixture
def world(configured_settings):
    guild = FakeGuild(GUILD_ID)
    admin = make_text_channel(ADMIN_CHANNEL_ID, guild)
    origin = make_text_channel(ORIGIN_CHANNEL_ID, guild)
    guild.channels = {ADMIN_CHANNEL_ID: admin, ORIGIN_CHANNEL_ID: origin}

    original = make_message(ORIGINAL_ID, origin, guild, reactions=[make_reaction("🛎️")])
    alert = make_message(ALERT_ID, admin, guild)
    origin.fetch_message.return_value = original
    admin.fetch_message.return_value = alert
    admin.send.return_value = alert

    service = FlagAlertService(configured_settings, FlagTracker(), flag_emoji="🛎️", resolve_emoji="✅")
    bot = SimpleNamespace(
        user=SimpleNamespace(id=BOT_USER_ID),
        get_guild=lambda gid: guild if gid == GUILD_ID else None,
        fetch_channel=AsyncMock(),
    )
    cog = reaction_listener.ReactionListenerCog(bot, service)
    return SimpleNamespace(guild=guild, admin=admin, origin=origin, original=original, alert=alert, service=service, bot=bot, cog=cog)


def test_setup_adds_cog(world):
    captured = {}
    fake_bot = SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog))

    reaction_listener.setup(fake_bot, world.service)

    assert isinstance(captured["cog"], reaction_listener.ReactionListenerCog)


@pytest.mark.asyncio
async def test_flag_then_resolve_end_to_end(world):
    user = make_member(7)
    moderator = make_member(8, role_ids=[ROLE_ID])

    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=user))

    world.admin.send.assert_awaited_once()
    assert world.admin.send.await_args.kwargs["content"] == f"<@&{ROLE_ID}>"
    assert world.service.tracker.get(ORIGINAL_ID).alert_message_id == ALERT_ID

    await world.cog.on_raw_reaction_add(payload("✅", ALERT_ID, ADMIN_CHANNEL_ID, 8, member=moderator))

    world.alert.delete.assert_awaited_once()
    world.original.reactions[0].clear.assert_awaited_once()
    assert ORIGINAL_ID not in world.service.tracker


@pytest.mark.asyncio
async def test_bot_reactions_are_ignored(world):
    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, BOT_USER_ID))
    await world.cog.on_raw_reaction_add(
        payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 55, member=make_member(55, bot=True))
    )

    world.admin.send.assert_not_awaited()
    world.origin.fetch_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_unrelated_emoji_and_dm_are_ignored(world):
    await world.cog.on_raw_reaction_add(payload("😀", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=make_member(7)))
    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=make_member(7), guild_id=None))

    world.origin.fetch_message.assert_not_awaited()
    world.admin.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_emoji_on_non_alert_skips_fetch(world):
    await world.cog.on_raw_reaction_add(
        payload("✅", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 8, member=make_member(8, role_ids=[ROLE_ID]))
    )

    world.origin.fetch_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_member_is_fetched_when_payload_lacks_it(world):
    world.guild.fetch_member.return_value = make_member(7)

    await world.cog.on_raw_reaction_add(payload("🛎", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7))

    world.guild.fetch_member.assert_awaited_once_with(7)
    world.admin.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_uncached_channel_is_fetched(world):
    del world.guild.channels[ORIGIN_CHANNEL_ID]
    world.bot.fetch_channel.return_value = world.origin

    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=make_member(7)))

    world.bot.fetch_channel.assert_awaited_once_with(ORIGIN_CHANNEL_ID)
    world.admin.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_handler_errors_are_logged_not_raised(world, monkeypatch):
    world.origin.fetch_message.side_effect = RuntimeError("gateway hiccup")
    log_exception = MagicMock()
    monkeypatch.setattr(reaction_listener.logger, "exception", log_exception)

    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=make_member(7)))

    log_exception.assert_called_once()
    world.admin.send.assert_not_awaited()
    assert ORIGINAL_ID not in world.service.tracker


@pytest.mark.asyncio
async def test_flag_and_resolve_in_uncached_channel(world):
    del world.guild.channels[ORIGIN_CHANNEL_ID]
    world.bot.fetch_channel.return_value = world.origin
    world.guild.fetch_channel.return_value = world.origin

    await world.cog.on_raw_reaction_add(payload("🛎️", ORIGINAL_ID, ORIGIN_CHANNEL_ID, 7, member=make_member(7)))
    await world.cog.on_raw_reaction_add(
        payload("✅", ALERT_ID, ADMIN_CHANNEL_ID, 8, member=make_member(8, role_ids=[ROLE_ID]))
    )

    world.original.reactions[0].clear.assert_awaited_once()
    world.alert.delete.assert_awaited_once()
    assert ORIGINAL_ID not in world.service.tracker
