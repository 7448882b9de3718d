"""
Flag and resolve transitions for reaction-driven moderator alerts.

Per original message the lifecycle is::

    UNFLAGGED --(flag emoji by a user)--> FLAGGED --(resolve emoji on the alert
    by a member holding the ping role)--> UNFLAGGED (entry removed)

The service owns the flag tracker and reads guild settings; the reaction cog
only translates gateway events into calls on it.
"""

from __future__ import annotations

from typing import Optional

import discord

from rping.configuration.guild_settings import GuildSettings, GuildSettingsManager
from rping.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID
from rping.flagging.alert_embed import build_alert_content, build_alert_embed, emoji_matches
from rping.flagging.flag_tracker import FlagEntry, FlagTracker
from rping.util.logger import get_logger

logger = get_logger("flag_service")


class FlagAlertService:
    """
    Single owner of flag state for the running bot.

    Flag transitions for the same original message are serialized through the
    tracker's per-message lock, so repeated or concurrent flag reactions
    produce exactly one alert. Cleanup steps during resolution are best-effort:
    a failed reaction removal or alert deletion is logged and the entry is
    dropped anyway.
    """

    def __init__(
        self,
        settings_manager: GuildSettingsManager,
        tracker: Optional[FlagTracker] = None,
        *,
        flag_emoji: str,
        resolve_emoji: str,
        preview_length: int = 1024,
    ) -> None:
        self.settings_manager = settings_manager
        self.tracker = tracker if tracker is not None else FlagTracker()
        self.flag_emoji = flag_emoji
        self.resolve_emoji = resolve_emoji
        self.preview_length = preview_length

    def is_flag_emoji(self, emoji_name: Optional[str]) -> bool:
        return emoji_matches(emoji_name, self.flag_emoji)

    def is_resolve_emoji(self, emoji_name: Optional[str]) -> bool:
        return emoji_matches(emoji_name, self.resolve_emoji)

    def is_open_alert(self, message_id: int) -> bool:
        """True when ``message_id`` is an alert that has not been resolved yet."""
        return self.tracker.is_alert(message_id)

    # ------------------------------------------------------------------
    # UNFLAGGED -> FLAGGED
    # ------------------------------------------------------------------
    async def flag_message(
        self,
        guild: discord.Guild,
        message: discord.Message,
        flagger: discord.abc.User,
    ) -> bool:
        """Post an alert for ``message`` unless it is already flagged.

        Returns True when a new alert was sent and recorded. Guilds without a
        complete configuration and admin channels that no longer exist (or
        cannot hold messages) abort the transition with a log line only.
        """
        settings = self.settings_manager.get(guild.id)
        if settings is None or not settings.is_complete:
            logger.debug("[FLAG] Guild %s has no complete alert settings; ignoring flag", guild.id)
            return False

        original_id = MessageID(message.id)
        async with self.tracker.lock(original_id):
            if not self.tracker.try_flag(original_id):
                logger.debug("[FLAG] Message %s is already flagged; ignoring duplicate", original_id)
                return False

            alert: Optional[discord.Message] = None
            try:
                alert = await self._send_alert(guild, message, flagger, settings)
                if alert is None:
                    return False
                self.tracker.record(
                    FlagEntry(
                        original_message_id=original_id,
                        origin_channel_id=ChannelID(message.channel.id),
                        alert_message_id=MessageID(alert.id),
                        alert_channel_id=ChannelID(alert.channel.id),
                        guild_id=GuildID(guild.id),
                    )
                )
            finally:
                if alert is None:
                    self.tracker.release(original_id)

        logger.info("[FLAG] Message %s flagged by %s; alert %s posted", original_id, flagger.id, alert.id)

        try:
            await alert.add_reaction(self.resolve_emoji)
        except discord.HTTPException as exc:
            logger.warning("[FLAG] Could not add resolve reaction to alert %s: %s", alert.id, exc)

        return True

    async def _send_alert(
        self,
        guild: discord.Guild,
        message: discord.Message,
        flagger: discord.abc.User,
        settings: GuildSettings,
    ) -> Optional[discord.Message]:
        channel_id = settings.admin_channel_id
        role_id = settings.role_id_to_ping
        if channel_id is None or role_id is None:
            return None

        admin_channel = guild.get_channel_or_thread(channel_id.to_int())
        if admin_channel is None:
            logger.warning("[FLAG] Admin channel %s not found in guild %s", channel_id, guild.id)
            return None
        # /setalertchannel only offers text channels
        if not isinstance(admin_channel, discord.TextChannel):
            logger.warning("[FLAG] Admin channel %s in guild %s is not a text channel", channel_id, guild.id)
            return None

        embed = build_alert_embed(message, flagger, self.flag_emoji, self.preview_length)
        logger.debug("[FLAG] Sending alert to channel %s tagging role %s", channel_id, role_id)
        try:
            return await admin_channel.send(
                content=build_alert_content(role_id),
                embed=embed,
                allowed_mentions=discord.AllowedMentions(roles=True),
            )
        except discord.HTTPException as exc:
            logger.error("[FLAG] Failed to send alert for message %s: %s", message.id, exc)
            return None

    # ------------------------------------------------------------------
    # FLAGGED -> resolved
    # ------------------------------------------------------------------
    async def resolve_alert(
        self,
        guild: discord.Guild,
        alert_message: discord.Message,
        member: discord.Member,
    ) -> bool:
        """Close the flag behind ``alert_message`` if ``member`` may resolve it.

        Returns True when an entry was removed. Unknown alerts and members
        without the configured ping role are no-ops.
        """
        entry = self.tracker.resolve(alert_message.id)
        if entry is None:
            return False

        settings = self.settings_manager.get(guild.id)
        if settings is None or settings.role_id_to_ping is None:
            logger.debug("[RESOLVE] Guild %s has no ping role configured; ignoring resolve", guild.id)
            return False
        if not self.has_role(member, settings.role_id_to_ping):
            logger.debug("[RESOLVE] Member %s lacks role %s; ignoring resolve", member.id, settings.role_id_to_ping)
            return False

        async with self.tracker.lock(entry.original_message_id):
            current = self.tracker.get(entry.original_message_id)
            if current is None or current.alert_message_id != entry.alert_message_id:
                logger.debug("[RESOLVE] Alert %s was already resolved", alert_message.id)
                return False
            try:
                await self._clear_flag_reaction(guild, current)
                await self._delete_alert(alert_message)
            finally:
                self.tracker.remove(current.original_message_id)

        logger.info("[RESOLVE] Alert %s for message %s resolved by %s", current.alert_message_id, current.original_message_id, member.id)
        return True

    @staticmethod
    def has_role(member: discord.Member, role_id: RoleID) -> bool:
        return any(role_id == role.id for role in getattr(member, "roles", None) or [])

    async def _clear_flag_reaction(self, guild: discord.Guild, entry: FlagEntry) -> None:
        channel_id = entry.origin_channel_id.to_int()
        try:
            # Archived threads and other uncached channels are fetched
            channel = guild.get_channel_or_thread(channel_id) or await guild.fetch_channel(channel_id)
            original = await channel.fetch_message(entry.original_message_id.to_int())
            for reaction in original.reactions:
                if emoji_matches(str(reaction.emoji), self.flag_emoji):
                    await reaction.clear()
        except discord.HTTPException as exc:
            logger.warning("[RESOLVE] Could not clear flag reaction on message %s: %s", entry.original_message_id, exc)

    async def _delete_alert(self, alert_message: discord.Message) -> None:
        try:
            await alert_message.delete()
        except discord.HTTPException as exc:
            logger.warning("[RESOLVE] Could not delete alert %s: %s", alert_message.id, exc)
