"""Reaction listener Cog for rping.

Turns raw reaction-add gateway events into flag and resolve calls on the
FlagAlertService. Raw events are used so reactions on messages the client has
not cached (older messages, messages sent before startup) still count.
"""

import discord
from discord.ext import commands

from rping.flagging.flag_service import FlagAlertService
from rping.util.logger import get_logger

logger = get_logger("reaction_listener_cog")


class ReactionListenerCog(commands.Cog):
    """Cog that dispatches flag and resolve reactions."""

    def __init__(self, discord_bot_instance, flag_service: FlagAlertService):
        """
        Initialize the reaction listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        flag_service:
            Service owning the flag state for this process.
        """
        self.bot = discord_bot_instance
        self.flag_service = flag_service
        logger.info("Reaction listener cog loaded")

    @commands.Cog.listener(name="on_raw_reaction_add")
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        """Handle one reaction; any failure is logged and the event dropped."""
        try:
            await self.handle_reaction(payload)
        except Exception:
            logger.exception("[REACTION] Reaction handler error for message %s", payload.message_id)

    async def handle_reaction(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None:
            return

        emoji_name = str(payload.emoji)
        is_flag = self.flag_service.is_flag_emoji(emoji_name)
        is_resolve = not is_flag and self.flag_service.is_resolve_emoji(emoji_name)
        if not (is_flag or is_resolve):
            return
        # Resolve reactions only matter on open alerts; skip the fetches otherwise
        if is_resolve and not self.flag_service.is_open_alert(payload.message_id):
            return

        bot_user = self.bot.user
        if bot_user is not None and payload.user_id == bot_user.id:
            return

        guild = self.bot.get_guild(payload.guild_id)
        if guild is None:
            logger.debug("[REACTION] Guild %s not cached; ignoring reaction", payload.guild_id)
            return

        member = payload.member or await guild.fetch_member(payload.user_id)
        if member.bot:
            return

        channel = guild.get_channel_or_thread(payload.channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(payload.channel_id)
        message = await channel.fetch_message(payload.message_id)

        logger.debug("[REACTION] %s by %s on message %s in guild %s", emoji_name, member, message.id, guild.id)

        if is_flag:
            await self.flag_service.flag_message(guild, message, member)
        else:
            await self.flag_service.resolve_alert(guild, message, member)


def setup(discord_bot_instance, flag_service: FlagAlertService):
    """Register the ReactionListenerCog with the bot."""
    discord_bot_instance.add_cog(ReactionListenerCog(discord_bot_instance, flag_service))
