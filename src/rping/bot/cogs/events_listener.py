"""Event listener Cog for rping.

This cog handles bot lifecycle events (on_ready, on_guild_join), registers the
guild-scoped slash commands, and reports application command errors.
Reaction events are handled by the ReactionListenerCog.
"""

import discord
from discord.ext import commands

from rping.configuration.app_configuration import app_config
from rping.util.logger import get_logger

logger = get_logger("events_listener_cog")

COMMAND_ERROR_MESSAGE = "A :bug: showed up while running this command."


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance):
        self.bot = discord_bot_instance
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Log the connected identity and register commands in every guild."""
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")

        for guild in list(self.bot.guilds):
            await self.register_guild_commands(guild)

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild):
        """Register commands for a guild the bot was just added to."""
        logger.info("Joined guild %s (ID: %s)", guild.name, guild.id)
        if app_config.register_commands_on_join:
            await self.register_guild_commands(guild)

    async def register_guild_commands(self, guild: discord.Guild) -> bool:
        """Register the bot's slash commands as guild commands of ``guild``.

        Failures are logged and reported as False; other guilds are unaffected.
        """
        try:
            await self.bot.register_commands(
                commands=self.bot.pending_application_commands,
                guild_id=guild.id,
            )
        except discord.HTTPException as exc:
            logger.error("Failed to register commands for guild %s: %s", guild.id, exc)
            return False
        logger.info("Registered slash commands for guild %s", guild.id)
        return True

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Handle errors from application commands with logging and user feedback."""
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, "name", "<unknown>")
        logger.error(f"Error in command '{command_name}': {error}", exc_info=error)

        try:
            await application_context.respond(COMMAND_ERROR_MESSAGE, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(COMMAND_ERROR_MESSAGE, ephemeral=True)


def setup(discord_bot_instance):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance))
