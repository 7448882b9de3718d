"""
Alert settings cog: where flag alerts go and whom they ping.

This cog exposes three slash commands:
- /setalertchannel: Choose the admin channel that receives flag alerts
- /setalertrole: Choose the role mentioned on every alert (and allowed to resolve)
- /viewalertsettings: Show the current configuration

All commands require the Manage Server permission and reply ephemerally.
"""

import discord
from discord import Option
from discord.ext import commands

from rping.configuration.guild_settings import GuildSettingsManager
from rping.flagging.alert_embed import build_settings_embed
from rping.util.logger import get_logger

logger = get_logger("alert_settings_cog")

GUILD_ONLY_MESSAGE = "❌ This command can only be used in a server."
PERMISSION_MESSAGE = "🚫 You need the Manage Server permission to configure alerts."
NO_SETTINGS_MESSAGE = "⚠️ No alert settings found for this server."


class AlertSettingsCog(commands.Cog):
    """Guild-level alert channel and ping role configuration."""

    def __init__(self, discord_bot_instance, settings_manager: GuildSettingsManager):
        self.discord_bot_instance = discord_bot_instance
        self.settings_manager = settings_manager
        logger.info("Alert settings cog loaded")

    async def _ensure_guild_context(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id or ctx.guild is None:
            await ctx.respond(GUILD_ONLY_MESSAGE, ephemeral=True)
            return False
        return True

    async def _ensure_manage_permission(self, ctx: discord.ApplicationContext) -> bool:
        permissions = getattr(ctx.user, "guild_permissions", None)
        if not getattr(permissions, "manage_guild", False):
            await ctx.respond(PERMISSION_MESSAGE, ephemeral=True)
            return False
        return True

    async def _check_preconditions(self, ctx: discord.ApplicationContext) -> bool:
        return await self._ensure_guild_context(ctx) and await self._ensure_manage_permission(ctx)

    @commands.slash_command(name="setalertchannel", description="Set the channel to receive 🛎️ alerts")
    async def set_alert_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(discord.TextChannel, "The channel to send alerts to", required=True),  # type: ignore
    ):
        """Store the admin channel for this guild."""
        if not await self._check_preconditions(ctx):
            return
        if channel is None or getattr(channel, "guild", None) is None or channel.guild.id != ctx.guild_id:
            await ctx.respond("❌ Pick a text channel from this server.", ephemeral=True)
            return

        self.settings_manager.set_channel(ctx.guild_id, channel.id)
        await ctx.respond(f"✅ Alert channel set to {channel.mention}", ephemeral=True)

    @commands.slash_command(name="setalertrole", description="Set the role to ping when a message is flagged")
    async def set_alert_role(
        self,
        ctx: discord.ApplicationContext,
        role: Option(discord.Role, "The role to mention", required=True),  # type: ignore
    ):
        """Store the role pinged on alerts; members holding it can resolve alerts."""
        if not await self._check_preconditions(ctx):
            return
        if role is None or getattr(role, "guild", None) is None or role.guild.id != ctx.guild_id:
            await ctx.respond("❌ Pick a role from this server.", ephemeral=True)
            return

        self.settings_manager.set_role(ctx.guild_id, role.id)
        await ctx.respond(f"✅ Alert role set to {role.mention}", ephemeral=True)

    @commands.slash_command(name="viewalertsettings", description="View the current alert settings")
    async def view_alert_settings(self, ctx: discord.ApplicationContext):
        """Show the configured channel and role, marking ones that were deleted."""
        if not await self._check_preconditions(ctx):
            return

        settings = self.settings_manager.get(ctx.guild_id)
        if settings is None:
            await ctx.respond(NO_SETTINGS_MESSAGE, ephemeral=True)
            return

        await ctx.respond(embed=build_settings_embed(ctx.guild, settings), ephemeral=True)


def setup(discord_bot_instance, settings_manager: GuildSettingsManager):
    """Add the alert settings cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(AlertSettingsCog(discord_bot_instance, settings_manager))
