"""
Embed builders for flag alerts and the alert settings view.
"""

from __future__ import annotations

from typing import Optional

import discord

from rping.configuration.guild_settings import GuildSettings
from rping.datatypes.discord_datatypes import SnowflakeLike

VARIATION_SELECTOR = "\ufe0f"
DELETED_MARKER = "`[Deleted]`"
NOT_SET_MARKER = "`[Not set]`"
NO_CONTENT_MARKER = "[No content]"


def normalize_emoji(name: Optional[str]) -> str:
    """Strip emoji presentation selectors so 🛎 and 🛎️ compare equal."""
    return (name or "").replace(VARIATION_SELECTOR, "")


def emoji_matches(reacted: Optional[str], expected: str) -> bool:
    return bool(reacted) and normalize_emoji(reacted) == normalize_emoji(expected)


def message_link(guild_id: SnowflakeLike, channel_id: SnowflakeLike, message_id: SnowflakeLike) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}"


def build_alert_content(role_id: SnowflakeLike) -> str:
    """Plain message content that pings the moderator role."""
    return f"<@&{role_id}>"


def build_message_preview(message: discord.Message, preview_length: int) -> str:
    """Quote of the flagged message for the alert.

    Falls back to the first attachment's filename, then to a placeholder, when
    the message has no text.
    """
    content = message.content or ""
    if content:
        if len(content) > preview_length:
            return content[: max(preview_length - 3, 0)] + "..."
        return content
    attachments = getattr(message, "attachments", None) or []
    if attachments:
        return f"[Attachment: {attachments[0].filename}]"
    return NO_CONTENT_MARKER


def build_alert_embed(
    message: discord.Message,
    flagger: discord.abc.User,
    flag_emoji: str,
    preview_length: int,
) -> discord.Embed:
    """Build the alert posted in the admin channel for a flagged message."""
    guild_id = message.guild.id if message.guild else "@me"
    channel_id = message.channel.id
    link = message_link(guild_id, channel_id, message.id)

    embed = discord.Embed(
        title="🔔 Message Flagged",
        description=f"{flagger.mention} reacted with {flag_emoji} in <#{channel_id}>",
        color=discord.Color.orange(),
    )
    embed.add_field(name="Quoted Message", value=build_message_preview(message, preview_length), inline=False)
    embed.add_field(name="Jump to Message", value=f"[Click here to view]({link})", inline=False)
    embed.set_footer(text=f"Message ID: {message.id}")
    return embed


def build_settings_embed(guild: discord.Guild, settings: GuildSettings) -> discord.Embed:
    """Render the guild's alert settings, marking ids that no longer resolve."""
    if settings.admin_channel_id is None:
        channel_text = NOT_SET_MARKER
    else:
        channel = guild.get_channel_or_thread(settings.admin_channel_id.to_int())
        channel_text = channel.mention if channel else DELETED_MARKER

    if settings.role_id_to_ping is None:
        role_text = NOT_SET_MARKER
    else:
        role = guild.get_role(settings.role_id_to_ping.to_int())
        role_text = role.mention if role else DELETED_MARKER

    embed = discord.Embed(title="🔧 Alert Settings", color=discord.Color.green())
    embed.add_field(name="Admin Channel", value=channel_text, inline=False)
    embed.add_field(name="Ping Role", value=role_text, inline=False)
    return embed
