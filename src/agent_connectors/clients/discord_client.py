"""Discord platform client."""

import logging
from typing import Optional

import discord

from ..core.config import get_env
from .base import PlatformClient

logger = logging.getLogger(__name__)


def create_discord_intents() -> discord.Intents:
    """Intents needed to manage guild channels and post messages."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    return intents


class DiscordClient(PlatformClient):
    """Discord REST client built on discord.py."""

    platform = "discord"

    def __init__(
        self,
        token: str,
        client: Optional[discord.Client] = None,
        default_guild_id: Optional[str] = None,
    ):
        """Initialize the client.

        Args:
            token: Discord bot token
            client: discord.py client to use (default: new Client)
            default_guild_id: Guild used when an action does not name one
        """
        self.token = token
        self.client = client if client is not None else discord.Client(intents=create_discord_intents())
        self.default_guild_id = default_guild_id or None

    def is_initialized(self) -> bool:
        """True once constructed with a token; login happens on enable."""
        return bool(self.token)

    async def initialize(self, force_login: bool = False) -> bool:
        """Log in with the bot token (HTTP only, no gateway connection)."""
        try:
            await self.client.login(self.token)
        except Exception as e:
            logger.error(f"Discord client authentication failed: {e}")
            return False

        logger.info("Discord client authenticated successfully")
        return True

    async def send_message(self, channel_id: str, message: str) -> bool:
        """Send a message to a text channel.

        Args:
            channel_id: Discord channel ID
            message: Message content

        Returns:
            True if the message was sent
        """
        try:
            channel = await self.client.fetch_channel(int(channel_id))
            if not isinstance(channel, discord.abc.Messageable):
                logger.error(f"Channel with ID {channel_id} not found.")
                return False
            await channel.send(message)
        except Exception as e:
            logger.error(f"Error sending message to Discord: {e}")
            return False

        logger.info(f"Message sent to channel {channel_id}")
        return True

    async def find_channel_id_by_name(self, guild_id: str, friendly_name: str) -> Optional[str]:
        """Find a text channel ID in a guild by partial name match.

        Args:
            guild_id: Discord guild (server) ID
            friendly_name: Name, or part of the name, of the channel

        Returns:
            ID of the first matching text channel, or None
        """
        wanted = friendly_name.strip().lower()
        if not wanted:
            return None

        try:
            guild = await self.client.fetch_guild(int(guild_id))
            channels = await guild.fetch_channels()
        except Exception as e:
            logger.error(f"Error finding channel by name: {e}")
            return None

        for channel in channels:
            if isinstance(channel, discord.TextChannel) and wanted in channel.name.lower():
                logger.info(f"Found channel ID {channel.id} for {friendly_name}")
                return str(channel.id)

        logger.warning(f"No channel found containing the name: {friendly_name}")
        return None

    async def create_channel(
        self,
        guild_id: str,
        channel_name: str,
        is_private: bool = False,
    ) -> bool:
        """Create a text channel in a guild.

        A private channel denies ``view_channel`` to the guild's default
        role (@everyone).

        Args:
            guild_id: Discord guild (server) ID
            channel_name: Name of the channel to create
            is_private: Hide the channel from @everyone

        Returns:
            True if the channel was created
        """
        try:
            guild = await self.client.fetch_guild(int(guild_id))
            overwrites = {}
            if is_private:
                overwrites[guild.default_role] = discord.PermissionOverwrite(view_channel=False)
            await guild.create_text_channel(channel_name, overwrites=overwrites)
        except Exception as e:
            logger.error(f"Error creating channel in Discord: {e}")
            return False

        logger.info(f"Channel {channel_name} created in guild {guild_id}")
        return True

    async def close(self) -> None:
        """Close the discord.py HTTP session."""
        if not self.client.is_closed():
            await self.client.close()


def create_discord_client() -> DiscordClient:
    """Create a Discord client from ``DISCORD_BOT_TOKEN`` and ``DISCORD_GUILD_ID``."""
    return DiscordClient(
        get_env("DISCORD_BOT_TOKEN"),
        default_guild_id=get_env("DISCORD_GUILD_ID"),
    )
