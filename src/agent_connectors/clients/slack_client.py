"""Slack platform client."""

import logging
import re
from typing import Any, Optional

from slack_sdk.web.async_client import AsyncWebClient

from ..core.config import get_env
from .base import PlatformClient

logger = logging.getLogger(__name__)

# Slack channel names: lower-case letters, digits, hyphens and underscores
INVALID_CHANNEL_CHARS = re.compile(r"[^a-z0-9\-_]")
MAX_CHANNEL_NAME_LENGTH = 80


def sanitize_channel_name(name: str) -> Optional[str]:
    """Lower-case a channel name and strip characters Slack rejects.

    Args:
        name: Friendly channel name

    Returns:
        Sanitized name, or None if it is empty or longer than 80 characters
    """
    sanitized = INVALID_CHANNEL_CHARS.sub("", name.lower())
    if len(sanitized) < 1 or len(sanitized) > MAX_CHANNEL_NAME_LENGTH:
        logger.error(
            f'Channel name "{name}" is invalid. '
            f"It must be between 1 and {MAX_CHANNEL_NAME_LENGTH} characters."
        )
        return None
    return sanitized


class SlackClient(PlatformClient):
    """Slack Web API client."""

    platform = "slack"

    def __init__(self, token: str, web_client: Optional[AsyncWebClient] = None):
        """Initialize the client.

        Args:
            token: Slack bot token (xoxb-...)
            web_client: Web API client to use (default: AsyncWebClient for token)
        """
        self.token = token
        self.client = web_client if web_client is not None else AsyncWebClient(token=token)

    def is_initialized(self) -> bool:
        """True iff a non-empty token is held.

        No live auth check is involved.
        """
        return bool(self.token)

    async def initialize(self, force_login: bool = False) -> bool:
        """Verify the token with ``auth.test``.

        Args:
            force_login: Retry once if the first check fails

        Returns:
            True if the token authenticated
        """
        try:
            await self.client.auth_test()
            logger.info("Slack client authenticated successfully")
            return True
        except Exception as e:
            logger.error(f"Slack client authentication failed: {e}")
            if force_login:
                return await self.initialize()
            return False

    async def find_channel_id_by_name(self, friendly_name: str) -> Optional[str]:
        """Find a channel ID by partial name match.

        Only the first page returned by ``conversations.list`` is searched.

        Args:
            friendly_name: Name, or part of the name, of the channel

        Returns:
            ID of the first matching channel, or None
        """
        valid_name = sanitize_channel_name(friendly_name)
        if not valid_name:
            logger.error(f'Channel name "{friendly_name}" is invalid and cannot be resolved.')
            return None

        try:
            response = await self.client.conversations_list()
        except Exception as e:
            logger.error(f"Error finding channel by name: {e}")
            return None

        if response.get("ok"):
            for channel in response.get("channels") or []:
                names = (channel.get("name") or "", channel.get("name_normalized") or "")
                if any(valid_name in n for n in names) and channel.get("id"):
                    logger.info(f"Found channel ID {channel['id']} for {valid_name}")
                    return channel["id"]

        logger.warning(f"No channel found containing the name: {valid_name}")
        return None

    async def send_message(
        self,
        channel_id: str,
        text: str,
        attachments: Optional[list[dict[str, Any]]] = None,
    ) -> bool:
        """Post a message to a channel.

        Args:
            channel_id: Slack channel ID
            text: Message text
            attachments: Slack message attachments

        Returns:
            True if Slack accepted the message
        """
        try:
            response = await self.client.chat_postMessage(
                channel=channel_id,
                text=text,
                attachments=attachments or None,
            )
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            return False

        if response.get("ok"):
            logger.info(f"Message sent to channel {channel_id}")
            return True

        logger.error(
            f"Failed to send message to channel {channel_id}: "
            f"{response.get('error') or 'Unknown error'}"
        )
        return False

    async def create_channel(self, channel_name: str, is_private: bool = False) -> bool:
        """Create a channel.

        The name is sanitized first; invalid names are rejected without
        calling Slack.

        Args:
            channel_name: Requested channel name
            is_private: Create a private channel

        Returns:
            True if the channel was created
        """
        valid_name = sanitize_channel_name(channel_name)
        if not valid_name:
            logger.error(f'Channel name "{channel_name}" is invalid and cannot be created.')
            return False

        try:
            response = await self.client.conversations_create(
                name=valid_name,
                is_private=is_private,
            )
        except Exception as e:
            logger.error(f"Error creating channel: {e}")
            return False

        if response.get("ok"):
            logger.info(f"Channel {valid_name} created successfully")
            return True

        logger.error(
            f"Failed to create channel {valid_name}: "
            f"{response.get('error') or 'Unknown error'}"
        )
        return False


def create_slack_client() -> SlackClient:
    """Create a Slack client from ``SLACK_BOT_TOKEN``."""
    return SlackClient(get_env("SLACK_BOT_TOKEN"))
