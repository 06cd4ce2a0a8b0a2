"""Discord agent: action handler and context lifecycle."""

import logging
from dataclasses import dataclass
from typing import Optional

from ....clients.discord_client import DiscordClient, create_discord_client
from ....core.exceptions import UnknownActionError
from ....core.formatters import (
    create_action_result_from_error,
    create_action_result_from_text,
)
from ....core.models import ActionResult, AppAction
from ...base import PlatformAgent
from ..schema import (
    CreateChannelInDiscordAction,
    DiscordAction,
    SendMessageInDiscordAction,
    parse_discord_action,
)

logger = logging.getLogger(__name__)


@dataclass
class DiscordActionContext:
    client: Optional[DiscordClient] = None


class DiscordAgent(PlatformAgent):
    """Sends messages and creates channels in a Discord server."""

    platform = "discord"
    login_hint = "Use @discord login to log into Discord."
    context_class = DiscordActionContext

    async def create_client(self) -> DiscordClient:
        # Token login is non-interactive, so log in as soon as the agent is enabled
        client = self.client_factory()
        await client.initialize()
        return client

    def parse_action(self, action: AppAction) -> DiscordAction:
        return parse_discord_action(action)

    async def handle_action(self, action: DiscordAction, context: DiscordActionContext) -> ActionResult:
        client = context.client
        guild_id = client.default_guild_id
        if not guild_id:
            return create_action_result_from_error(
                "No Discord server configured. Set DISCORD_GUILD_ID."
            )

        if isinstance(action, SendMessageInDiscordAction):
            channel_id = await client.find_channel_id_by_name(guild_id, action.channel_name)
            if not channel_id:
                return create_action_result_from_error(
                    f"Channel not found for name: {action.channel_name}"
                )

            if await client.send_message(channel_id, action.message):
                return create_action_result_from_text("Message sent successfully in Discord.")
            return create_action_result_from_error("Error encountered when sending message in Discord!")

        if isinstance(action, CreateChannelInDiscordAction):
            if await client.create_channel(guild_id, action.channel_name, action.is_private):
                return create_action_result_from_text("Channel created successfully.")
            return create_action_result_from_error("Error encountered when creating channel!")

        raise UnknownActionError(getattr(action, "action_name", action))


def instantiate(client_factory=create_discord_client) -> DiscordAgent:
    """Create the Discord agent."""
    return DiscordAgent(client_factory)
