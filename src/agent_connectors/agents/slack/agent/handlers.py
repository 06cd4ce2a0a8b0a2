"""Slack agent: action handler and context lifecycle."""

import logging
from dataclasses import dataclass
from typing import Optional

from ....clients.slack_client import SlackClient, create_slack_client
from ....core.exceptions import UnknownActionError
from ....core.formatters import (
    create_action_result_from_error,
    create_action_result_from_text,
)
from ....core.models import ActionResult, AppAction
from ...base import PlatformAgent
from ..schema import (
    CreateChannelInSlackAction,
    SendMessageInSlackAction,
    SlackAction,
    parse_slack_action,
)

logger = logging.getLogger(__name__)


@dataclass
class SlackActionContext:
    client: Optional[SlackClient] = None


class SlackAgent(PlatformAgent):
    """Sends messages and creates channels in Slack."""

    platform = "slack"
    login_hint = "Use @slack login to log into Slack."
    context_class = SlackActionContext

    def parse_action(self, action: AppAction) -> SlackAction:
        return parse_slack_action(action)

    async def handle_action(self, action: SlackAction, context: SlackActionContext) -> ActionResult:
        client = context.client

        if isinstance(action, SendMessageInSlackAction):
            channel_id = await client.find_channel_id_by_name(action.channel_name)
            if not channel_id:
                return create_action_result_from_error(
                    f"Channel not found for name: {action.channel_name}"
                )

            if await client.send_message(channel_id, action.message, action.attachments):
                return create_action_result_from_text("Message sent successfully in Slack.")
            return create_action_result_from_error("Error encountered when sending message in Slack!")

        if isinstance(action, CreateChannelInSlackAction):
            if await client.create_channel(action.channel_name, action.is_private):
                return create_action_result_from_text("Channel created successfully.")
            return create_action_result_from_error("Error encountered when creating channel!")

        raise UnknownActionError(getattr(action, "action_name", action))


def instantiate(client_factory=create_slack_client) -> SlackAgent:
    """Create the Slack agent."""
    return SlackAgent(client_factory)
