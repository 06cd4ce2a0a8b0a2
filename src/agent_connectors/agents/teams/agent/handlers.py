"""Teams agent: action handler and context lifecycle."""

import logging
from dataclasses import dataclass
from typing import Optional

from ....clients.teams_client import TeamsClient, create_teams_client
from ....core.exceptions import UnknownActionError
from ....core.formatters import (
    create_action_result_from_error,
    create_action_result_from_text,
)
from ....core.models import ActionResult, AppAction
from ...base import PlatformAgent
from ..schema import SendMessageAction, TeamsAction, parse_teams_action

logger = logging.getLogger(__name__)


@dataclass
class TeamsActionContext:
    client: Optional[TeamsClient] = None
    # ID of the signed-in user, looked up once per session
    caller_id: Optional[str] = None


class TeamsAgent(PlatformAgent):
    """Sends chat messages in Microsoft Teams."""

    platform = "teams"
    login_hint = "Use @teams login to log into MS Graph."
    context_class = TeamsActionContext

    async def initialize_agent_context(self) -> TeamsActionContext:
        return TeamsActionContext(client=await self.create_client())

    async def update_agent_context(self, enable: bool, session_context) -> None:
        await super().update_agent_context(enable, session_context)
        session_context.agent_context.caller_id = None

    def parse_action(self, action: AppAction) -> TeamsAction:
        return parse_teams_action(action)

    async def prepare(self, context: TeamsActionContext) -> Optional[ActionResult]:
        if not context.caller_id:
            caller_id = await context.client.get_caller_id()
            if not caller_id:
                return create_action_result_from_error("Unable to retrieve caller ID.")
            context.caller_id = caller_id
        return None

    async def handle_action(self, action: TeamsAction, context: TeamsActionContext) -> ActionResult:
        if not isinstance(action, SendMessageAction):
            raise UnknownActionError(getattr(action, "action_name", action))

        client = context.client
        user_ids = await client.find_user_ids_by_names(action.recipients)
        if not user_ids:
            return create_action_result_from_error(
                f"No valid users found for conversation: {', '.join(action.recipients)}"
            )

        if len(user_ids) > 1:
            chat_id = await client.create_or_find_conversation(context.caller_id, user_ids)
        else:
            chat_id = await client.create_or_find_1on1_chat(context.caller_id, user_ids[0])

        if not chat_id:
            return create_action_result_from_error(
                "Failed to create or retrieve chat with specified users."
            )

        if await client.send_message([chat_id], action.message, action.attachments):
            return create_action_result_from_text("Message sent successfully in Teams.")
        return create_action_result_from_error("Error sending message in Teams.")


def instantiate(client_factory=create_teams_client) -> TeamsAgent:
    """Create the Teams agent."""
    return TeamsAgent(client_factory)
