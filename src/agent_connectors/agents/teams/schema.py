"""Teams agent actions."""

from dataclasses import dataclass, field
from typing import Union

from ...core.exceptions import ActionParameterError, UnknownActionError
from ...core.models import AppAction, FileAttachment
from ..params import optional_list, require_str


@dataclass(frozen=True)
class SendMessageAction:
    """Send a message to a chat with the named recipients.

    One recipient means a one-on-one chat; several mean a group chat.
    """

    recipients: list[str]
    message: str
    attachments: list[FileAttachment] = field(default_factory=list)

    action_name = "sendMessage"


TeamsAction = Union[SendMessageAction]


def parse_teams_action(action: AppAction) -> TeamsAction:
    """Parse a dispatcher action into a Teams action.

    Raises:
        UnknownActionError: If the action name is not a Teams action
        ActionParameterError: If parameters are missing or malformed
    """
    params = action.parameters

    if action.action_name == SendMessageAction.action_name:
        recipients = optional_list(params, "recipients")
        if not recipients or not all(isinstance(r, str) and r.strip() for r in recipients):
            raise ActionParameterError("'recipients' must be a non-empty list of names")
        return SendMessageAction(
            recipients=recipients,
            message=require_str(params, "message"),
            attachments=[FileAttachment.from_dict(a) for a in optional_list(params, "attachments")],
        )

    raise UnknownActionError(action.action_name)
