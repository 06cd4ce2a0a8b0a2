"""Slack agent actions."""

from dataclasses import dataclass, field
from typing import Any, Union

from ...core.exceptions import ActionParameterError, UnknownActionError
from ...core.models import AppAction
from ..params import optional_bool, optional_list, require_str


@dataclass(frozen=True)
class SendMessageInSlackAction:
    """Send a message to the channel whose name contains ``channel_name``."""

    channel_name: str
    message: str
    attachments: list[dict[str, Any]] = field(default_factory=list)

    action_name = "sendMessageInSlack"


@dataclass(frozen=True)
class CreateChannelInSlackAction:
    """Create a channel, optionally private."""

    channel_name: str
    is_private: bool = False

    action_name = "createChannelInSlack"


SlackAction = Union[SendMessageInSlackAction, CreateChannelInSlackAction]


def parse_slack_action(action: AppAction) -> SlackAction:
    """Parse a dispatcher action into a Slack action.

    Raises:
        UnknownActionError: If the action name is not a Slack action
        ActionParameterError: If parameters are missing or malformed
    """
    params = action.parameters

    if action.action_name == SendMessageInSlackAction.action_name:
        attachments = optional_list(params, "attachments")
        if not all(isinstance(a, dict) for a in attachments):
            raise ActionParameterError("Slack attachments must be objects")
        return SendMessageInSlackAction(
            channel_name=require_str(params, "channelName"),
            message=require_str(params, "message"),
            attachments=attachments,
        )

    if action.action_name == CreateChannelInSlackAction.action_name:
        return CreateChannelInSlackAction(
            channel_name=require_str(params, "channelName"),
            is_private=optional_bool(params, "isPrivate"),
        )

    raise UnknownActionError(action.action_name)
