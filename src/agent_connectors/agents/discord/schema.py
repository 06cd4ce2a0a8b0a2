"""Discord agent actions."""

from dataclasses import dataclass
from typing import Union

from ...core.exceptions import UnknownActionError
from ...core.models import AppAction
from ..params import optional_bool, require_str


@dataclass(frozen=True)
class SendMessageInDiscordAction:
    """Send a message to the text channel whose name contains ``channel_name``."""

    channel_name: str
    message: str

    action_name = "sendMessageInDiscord"


@dataclass(frozen=True)
class CreateChannelInDiscordAction:
    """Create a text channel, optionally hidden from @everyone."""

    channel_name: str
    is_private: bool = False

    action_name = "createChannelInDiscord"


DiscordAction = Union[SendMessageInDiscordAction, CreateChannelInDiscordAction]


def parse_discord_action(action: AppAction) -> DiscordAction:
    """Parse a dispatcher action into a Discord action.

    Raises:
        UnknownActionError: If the action name is not a Discord action
        ActionParameterError: If parameters are missing or malformed
    """
    params = action.parameters

    if action.action_name == SendMessageInDiscordAction.action_name:
        return SendMessageInDiscordAction(
            channel_name=require_str(params, "channelName"),
            message=require_str(params, "message"),
        )

    if action.action_name == CreateChannelInDiscordAction.action_name:
        return CreateChannelInDiscordAction(
            channel_name=require_str(params, "channelName"),
            is_private=optional_bool(params, "isPrivate"),
        )

    raise UnknownActionError(action.action_name)
