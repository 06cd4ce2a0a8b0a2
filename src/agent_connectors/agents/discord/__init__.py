"""Discord agent."""

from .schema import (
    CreateChannelInDiscordAction,
    DiscordAction,
    SendMessageInDiscordAction,
    parse_discord_action,
)

__all__ = [
    "CreateChannelInDiscordAction",
    "DiscordAction",
    "SendMessageInDiscordAction",
    "parse_discord_action",
]
