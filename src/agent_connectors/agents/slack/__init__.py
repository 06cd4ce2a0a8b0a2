"""Slack agent."""

from .schema import (
    CreateChannelInSlackAction,
    SendMessageInSlackAction,
    SlackAction,
    parse_slack_action,
)

__all__ = [
    "CreateChannelInSlackAction",
    "SendMessageInSlackAction",
    "SlackAction",
    "parse_slack_action",
]
