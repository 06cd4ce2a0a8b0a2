"""Microsoft Teams agent."""

from .schema import SendMessageAction, TeamsAction, parse_teams_action

__all__ = [
    "SendMessageAction",
    "TeamsAction",
    "parse_teams_action",
]
