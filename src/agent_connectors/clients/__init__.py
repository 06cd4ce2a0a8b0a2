"""
Platform clients for messaging integrations.

Each client handles:
- Authenticating with the platform
- Sending messages
- Creating channels or chats
- Resolving friendly names to platform IDs
"""

from .base import PlatformClient
from .discord_client import DiscordClient, create_discord_client
from .graph import GraphClient, create_graph_client
from .slack_client import SlackClient, create_slack_client, sanitize_channel_name
from .teams_client import TeamsClient, create_teams_client

__all__ = [
    "PlatformClient",
    # Slack
    "SlackClient",
    "create_slack_client",
    "sanitize_channel_name",
    # Discord
    "DiscordClient",
    "create_discord_client",
    # Teams
    "GraphClient",
    "create_graph_client",
    "TeamsClient",
    "create_teams_client",
]
