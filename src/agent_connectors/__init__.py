"""Agent Connectors: Slack, Discord and Teams adapters for agent dispatchers."""

__version__ = "0.1.0"
