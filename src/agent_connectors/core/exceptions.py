"""Custom exceptions for Agent Connectors."""

from typing import Optional


class AgentConnectorsError(Exception):
    """Base exception for Agent Connectors."""

    pass


class ActionError(AgentConnectorsError):
    """Action-related errors."""

    pass


class UnknownActionError(ActionError):
    """Action name is not part of the agent's action set.

    Never rendered as a display error; it always escapes the handler.
    """

    def __init__(self, action_name: object):
        super().__init__(f"Unknown action: {action_name}")
        self.action_name = action_name


class ActionParameterError(ActionError):
    """Action parameters are missing or malformed."""

    pass


class UnknownCommandError(ActionError):
    """Command is not in the agent's command table."""

    pass


class AgentLoadError(AgentConnectorsError):
    """Agent module could not be resolved or instantiated."""

    pass


class AgentProcessError(AgentLoadError):
    """Error raised inside a separate-process agent."""

    pass


class PlatformError(AgentConnectorsError):
    """Messaging platform errors."""

    pass


class GraphError(PlatformError):
    """Microsoft Graph request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphAuthError(GraphError):
    """Microsoft Graph authentication failed."""

    pass
