"""Core components: models, errors, configuration and helpers."""

from .config import get_dispatcher_config, load_config, set_dispatcher_config
from .exceptions import (
    ActionError,
    ActionParameterError,
    AgentConnectorsError,
    AgentLoadError,
    AgentProcessError,
    GraphAuthError,
    GraphError,
    PlatformError,
    UnknownActionError,
    UnknownCommandError,
)
from .formatters import (
    create_action_result_from_error,
    create_action_result_from_html_display,
    create_action_result_from_text,
    render_notice,
)
from .models import ActionContext, ActionResult, AppAction, FileAttachment, SessionContext
from .websocket import create_websocket, keep_websocket_alive

__all__ = [
    # Config
    "get_dispatcher_config",
    "load_config",
    "set_dispatcher_config",
    # Models
    "ActionContext",
    "ActionResult",
    "AppAction",
    "FileAttachment",
    "SessionContext",
    # Formatters
    "create_action_result_from_error",
    "create_action_result_from_html_display",
    "create_action_result_from_text",
    "render_notice",
    # WebSocket
    "create_websocket",
    "keep_websocket_alive",
    # Exceptions
    "AgentConnectorsError",
    "ActionError",
    "ActionParameterError",
    "UnknownActionError",
    "UnknownCommandError",
    "AgentLoadError",
    "AgentProcessError",
    "PlatformError",
    "GraphError",
    "GraphAuthError",
]
