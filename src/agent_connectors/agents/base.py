"""
Base agent interface.

An agent turns dispatcher actions into platform client calls. Agents are
loaded by name (see ``dispatcher.agent_config``) from a package exposing
``agent/manifest.json`` and an ``agent.handlers`` module with an
``instantiate()`` factory.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ..clients.base import PlatformClient
from ..core.exceptions import ActionParameterError, UnknownCommandError
from ..core.formatters import (
    create_action_result_from_error,
    create_action_result_from_text,
)
from ..core.models import ActionContext, ActionResult, AppAction, SessionContext

logger = logging.getLogger(__name__)


class CommandHandler(ABC):
    """A command an agent exposes besides its actions (e.g. ``login``)."""

    description: str = ""

    @abstractmethod
    async def run(self, action_context: ActionContext) -> Optional[ActionResult]:
        pass


@dataclass
class CommandHandlerTable:
    """Named commands with an optional default sub-command."""

    description: str
    commands: dict[str, CommandHandler] = field(default_factory=dict)
    default_sub_command: Optional[str] = None

    def resolve(self, command: Sequence[str]) -> CommandHandler:
        """Find the handler for ``command`` (first word), or the default.

        Raises:
            UnknownCommandError: If no handler matches
        """
        name = command[0] if command else self.default_sub_command
        handler = self.commands.get(name) if name else None
        if handler is None:
            raise UnknownCommandError(f"Unknown command: {name}")
        return handler


class AppAgent(ABC):
    """Contract between the dispatcher and an agent."""

    commands: Optional[CommandHandlerTable] = None

    @abstractmethod
    async def initialize_agent_context(self) -> Any:
        """Create the per-session agent context."""
        pass

    @abstractmethod
    async def update_agent_context(self, enable: bool, session_context: SessionContext) -> None:
        """Enable or disable the agent for a session."""
        pass

    @abstractmethod
    async def execute_action(self, action: AppAction, action_context: ActionContext) -> ActionResult:
        """Run one action and render its outcome."""
        pass

    async def execute_command(
        self, command: Sequence[str], action_context: ActionContext
    ) -> Optional[ActionResult]:
        """Run a command from the agent's command table."""
        if self.commands is None:
            raise UnknownCommandError("Agent has no commands")
        handler = self.commands.resolve(command)
        return await handler.run(action_context)


@dataclass
class PlatformActionContext:
    """Agent context holding one platform client."""

    client: Optional[PlatformClient] = None


class ClientLoginCommandHandler(CommandHandler):
    """Log the session's platform client in if it is not initialized."""

    def __init__(self, description: str):
        self.description = description

    async def run(self, action_context: ActionContext) -> Optional[ActionResult]:
        client: Optional[PlatformClient] = action_context.agent_context.client
        if client is None:
            return create_action_result_from_error("Agent is not enabled for this session.")

        if not client.is_initialized():
            await client.initialize(force_login=True)

        if client.is_initialized():
            return create_action_result_from_text(f"Logged in to {client.name}.")
        return create_action_result_from_error(f"Unable to log in to {client.name}.")


class PlatformAgent(AppAgent):
    """
    Agent backed by a single platform client.

    Subclasses provide the client factory, the action parser and
    ``handle_action``. Every failure except an unknown action name is
    returned as an error result.
    """

    platform: str = "generic"
    login_hint: str = "Use @agent login to log in."
    context_class: type = PlatformActionContext

    def __init__(self, client_factory: Callable[[], PlatformClient]):
        self.client_factory = client_factory
        self.commands = CommandHandlerTable(
            description=f"{self.platform.title()} login command",
            commands={
                "login": ClientLoginCommandHandler(
                    f"Log into {self.platform.title()} to access channels and messages"
                ),
            },
            default_sub_command="login",
        )

    async def initialize_agent_context(self) -> Any:
        return self.context_class()

    async def create_client(self) -> PlatformClient:
        """Build a fresh client when the agent is enabled."""
        return self.client_factory()

    async def update_agent_context(self, enable: bool, session_context: SessionContext) -> None:
        context = session_context.agent_context
        if context.client is not None:
            await context.client.close()
            context.client = None

        if enable:
            context.client = await self.create_client()
            logger.info(f"{self.platform.title()} agent enabled")
        else:
            logger.info(f"{self.platform.title()} agent disabled")

    @abstractmethod
    def parse_action(self, action: AppAction) -> Any:
        """Parse an action into the agent's typed action variant.

        Raises:
            UnknownActionError: For names outside the agent's action set
            ActionParameterError: For malformed parameters
        """
        pass

    @abstractmethod
    async def handle_action(self, action: Any, context: Any) -> ActionResult:
        """Run a parsed action against an initialized client."""
        pass

    async def prepare(self, context: Any) -> Optional[ActionResult]:
        """Hook run before each action; return a result to stop early."""
        return None

    async def execute_action(self, action: AppAction, action_context: ActionContext) -> ActionResult:
        context = action_context.agent_context
        client: Optional[PlatformClient] = context.client
        if client is None or not client.is_initialized():
            return create_action_result_from_error(self.login_hint)

        try:
            parsed = self.parse_action(action)
        except ActionParameterError as e:
            logger.warning(f"Invalid {action.action_name} action: {e}")
            return create_action_result_from_error(f"Invalid action parameters: {e}")

        early = await self.prepare(context)
        if early is not None:
            return early

        logger.info(f"Handling {action.action_name} action ...")
        return await self.handle_action(parsed, context)
