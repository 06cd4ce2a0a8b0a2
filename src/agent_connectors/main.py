"""Agent Connectors main entry point."""

import asyncio
import json
import logging
import sys
from typing import Optional

from .core.config import get_dispatcher_config
from .core.exceptions import AgentConnectorsError
from .core.models import ActionContext, ActionResult, AppAction, SessionContext
from .core.websocket import DEFAULT_WEBSOCKET_URL, create_websocket, keep_websocket_alive
from .dispatcher.agent_config import close_module_agents, get_app_agent_configs, get_module_agent

logger = logging.getLogger(__name__)


def setup_logging(config: dict) -> None:
    """Set up logging configuration."""
    log_config = config.get("logging", {})
    level = getattr(logging, log_config.get("level", "INFO").upper())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Set third-party loggers to WARNING
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("slack_sdk").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def print_result(result: Optional[ActionResult]) -> int:
    """Print an action result; returns the exit code."""
    if result is None:
        return 0
    if result.is_error:
        print(f"Error: {result.error}")
        return 1
    print(result.display_content)
    return 0


async def run_action(agent_name: str, action: AppAction) -> ActionResult:
    """Load an agent, enable it for a fresh session and run one action."""
    agent = get_module_agent(agent_name)

    session_context = SessionContext(agent_context=await agent.initialize_agent_context())
    await agent.update_agent_context(True, session_context)
    action_context = ActionContext(session_context)

    try:
        login_result = await agent.execute_command(["login"], action_context)
        if login_result is not None and login_result.is_error:
            logger.warning(login_result.error)
        return await agent.execute_action(action, action_context)
    finally:
        await agent.update_agent_context(False, session_context)


def handle_agents_command() -> int:
    """List configured agents."""
    configs = get_app_agent_configs()
    if not configs:
        print("No agents configured")
        return 0

    print("Configured agents:")
    for name, config in configs.items():
        emoji = config.get("emoji_char", " ")
        print(f"  {emoji} {name:10} {config.get('description', '')}")
    return 0


def handle_run_command(args: list[str]) -> int:
    """Handle run subcommand.

    Usage:
        python -m agent_connectors run <agent> '<action json>'
    """
    if len(args) < 2:
        print("Usage: python -m agent_connectors run <agent> '<action json>'")
        return 1

    agent_name, raw_action = args[0], args[1]
    try:
        action = AppAction.from_dict(json.loads(raw_action))
    except json.JSONDecodeError as e:
        print(f"Error: action is not valid JSON: {e}")
        return 1
    except AgentConnectorsError as e:
        print(f"Error: {e}")
        return 1

    try:
        result = asyncio.run(run_action(agent_name, action))
    except AgentConnectorsError as e:
        logger.error(f"Action failed: {e}")
        print(f"Error: {e}")
        return 1
    finally:
        close_module_agents()

    return print_result(result)


async def hold_websocket(url: str, source: str) -> int:
    """Open a WebSocket and keep it alive until it closes."""
    websocket = await create_websocket(url)
    if websocket is None:
        print(f"Error: could not connect to {url}")
        return 1

    task = keep_websocket_alive(websocket, source)
    try:
        await websocket.wait_closed()
    finally:
        task.cancel()
    return 0


def handle_keepalive_command(args: list[str]) -> int:
    """Handle keepalive subcommand.

    Usage:
        python -m agent_connectors keepalive [url] [source]
    """
    url = args[0] if args else DEFAULT_WEBSOCKET_URL
    source = args[1] if len(args) > 1 else "agent-connectors"
    try:
        return asyncio.run(hold_websocket(url, source))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0


def print_help() -> None:
    """Print help message."""
    print("""Agent Connectors - Slack, Discord and Teams agents for dispatchers

Usage:
    python -m agent_connectors agents                      List configured agents
    python -m agent_connectors run <agent> <action-json>   Run one action
    python -m agent_connectors keepalive [url] [source]    Hold a keep-alive WebSocket

Environment:
    SLACK_BOT_TOKEN         Slack bot token
    DISCORD_BOT_TOKEN       Discord bot token
    DISCORD_GUILD_ID        Discord server for channel actions
    MSGRAPH_APP_CLIENTID    Azure AD application ID for Teams device login
    MSGRAPH_APP_TENANTID    Azure AD tenant ID
    MSGRAPH_ACCESS_TOKEN    Pre-issued Graph token (skips device login)
    AGENT_EXECMODE          Set to 0 to load every agent in-process

Examples:
    python -m agent_connectors run slack '{"actionName": "sendMessageInSlack", "parameters": {"channelName": "general", "message": "hi"}}'
    python -m agent_connectors run teams '{"actionName": "sendMessage", "parameters": {"recipients": ["Alice"], "message": "hi"}}'
    python -m agent_connectors keepalive ws://localhost:8080/ coda
""")


def main() -> None:
    """Main entry point."""
    args = sys.argv[1:]

    if not args or args[0] in ("-h", "--help", "help"):
        print_help()
        return

    config = get_dispatcher_config()
    setup_logging(config)

    if args[0] == "agents":
        sys.exit(handle_agents_command())

    if args[0] == "run":
        sys.exit(handle_run_command(args[1:]))

    if args[0] == "keepalive":
        sys.exit(handle_keepalive_command(args[1:]))

    print(f"Unknown command: {args[0]}")
    print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
