"""Configuration loading for Agent Connectors."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Agents bundled with this package, loaded in the dispatcher process
DEFAULT_AGENTS = {
    "slack": {"type": "module", "name": "agent_connectors.agents.slack", "exec_mode": "dispatcher"},
    "teams": {"type": "module", "name": "agent_connectors.agents.teams", "exec_mode": "dispatcher"},
    "discord": {"type": "module", "name": "agent_connectors.agents.discord", "exec_mode": "dispatcher"},
}

_dispatcher_config: Optional[dict] = None


def get_config_locations() -> list[Path]:
    """Config file locations, in lookup order."""
    return [
        Path(__file__).parent.parent.parent.parent / "config" / "config.yaml",
        Path.home() / ".agent-connectors" / "config.yaml",
        Path("config.yaml"),
    ]


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML file."""
    if config_path is None:
        for loc in get_config_locations():
            if loc.exists():
                config_path = loc
                break

    if config_path is None or not config_path.exists():
        logger.warning("No config file found, using defaults")
        return {}

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_dispatcher_config() -> dict:
    """Get the dispatcher configuration.

    Loaded once per process. When the config file declares no ``agents``
    mapping, the bundled agents are used.
    """
    global _dispatcher_config
    if _dispatcher_config is None:
        config = load_config()
        config.setdefault("agents", dict(DEFAULT_AGENTS))
        _dispatcher_config = config
    return _dispatcher_config


def set_dispatcher_config(config: Optional[dict]) -> None:
    """Replace the process-wide dispatcher configuration (None reloads it)."""
    global _dispatcher_config
    _dispatcher_config = config


def get_env(name: str, default: str = "") -> str:
    """Read a credential or setting from the environment."""
    return os.getenv(name, default)
