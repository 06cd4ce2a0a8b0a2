"""Agent configuration and module loading.

Agents are declared in the dispatcher config ``agents`` mapping, either
inline (the manifest itself) or as a module reference::

    agents:
      slack:
        type: module
        name: agent_connectors.agents.slack
        exec_mode: dispatcher   # or "separate" (default)

A module agent is a package with ``agent/manifest.json`` and an
``agent.handlers`` module exposing ``instantiate()``.
"""

import importlib
import json
import logging
import os
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Optional

from ..core.config import get_dispatcher_config
from ..core.exceptions import AgentLoadError
from .process_shim import create_agent_process_shim

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


class ExecutionMode(Enum):
    """Where a module agent runs."""

    SEPARATE_PROCESS = "separate"
    DISPATCHER_PROCESS = "dispatcher"


def is_module_info(info: Any) -> bool:
    return isinstance(info, dict) and info.get("type") == "module"


def get_execution_mode(info: dict) -> ExecutionMode:
    value = info.get("exec_mode") or ExecutionMode.SEPARATE_PROCESS.value
    try:
        return ExecutionMode(value)
    except ValueError:
        raise AgentLoadError(f"Invalid exec_mode for agent {info.get('name')}: {value}")


def enable_execution_mode() -> bool:
    """Separate-process agents are allowed unless ``AGENT_EXECMODE=0``."""
    return os.getenv("AGENT_EXECMODE") != "0"


def patch_paths(config: dict, base_dir: Path) -> None:
    """Make ``schema.schema_file`` paths absolute, recursing into sub-translators.

    Args:
        config: Manifest config, modified in place
        base_dir: Directory relative paths are resolved against
    """
    schema = config.get("schema")
    if isinstance(schema, dict) and schema.get("schema_file"):
        schema["schema_file"] = os.path.normpath(os.path.join(base_dir, schema["schema_file"]))

    sub_translators = config.get("sub_translators")
    if isinstance(sub_translators, dict):
        for sub_translator in sub_translators.values():
            if isinstance(sub_translator, dict):
                patch_paths(sub_translator, base_dir)


def resolve_manifest_path(module_name: str) -> Path:
    """Locate ``<module_name>.agent/manifest.json``.

    Raises:
        AgentLoadError: If the package or manifest cannot be found
    """
    try:
        manifest = resources.files(f"{module_name}.agent").joinpath(MANIFEST_FILE)
    except ModuleNotFoundError as e:
        raise AgentLoadError(f"Unable to resolve agent module {module_name}: {e}") from e

    manifest_path = Path(str(manifest))
    if not manifest_path.is_file():
        raise AgentLoadError(f"Agent module {module_name} has no {MANIFEST_FILE}")
    return manifest_path


def load_module_config(info: dict) -> dict:
    """Read a module agent's manifest and patch its schema paths."""
    manifest_path = resolve_manifest_path(info["name"])
    with open(manifest_path, encoding="utf-8") as f:
        config = json.load(f)
    patch_paths(config, manifest_path.parent)
    return config


def load_dispatcher_configs(infos: dict) -> dict[str, dict]:
    """Resolve every configured agent to its manifest config."""
    app_agents: dict[str, dict] = {}
    for name, info in infos.items():
        app_agents[name] = load_module_config(info) if is_module_info(info) else info
    return app_agents


def load_module_agent(info: dict) -> Any:
    """Instantiate a module agent in-process or behind a process shim.

    Raises:
        AgentLoadError: If the handlers module has no ``instantiate`` function
    """
    handlers_module = f"{info['name']}.agent.handlers"
    exec_mode = get_execution_mode(info)

    if enable_execution_mode() and exec_mode is ExecutionMode.SEPARATE_PROCESS:
        logger.info(f"Starting {info['name']} in a separate process")
        return create_agent_process_shim(handlers_module)

    try:
        module = importlib.import_module(handlers_module)
    except ImportError as e:
        raise AgentLoadError(f"Failed to load module agent {info['name']}: {e}") from e

    instantiate = getattr(module, "instantiate", None)
    if not callable(instantiate):
        raise AgentLoadError(
            f"Failed to load module agent {info['name']}: missing 'instantiate' function."
        )
    return instantiate()


class AgentLoader:
    """Process-wide agent caches.

    Both caches are filled on first use and never evicted: manifest
    configs for all configured agents, and module agents by name.
    ``close_all`` stops the cached agents at shutdown.

    Example:
        loader = get_agent_loader()
        agent = loader.get_module_agent("slack")
    """

    _instance: Optional["AgentLoader"] = None

    def __init__(
        self,
        config_provider: Callable[[], dict] = get_dispatcher_config,
        agent_factory: Callable[[dict], Any] = load_module_agent,
    ):
        """Initialize AgentLoader.

        Args:
            config_provider: Returns the dispatcher config with an ``agents`` mapping
            agent_factory: Builds an agent from a module agent info
        """
        self._config_provider = config_provider
        self._agent_factory = agent_factory
        self._app_agent_configs: Optional[dict[str, dict]] = None
        self._module_agents: dict[str, Any] = {}

    @classmethod
    def get_instance(cls) -> "AgentLoader":
        """Get singleton instance of AgentLoader."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _agent_infos(self) -> dict:
        return self._config_provider().get("agents") or {}

    def get_app_agent_configs(self) -> dict[str, dict]:
        """Manifest configs of all configured agents, loaded once."""
        if self._app_agent_configs is None:
            self._app_agent_configs = load_dispatcher_configs(self._agent_infos())
        return self._app_agent_configs

    def get_module_agent(self, app_agent_name: str) -> Any:
        """Get (loading on first use) the module agent named ``app_agent_name``.

        Raises:
            AgentLoadError: If the name is unknown or not a module agent
        """
        existing = self._module_agents.get(app_agent_name)
        if existing is not None:
            return existing

        info = self._agent_infos().get(app_agent_name)
        if not is_module_info(info):
            raise AgentLoadError(f"Unable to load app agent name: {app_agent_name}")

        agent = self._agent_factory(info)
        self._module_agents[app_agent_name] = agent
        return agent

    def close_all(self) -> None:
        """Stop separate-process agents and empty the agent cache."""
        agents, self._module_agents = self._module_agents, {}
        for name, agent in agents.items():
            close = getattr(agent, "close", None)
            if callable(close):
                logger.debug(f"Closing agent {name}")
                close()


def get_agent_loader() -> AgentLoader:
    """Get the global AgentLoader instance."""
    return AgentLoader.get_instance()


def get_app_agent_configs() -> dict[str, dict]:
    return get_agent_loader().get_app_agent_configs()


def get_module_agent(app_agent_name: str) -> Any:
    return get_agent_loader().get_module_agent(app_agent_name)


def close_module_agents() -> None:
    get_agent_loader().close_all()
