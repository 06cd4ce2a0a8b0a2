"""Dispatcher-side agent loading."""

from .agent_config import (
    AgentLoader,
    ExecutionMode,
    close_module_agents,
    get_agent_loader,
    get_app_agent_configs,
    get_module_agent,
    load_module_config,
    patch_paths,
)
from .process_shim import AgentProcessShim, create_agent_process_shim

__all__ = [
    "AgentLoader",
    "ExecutionMode",
    "close_module_agents",
    "get_agent_loader",
    "get_app_agent_configs",
    "get_module_agent",
    "load_module_config",
    "patch_paths",
    "AgentProcessShim",
    "create_agent_process_shim",
]
