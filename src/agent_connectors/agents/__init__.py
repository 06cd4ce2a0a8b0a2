"""Agents: action schemas and handlers per messaging platform."""

from .base import (
    AppAgent,
    ClientLoginCommandHandler,
    CommandHandler,
    CommandHandlerTable,
    PlatformActionContext,
    PlatformAgent,
)

__all__ = [
    "AppAgent",
    "ClientLoginCommandHandler",
    "CommandHandler",
    "CommandHandlerTable",
    "PlatformActionContext",
    "PlatformAgent",
]
