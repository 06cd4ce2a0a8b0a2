"""Helpers for reading action parameters."""

from typing import Any

from ..core.exceptions import ActionParameterError


def require_str(parameters: dict[str, Any], key: str) -> str:
    """Read a required, non-empty string parameter."""
    value = parameters.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ActionParameterError(f"'{key}' must be a non-empty string")
    return value


def optional_bool(parameters: dict[str, Any], key: str, default: bool = False) -> bool:
    """Read an optional boolean parameter."""
    value = parameters.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ActionParameterError(f"'{key}' must be a boolean")
    return value


def optional_list(parameters: dict[str, Any], key: str) -> list:
    """Read an optional list parameter (missing or null means empty)."""
    value = parameters.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ActionParameterError(f"'{key}' must be a list")
    return value
