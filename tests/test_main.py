"""Tests for the command line entry point."""

import pytest

from agent_connectors import main as cli
from agent_connectors.core.exceptions import AgentLoadError
from agent_connectors.core.formatters import (
    create_action_result_from_error,
    create_action_result_from_text,
)


def test_run_requires_arguments(capsys):
    """Test usage is printed when arguments are missing."""
    assert cli.handle_run_command(["slack"]) == 1
    assert "Usage" in capsys.readouterr().out


def test_run_rejects_invalid_json(capsys):
    """Test invalid action JSON."""
    assert cli.handle_run_command(["slack", "{not json"]) == 1
    assert "not valid JSON" in capsys.readouterr().out


def test_run_unknown_agent(monkeypatch, capsys):
    """Test load errors exit with status 1."""

    def fail(name):
        raise AgentLoadError(f"Unable to load app agent name: {name}")

    monkeypatch.setattr(cli, "get_module_agent", fail)
    assert cli.handle_run_command(["calendar", '{"actionName": "x"}']) == 1
    assert "calendar" in capsys.readouterr().out


@pytest.mark.parametrize(
    "result, code",
    [
        (create_action_result_from_text("Channel created successfully."), 0),
        (create_action_result_from_error("Error encountered when creating channel!"), 1),
        (None, 0),
    ],
)
def test_print_result(result, code, capsys):
    """Test exit codes for results."""
    assert cli.print_result(result) == code


def test_agents_command(monkeypatch, capsys):
    """Test agents are listed with their descriptions."""
    monkeypatch.setattr(
        cli,
        "get_app_agent_configs",
        lambda: {"slack": {"emoji_char": "💬", "description": "Slack agent"}},
    )
    assert cli.handle_agents_command() == 0
    assert "Slack agent" in capsys.readouterr().out


def test_run_closes_agents(monkeypatch, capsys):
    """Test loaded agents are closed even when the action fails."""
    closed = []

    def fail(name):
        raise AgentLoadError(f"Unable to load app agent name: {name}")

    monkeypatch.setattr(cli, "get_module_agent", fail)
    monkeypatch.setattr(cli, "close_module_agents", lambda: closed.append(True))

    cli.handle_run_command(["slack", '{"actionName": "sendMessageInSlack"}'])

    assert closed == [True]
