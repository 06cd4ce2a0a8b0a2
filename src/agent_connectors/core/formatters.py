"""Display formatters for action results."""

import html

from .models import ActionResult


def render_notice(text: str) -> str:
    """Render plain text as an HTML display fragment."""
    return f"<div>{html.escape(text)}</div>"


def create_action_result_from_html_display(display: str) -> ActionResult:
    """Wrap an already rendered HTML fragment."""
    return ActionResult(display_content=display)


def create_action_result_from_text(text: str) -> ActionResult:
    """Render a success notice."""
    return create_action_result_from_html_display(render_notice(text))


def create_action_result_from_error(message: str) -> ActionResult:
    """Render an error notice."""
    return ActionResult(error=message)
