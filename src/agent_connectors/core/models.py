"""Data models shared by agents, clients and the dispatcher."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .exceptions import ActionParameterError


@dataclass(frozen=True)
class AppAction:
    """A tagged request for an agent: ``{"actionName": ..., "parameters": {...}}``."""

    action_name: str
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AppAction":
        """Build an action from the dispatcher's wire shape."""
        if not isinstance(data, dict):
            raise ActionParameterError(f"Action must be an object, got {type(data).__name__}")
        parameters = data.get("parameters") or {}
        if not isinstance(parameters, dict):
            raise ActionParameterError("Action parameters must be an object")
        return cls(action_name=data.get("actionName", ""), parameters=dict(parameters))

    def to_dict(self) -> dict:
        """Convert to the dispatcher's wire shape."""
        return {"actionName": self.action_name, "parameters": dict(self.parameters)}


@dataclass
class ActionResult:
    """Outcome of an action: a rendered display fragment or an error."""

    display_content: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        if self.error is not None:
            return {"error": self.error}
        return {"displayContent": self.display_content}


@dataclass
class SessionContext:
    """Per-session state handed to an agent by the dispatcher."""

    agent_context: Any = None


@dataclass
class ActionContext:
    """Context for a single action or command execution."""

    session_context: SessionContext

    @property
    def agent_context(self) -> Any:
        return self.session_context.agent_context


@dataclass(frozen=True)
class FileAttachment:
    """A local file to upload alongside a message."""

    file_path: str
    content_type: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def name(self) -> str:
        """Attachment name, defaulting to the file's basename."""
        return self.file_name or Path(self.file_path).name

    @classmethod
    def from_dict(cls, data: Any) -> "FileAttachment":
        """Parse ``{"filePath", "contentType"?, "fileName"?}``.

        Raises:
            ActionParameterError: If the record is not a file attachment
        """
        if not isinstance(data, dict):
            raise ActionParameterError(f"Attachment must be an object, got {type(data).__name__}")

        file_path = data.get("filePath")
        if not isinstance(file_path, str) or not file_path:
            raise ActionParameterError("Attachment missing filePath")

        content_type = data.get("contentType")
        file_name = data.get("fileName")
        return cls(
            file_path=file_path,
            content_type=content_type if isinstance(content_type, str) else None,
            file_name=file_name if isinstance(file_name, str) else None,
        )
