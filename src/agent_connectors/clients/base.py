"""
Base platform client interface.

All platform clients (Slack, Discord, Teams) inherit from this and wrap
one vendor handle. The handle is injectable so clients can be exercised
against a fake with the same surface.

Clients never raise transport errors: failures are logged and reported
as False / None.
"""

from abc import ABC, abstractmethod


class PlatformClient(ABC):
    """Authenticated session with one messaging platform."""

    platform: str = "generic"

    @property
    def name(self) -> str:
        """Human-readable name for this client."""
        return self.platform.title()

    @abstractmethod
    def is_initialized(self) -> bool:
        """True when the client holds a usable credential or session."""
        pass

    @abstractmethod
    async def initialize(self, force_login: bool = False) -> bool:
        """
        Establish an authenticated session.

        Returns True if authentication succeeded. Errors are logged, not raised.
        """
        pass

    @abstractmethod
    async def send_message(self, *args, **kwargs) -> bool:
        """Send a message. Returns False on any failure."""
        pass

    @abstractmethod
    async def create_channel(self, *args, **kwargs) -> bool:
        """Create a channel or conversation. Returns False on any failure."""
        pass

    async def close(self) -> None:
        """
        Release the vendor session.

        Override in subclasses that hold network resources.
        """
        pass
