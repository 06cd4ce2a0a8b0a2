"""Microsoft Teams platform client (Graph chats)."""

import asyncio
import base64
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..core.models import FileAttachment
from .base import PlatformClient
from .graph import GRAPH_API_BASE, GraphClient, create_graph_client

logger = logging.getLogger(__name__)

CONVERSATION_MEMBER_TYPE = "#microsoft.graph.aadUserConversationMember"
FILE_ATTACHMENT_TYPE = "#microsoft.graph.fileAttachment"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
GROUP_CHAT_TOPIC = "Group Conversation"


def odata_quote(value: str) -> str:
    """Quote a string literal for an OData $filter expression."""
    return "'" + value.replace("'", "''") + "'"


def build_chat_member(user_id: str) -> dict:
    """Chat member entry granting ``user_id`` the owner role."""
    return {
        "@odata.type": CONVERSATION_MEMBER_TYPE,
        "roles": ["owner"],
        "user@odata.bind": f"{GRAPH_API_BASE}/users('{user_id}')",
    }


class TeamsClient(PlatformClient):
    """Teams chat client over Microsoft Graph."""

    platform = "teams"

    def __init__(
        self,
        graph_client: Optional[GraphClient] = None,
        graph_factory: Callable[[], GraphClient] = create_graph_client,
    ):
        """Initialize the client.

        Args:
            graph_client: Existing Graph session
            graph_factory: Builds the Graph session on first initialize
        """
        self.graph_client = graph_client
        self._graph_factory = graph_factory

    def is_initialized(self) -> bool:
        """True when a Graph session exists and a user is signed in."""
        return self.graph_client is not None and self.graph_client.get_client() is not None

    async def initialize(self, force_login: bool = False) -> bool:
        """Sign in to Microsoft Graph.

        The Graph session is created on the first call. Later calls only
        refresh the sign-in when ``force_login`` is set. A forced login that
        fails is retried once.
        """
        if self.graph_client is None:
            self.graph_client = self._graph_factory()
        elif not force_login:
            return self.is_initialized()

        attempts = 2 if force_login else 1
        for attempt in range(attempts):
            try:
                await self.graph_client.ensure_token_is_valid()
                return True
            except Exception as e:
                logger.error(f"Graph login failed (attempt {attempt + 1}/{attempts}): {e}")
        return False

    async def _ensure_token(self) -> bool:
        # Sign-in is left to initialize(); API calls only refresh
        if self.graph_client is None:
            return False
        try:
            await self.graph_client.ensure_token_is_valid(interactive=False)
        except Exception as e:
            logger.error(f"Graph token is not valid: {e}")
            return False
        return True

    async def get_caller_id(self) -> Optional[str]:
        """ID of the signed-in user, or None."""
        if not await self._ensure_token():
            return None

        try:
            response = await self.graph_client.get("/me", params={"$select": "id"})
        except Exception as e:
            logger.error(f"Error retrieving caller ID: {e}")
            return None
        return response.get("id")

    async def find_user_ids_by_names(self, names: Sequence[str]) -> list[str]:
        """Resolve friendly names to user IDs.

        Each name is a prefix match on display name or given name; the first
        hit wins. Names without a match are logged and skipped, so the result
        can be shorter than ``names``.
        """
        if not await self._ensure_token():
            return []

        user_ids: list[str] = []
        for name in names:
            quoted = odata_quote(name)
            params = {
                "$filter": f"startswith(displayName, {quoted}) or startswith(givenName, {quoted})",
                "$select": "id",
                "$top": "1",
            }
            try:
                users = await self.graph_client.get("/users", params=params)
            except Exception as e:
                logger.error(f"Error finding user by name ({name}): {e}")
                continue

            matches = users.get("value") or []
            if matches:
                user_ids.append(matches[0]["id"])
            else:
                logger.warning(f"No user found with name: {name}")

        return user_ids

    async def _find_chat(self, chat_type: str, member_ids: Sequence[str]) -> Optional[str]:
        """First existing chat of ``chat_type`` whose members include all of ``member_ids``.

        Members beyond ``member_ids`` do not prevent a match.
        """
        existing = await self.graph_client.get(
            "/me/chats",
            params={"$filter": f"chatType eq '{chat_type}'", "$expand": "members"},
        )
        for chat in existing.get("value") or []:
            chat_members = {m.get("userId") for m in chat.get("members") or []}
            if all(user_id in chat_members for user_id in member_ids):
                return chat["id"]
        return None

    async def create_or_find_conversation(
        self, caller_id: str, user_ids: Sequence[str]
    ) -> Optional[str]:
        """Find or create a group chat with the caller and ``user_ids``.

        Returns:
            Chat ID, or None on failure
        """
        if not await self._ensure_token():
            return None

        all_user_ids = [caller_id, *user_ids]
        try:
            chat_id = await self._find_chat("group", all_user_ids)
            if chat_id:
                logger.info("Found existing group conversation with specified users.")
                return chat_id

            payload = {
                "chatType": "group",
                "members": [build_chat_member(user_id) for user_id in all_user_ids],
                "topic": GROUP_CHAT_TOPIC,
            }
            new_chat = await self.graph_client.post("/chats", json=payload)
            if new_chat.get("id"):
                logger.info("Created new group conversation with specified users.")
                return new_chat["id"]
        except Exception as e:
            logger.error(f"Error creating or finding group conversation: {e}")

        return None

    async def create_or_find_1on1_chat(self, caller_id: str, other_user_id: str) -> Optional[str]:
        """Find or create a one-on-one chat between the caller and another user.

        Returns:
            Chat ID, or None on failure
        """
        if not await self._ensure_token():
            return None

        try:
            chat_id = await self._find_chat("oneOnOne", [caller_id, other_user_id])
            if chat_id:
                logger.info(f"Found existing 1-on-1 chat with user ID {other_user_id}.")
                return chat_id

            payload = {
                "chatType": "oneOnOne",
                "members": [build_chat_member(caller_id), build_chat_member(other_user_id)],
            }
            chat = await self.graph_client.post("/chats", json=payload)
            if chat.get("id"):
                logger.info(f"1-on-1 chat created with user ID {other_user_id}")
                return chat["id"]
        except Exception as e:
            logger.error(f"Error creating 1-on-1 chat: {e}")

        return None

    async def create_channel(self, caller_id: str, user_ids: Sequence[str]) -> bool:
        """Make sure a chat exists with the caller and ``user_ids``.

        One user means a one-on-one chat, several a group chat. A chat with
        the caller alone is never created.
        """
        if not user_ids:
            logger.error("Cannot create a chat without other members")
            return False

        if len(user_ids) == 1:
            chat_id = await self.create_or_find_1on1_chat(caller_id, user_ids[0])
        else:
            chat_id = await self.create_or_find_conversation(caller_id, user_ids)
        return chat_id is not None

    async def _prepare_attachment(self, attachment: FileAttachment) -> Optional[dict]:
        try:
            path = Path(attachment.file_path).resolve()
            content = await asyncio.to_thread(path.read_bytes)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading file {attachment.file_path!r}: {e}")
            return None

        return {
            "@odata.type": FILE_ATTACHMENT_TYPE,
            "contentBytes": base64.b64encode(content).decode("ascii"),
            "contentType": attachment.content_type or DEFAULT_CONTENT_TYPE,
            "name": attachment.name,
        }

    async def send_message(
        self,
        chat_ids: Sequence[str],
        content: str,
        attachments: Sequence[FileAttachment] = (),
    ) -> bool:
        """Send a message to each chat in turn.

        Attachments are read concurrently before any send; unreadable files
        are dropped. A failed send does not stop the remaining ones, and
        messages already delivered stay delivered.

        Returns:
            True only if every send succeeded
        """
        if not await self._ensure_token():
            return False

        prepared = await asyncio.gather(*(self._prepare_attachment(a) for a in attachments))
        valid_attachments = [a for a in prepared if a is not None]

        all_sent = True
        for chat_id in chat_ids:
            payload = {
                "body": {"content": content},
                "attachments": valid_attachments,
            }
            try:
                await self.graph_client.post(f"/chats/{chat_id}/messages", json=payload)
                logger.info(f"Message sent successfully to chat {chat_id}")
            except Exception as e:
                logger.error(f"Error sending message to chat {chat_id}: {e}")
                all_sent = False

        return all_sent

    async def close(self) -> None:
        if self.graph_client is not None:
            await self.graph_client.close()


def create_teams_client() -> TeamsClient:
    """Create a Teams client; the Graph session is built on first login."""
    return TeamsClient()
