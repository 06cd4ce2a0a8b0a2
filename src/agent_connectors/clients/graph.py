"""
Microsoft Graph session.

Holds the delegated user token and issues Graph v1.0 requests over httpx.
Interactive login uses the OAuth2 device-code flow; a pre-issued token can
be supplied instead through ``MSGRAPH_ACCESS_TOKEN``.
"""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from ..core.config import get_env
from ..core.exceptions import GraphAuthError, GraphError

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"
LOGIN_BASE = "https://login.microsoftonline.com"
DEFAULT_TENANT = "organizations"
DEFAULT_SCOPES = [
    "User.Read",
    "User.ReadBasic.All",
    "Chat.ReadWrite",
    "ChatMessage.Send",
    "offline_access",
]

# Refresh the access token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60.0
DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"


class GraphClient:
    """Authenticated Microsoft Graph session."""

    def __init__(
        self,
        client_id: str = "",
        tenant_id: str = "",
        scopes: Optional[list[str]] = None,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the session.

        Args:
            client_id: Azure AD application (client) ID
            tenant_id: Azure AD tenant ID (default: organizations)
            scopes: Delegated permission scopes
            access_token: Pre-issued access token
            http_client: httpx client to use (default: new AsyncClient)
        """
        self.client_id = client_id
        self.tenant_id = tenant_id or DEFAULT_TENANT
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self.http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)

        self._access_token: Optional[str] = access_token or None
        self._refresh_token: Optional[str] = None
        # Pre-issued tokens carry no expiry we can see
        self._expires_at: Optional[float] = None

    @property
    def authority(self) -> str:
        return f"{LOGIN_BASE}/{self.tenant_id}/oauth2/v2.0"

    def get_client(self) -> Optional[httpx.AsyncClient]:
        """The HTTP client, or None until a user has authenticated."""
        return self.http if self._access_token else None

    def _store_token(self, payload: dict) -> None:
        self._access_token = payload["access_token"]
        self._refresh_token = payload.get("refresh_token", self._refresh_token)
        expires_in = payload.get("expires_in")
        self._expires_at = time.monotonic() + float(expires_in) if expires_in else None

    def _token_expired(self) -> bool:
        if self._expires_at is None:
            return False
        return time.monotonic() >= self._expires_at - TOKEN_EXPIRY_MARGIN

    async def _post_form(self, endpoint: str, data: dict) -> httpx.Response:
        return await self.http.post(f"{self.authority}/{endpoint}", data=data)

    async def authenticate_user(self) -> None:
        """Sign a user in with the device-code flow.

        The verification URL and code are written to the log; the call
        returns once the user has completed sign-in.

        Raises:
            GraphAuthError: If the flow is declined, expires or fails
        """
        if not self.client_id:
            raise GraphAuthError("MSGRAPH_APP_CLIENTID is not set")

        response = await self._post_form(
            "devicecode",
            {"client_id": self.client_id, "scope": " ".join(self.scopes)},
        )
        if response.status_code >= 400:
            raise GraphAuthError(
                f"Device code request failed: HTTP {response.status_code}: {response.text[:200]}",
                response.status_code,
            )

        flow = response.json()
        logger.warning(flow.get("message") or f"Sign in at {flow.get('verification_uri')}")

        interval = float(flow.get("interval", 5))
        deadline = time.monotonic() + float(flow.get("expires_in", 900))

        while time.monotonic() < deadline:
            await asyncio.sleep(interval)
            response = await self._post_form(
                "token",
                {
                    "grant_type": DEVICE_CODE_GRANT,
                    "client_id": self.client_id,
                    "device_code": flow["device_code"],
                },
            )
            payload = response.json()
            if response.status_code < 400 and "access_token" in payload:
                self._store_token(payload)
                logger.info("Graph client authenticated successfully")
                return

            error = payload.get("error")
            if error == "authorization_pending":
                continue
            if error == "slow_down":
                interval += 5
                continue
            raise GraphAuthError(
                f"Device code login failed: {error}: {payload.get('error_description', '')}",
                response.status_code,
            )

        raise GraphAuthError("Device code login expired")

    async def refresh(self) -> None:
        """Exchange the refresh token for a new access token.

        Raises:
            GraphAuthError: If there is no refresh token or the exchange fails
        """
        if not self._refresh_token:
            raise GraphAuthError("No refresh token available")

        response = await self._post_form(
            "token",
            {
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "refresh_token": self._refresh_token,
                "scope": " ".join(self.scopes),
            },
        )
        payload = response.json()
        if response.status_code >= 400 or "access_token" not in payload:
            raise GraphAuthError(
                f"Token refresh failed: {payload.get('error', response.status_code)}",
                response.status_code,
            )
        self._store_token(payload)

    async def ensure_token_is_valid(self, interactive: bool = True) -> None:
        """Make sure a current access token is held.

        An expired token is refreshed. When that is not possible a user
        sign-in is started, unless ``interactive`` is False.

        Raises:
            GraphAuthError: If no valid token could be obtained
        """
        if self._access_token and not self._token_expired():
            return

        if self._access_token and self._refresh_token:
            try:
                await self.refresh()
                return
            except GraphAuthError as e:
                if not interactive:
                    raise
                logger.warning(f"Graph token refresh failed, signing in again: {e}")

        if not interactive:
            raise GraphAuthError("Graph sign-in required")
        await self.authenticate_user()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict:
        """Issue a Graph request and return the decoded JSON body.

        Raises:
            GraphError: On HTTP errors, or if no user is signed in
        """
        if not self._access_token:
            raise GraphAuthError("Graph client is not authenticated")

        response = await self.http.request(
            method,
            f"{GRAPH_API_BASE}{path}",
            params=params,
            json=json,
            headers={"Authorization": f"Bearer {self._access_token}"},
        )
        if response.status_code >= 400:
            raise GraphError(
                f"Graph {method} {path} failed: HTTP {response.status_code}: {response.text[:200]}",
                response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any]) -> dict:
        return await self.request("POST", path, json=json)

    async def close(self) -> None:
        await self.http.aclose()


def create_graph_client() -> GraphClient:
    """Create a Graph session from ``MSGRAPH_*`` environment variables."""
    return GraphClient(
        client_id=get_env("MSGRAPH_APP_CLIENTID"),
        tenant_id=get_env("MSGRAPH_APP_TENANTID"),
        access_token=get_env("MSGRAPH_ACCESS_TOKEN") or None,
    )
