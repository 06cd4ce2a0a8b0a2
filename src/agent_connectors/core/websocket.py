"""Keep-alive WebSocket helper."""

import asyncio
import json
import logging
from typing import Any, Optional

import websockets
from websockets.protocol import State

logger = logging.getLogger(__name__)

DEFAULT_WEBSOCKET_URL = "ws://localhost:8080/"

# Seconds between keep-alive messages
KEEP_ALIVE_INTERVAL = 20.0


def build_keep_alive_message(source: str) -> str:
    """Build the keep-alive frame sent on behalf of ``source``."""
    return json.dumps(
        {
            "source": source,
            "target": "none",
            "messageType": "keepAlive",
            "body": {},
        }
    )


def is_open(websocket: Any) -> bool:
    """Check whether the connection is open."""
    return websocket is not None and websocket.state is State.OPEN


async def create_websocket(url: str = DEFAULT_WEBSOCKET_URL) -> Optional[Any]:
    """Open a WebSocket connection.

    Returns:
        The open connection, or None if it could not be established
    """
    try:
        websocket = await websockets.connect(url)
    except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as e:
        logger.error(f"WebSocket error connecting to {url}: {e}")
        return None

    logger.info(f"WebSocket open: {url}")
    return websocket


async def _keep_alive_loop(websocket: Any, source: str, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        if not is_open(websocket):
            logger.info("Clearing keep-alive loop, connection closed")
            return
        try:
            await websocket.send(build_keep_alive_message(source))
        except websockets.ConnectionClosed:
            logger.info("WebSocket connection closed")
            return


def keep_websocket_alive(
    websocket: Any,
    source: str,
    interval: float = KEEP_ALIVE_INTERVAL,
) -> asyncio.Task:
    """Send a keep-alive message every ``interval`` seconds while open.

    Args:
        websocket: Open connection from create_websocket
        source: Name sent as the message source
        interval: Seconds between messages

    Returns:
        The background task; it finishes once the connection is closed
    """
    return asyncio.create_task(
        _keep_alive_loop(websocket, source, interval),
        name=f"keepalive-{source}",
    )
