"""
In-process registry of live WebSocket connections.

Every emitted notification is broadcast to all connected clients, which
filter on the ids carried in the payload (organizerId, userId, ...). A
client that fails to receive, or does not receive within the send timeout,
is dropped from the registry. Sends to all clients run concurrently.
"""

import asyncio
from typing import Any, Optional

from fastapi import WebSocket

from huddle.core.logging import get_logger
from huddle.core.metrics import notifications_sent
from huddle.services.interfaces.notifier import NotificationEmitter

logger = get_logger(__name__)

# A client slower than this is treated as gone
SEND_TIMEOUT_SECONDS = 2.0


class ConnectionHub(NotificationEmitter):
    def __init__(self, send_timeout: float = SEND_TIMEOUT_SECONDS) -> None:
        self._send_timeout = send_timeout
        self._connections: dict[int, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(websocket)
        logger.info("websocket_connected", user_id=user_id, connections=self.connection_count)

    async def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(user_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                self._connections.pop(user_id, None)
        logger.info("websocket_disconnected", user_id=user_id, connections=self.connection_count)

    @property
    def connection_count(self) -> int:
        return sum(len(sockets) for sockets in self._connections.values())

    async def _send(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        await asyncio.wait_for(websocket.send_json(message), timeout=self._send_timeout)

    async def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        async with self._lock:
            targets = [
                (user_id, websocket)
                for user_id, sockets in self._connections.items()
                for websocket in sockets
            ]

        message = {"event": event_name, "data": payload}
        results = await asyncio.gather(
            *(self._send(websocket, message) for _, websocket in targets),
            return_exceptions=True,
        )

        stale = 0
        for (user_id, websocket), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "websocket_send_failed",
                    user_id=user_id,
                    error=str(result) or type(result).__name__,
                )
                await self.disconnect(user_id, websocket)
                stale += 1

        notifications_sent.labels(event_name=event_name).inc()
        logger.debug("notification_broadcast", event_name=event_name, recipients=len(targets) - stale)


_hub: Optional[ConnectionHub] = None


def get_connection_hub() -> ConnectionHub:
    """Get the process-wide connection hub."""
    global _hub
    if _hub is None:
        _hub = ConnectionHub()
    return _hub
