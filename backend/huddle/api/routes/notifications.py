"""
WebSocket endpoint streaming join-workflow notifications.

Clients connect with ``?token=<jwt>`` and receive frames shaped
``{"event": "<name>", "data": {...}}``. Inbound messages are ignored
apart from keeping the connection alive.
"""

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from huddle.core.logging import get_logger
from huddle.core.security import decode_access_token
from huddle.infrastructure.websocket_hub import get_connection_hub

logger = get_logger(__name__)
router = APIRouter(prefix="/ws", tags=["Notifications"])


@router.websocket("/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query("")):
    user_id = decode_access_token(token) if token else None
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        logger.warning("websocket_rejected", reason="invalid_token")
        return

    await websocket.accept()
    hub = get_connection_hub()
    await hub.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(user_id, websocket)
