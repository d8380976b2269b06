"""
Notification dispatch for the join workflow.

Emission is best effort: it runs after the roster change is committed and
any exception it raises is logged and counted, never propagated. A broken
socket must not turn a successful join into a failed request.
"""

from typing import Any

from huddle.core.config import get_settings
from huddle.core.logging import get_logger
from huddle.core.metrics import notification_failures
from huddle.infrastructure.websocket_hub import get_connection_hub
from huddle.services.interfaces.notifier import NotificationEmitter
from huddle.services.interfaces.null_notifier import NullNotifier

logger = get_logger(__name__)

PARTICIPANT_JOINED = "participant_joined"
PARTICIPANT_LEFT = "participant_left"
JOIN_REQUEST_CREATED = "join_request_created"
JOIN_REQUEST_APPROVED = "join_request_approved"
JOIN_REQUEST_REJECTED = "join_request_rejected"


def get_notifier() -> NotificationEmitter:
    """
    FastAPI dependency returning the configured emitter.
    Override in tests with a recording emitter.
    """
    if not get_settings().NOTIFICATIONS_ENABLED:
        return NullNotifier()
    return get_connection_hub()


async def notify(notifier: NotificationEmitter, event_name: str, payload: dict[str, Any]) -> None:
    try:
        await notifier.emit(event_name, payload)
    except Exception as e:
        notification_failures.labels(event_name=event_name).inc()
        logger.warning("notification_emit_failed", event_name=event_name, error=str(e))
