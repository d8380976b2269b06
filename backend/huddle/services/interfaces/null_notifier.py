"""
No-op notification emitter, used when real-time notifications are disabled.
"""

from typing import Any

from huddle.services.interfaces.notifier import NotificationEmitter


class NullNotifier(NotificationEmitter):
    """Drop every notification."""

    async def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        pass
