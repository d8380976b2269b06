"""
Notification emitter interface.
The join workflow receives an emitter instead of reaching for a global
socket registry, so tests can swap in a recording or no-op implementation.
"""

from abc import ABC, abstractmethod
from typing import Any


class NotificationEmitter(ABC):
    """
    Fire-and-forget broadcaster for join-workflow state transitions.

    Implementations:
    - ConnectionHub: pushes to connected WebSocket clients
    - NullNotifier: drops everything (notifications disabled)
    """

    @abstractmethod
    async def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """
        Broadcast a notification.

        Args:
            event_name: e.g. "participant_joined", "join_request_created"
            payload: JSON-serializable body with camelCase keys
        """
        pass
