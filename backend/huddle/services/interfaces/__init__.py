"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import NotificationEmitter
from .null_notifier import NullNotifier

__all__ = ['NotificationEmitter', 'NullNotifier']
