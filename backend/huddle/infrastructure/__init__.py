"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .websocket_hub import ConnectionHub, get_connection_hub

__all__ = ['ConnectionHub', 'get_connection_hub']
