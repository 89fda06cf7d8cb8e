"""WebSocket connection management for control surfaces."""
from .connection_manager import ConnectionManager
from .control_endpoint import control_websocket_endpoint
from .push import tick_broadcaster, tick_message

__all__ = [
    'ConnectionManager',
    'control_websocket_endpoint',
    'tick_broadcaster',
    'tick_message',
]
