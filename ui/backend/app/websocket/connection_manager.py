"""Registry of control clients connected to /ws/control."""
import logging
import uuid
from typing import Any, Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Control clients (extension popup, scripts) keyed by a generated client id.

    Sends go through the manager so a client whose socket is gone is dropped
    the first time a message to it fails.
    """

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}

    def connect(self, websocket: WebSocket) -> str:
        """Register an accepted WebSocket and return its client id (a UUID string)."""
        client_id = str(uuid.uuid4())
        self.active_connections[client_id] = websocket
        return client_id

    def disconnect(self, client_id: str) -> None:
        self.active_connections.pop(client_id, None)

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)

    @property
    def client_ids(self) -> List[str]:
        return list(self.active_connections)

    async def send(self, client_id: str, message: Dict[str, Any]) -> bool:
        """
        Send one JSON message to one client.

        Returns:
            False if the client is unknown or the send failed (the client is dropped)
        """
        websocket = self.active_connections.get(client_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.info(f"Dropping control client {client_id}: {e}")
            self.disconnect(client_id)
            return False
        return True

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """
        Send ``message`` to every connected client.

        Returns:
            Number of clients that received it
        """
        delivered = 0
        for client_id in self.client_ids:
            if await self.send(client_id, message):
                delivered += 1
        return delivered
