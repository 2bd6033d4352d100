# ispdesk/core/websockets.py
import logging
from typing import List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Dashboard websocket clients. Mutating routes broadcast change events here."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast_event(self, event_type: str, data: dict = None):
        """
        Sends `{"type": event_type, **data}` to every connected client.
        Clients that fail to receive are dropped.
        """
        payload = {"type": event_type}
        if data:
            payload.update(data)

        # Copy: disconnect() mutates the list
        for connection in self.active_connections[:]:
            try:
                await connection.send_json(payload)
            except Exception as e:
                logger.debug(f"Dropping websocket client: {e}")
                self.disconnect(connection)


manager = ConnectionManager()
