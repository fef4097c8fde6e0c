import json
import logging
from typing import Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Open trace views, grouped by trace id."""

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, trace_id: str):
        await websocket.accept()
        conns = self.active_connections.setdefault(trace_id, [])
        conns.append(websocket)

    def disconnect(self, websocket: WebSocket, trace_id: str):
        conns = self.active_connections.get(trace_id)
        if not conns:
            return
        try:
            conns.remove(websocket)
        except ValueError:
            logger.warning("WebSocket %s not found in connections for trace %s", websocket, trace_id)
            return
        if not conns:
            del self.active_connections[trace_id]

    async def broadcast(self, trace_id: str, message: dict, exclude: WebSocket | None = None):
        # No open views of this trace
        if trace_id not in self.active_connections:
            return
        text = json.dumps(message, ensure_ascii=False)
        for connection in list(self.active_connections[trace_id]):
            if connection != exclude:
                try:
                    await connection.send_text(text)
                except Exception as e:
                    logger.warning("Error sending message to %s: %s", connection, e)
                    self.disconnect(connection, trace_id)


manager = ConnectionManager()
