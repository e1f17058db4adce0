"""
Registry of authenticated WebSocket connections, one per user.
"""

import logging
import threading
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Maps user ids to their open WebSocket and pushes frames to them."""

    def __init__(self):
        self._connections: Dict[int, WebSocket] = {}
        self._lock = threading.Lock()

    def connect(self, user_id: int, websocket: WebSocket) -> None:
        # A newer connection replaces the previous one for the same user
        with self._lock:
            self._connections[user_id] = websocket
        logger.info(f"WebSocket authenticated for user {user_id} ({len(self._connections)} connected)")

    def disconnect(self, websocket: WebSocket) -> Optional[int]:
        with self._lock:
            for user_id, connection in list(self._connections.items()):
                if connection is websocket:
                    del self._connections[user_id]
                    logger.info(f"WebSocket closed for user {user_id}")
                    return user_id
        return None

    def get(self, user_id: int) -> Optional[WebSocket]:
        return self._connections.get(user_id)

    def is_connected(self, user_id: int) -> bool:
        return user_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def send_to_user(self, user_id: int, payload: Dict[str, Any]) -> bool:
        """Send a JSON frame if the user is connected. Returns True when delivered."""
        websocket = self.get(user_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(payload)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning(f"Dropping stale WebSocket for user {user_id}: {e}")
            self.disconnect(websocket)
            return False


manager = ConnectionManager()
