# smartq/backend/app/events.py
import logging
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class EventHub:
    """Fan-out of live events to every connected staff WebSocket."""

    def __init__(self):
        self._sockets: Set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._sockets)

    def register(self, websocket: WebSocket) -> None:
        self._sockets.add(websocket)

    def unregister(self, websocket: WebSocket) -> None:
        self._sockets.discard(websocket)

    async def broadcast(self, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        message = {"event": event, "data": data or {}}
        for websocket in list(self._sockets):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                # Socket went away between register and send
                logger.info("Dropping event socket: %s", exc)
                self.unregister(websocket)
