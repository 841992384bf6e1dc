# smartq/backend/app/api/v1/events.py
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...auth import user_from_token
from ...db import SessionLocal
from ...errors import AuthError

logger = logging.getLogger(__name__)

ws_router = APIRouter()


@ws_router.websocket("/ws/events")
async def ws_events(websocket: WebSocket):
    await websocket.accept()

    token = websocket.query_params.get("token") or ""
    if not token:
        auth = websocket.headers.get("authorization") or ""
        if auth.lower().startswith("bearer "):
            token = auth.split(" ", 1)[1].strip()

    db = SessionLocal()
    try:
        if not token:
            raise AuthError("Access token required", status_code=401)
        user = user_from_token(db, token)
    except AuthError as exc:
        await websocket.send_json({"error": exc.message})
        await websocket.close(code=1008)
        return
    finally:
        db.close()

    hub = websocket.app.state.events
    hub.register(websocket)
    logger.info("Event socket opened for '%s'", user.username)
    await websocket.send_json({"event": "ready", "data": {"username": user.username}})
    try:
        # Nothing is expected from the client; this only waits for the close
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.unregister(websocket)
