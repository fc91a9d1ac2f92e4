import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from mindmate.core.errors import AuthenticationFailure
from mindmate.services.relay import channels, relay_core
from mindmate.services.relay.core import CONNECTED
from mindmate.services.relay.gateway import authenticate_connection

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def relay_websocket(websocket: WebSocket):
    # Authenticate before accept so a rejected client never gets a session
    try:
        identity = authenticate_connection(websocket)
    except AuthenticationFailure as e:
        logger.info(f"Relay handshake rejected: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e))
        return

    await websocket.accept()
    channels.join(identity, websocket)
    logger.info(f"User connected: {identity}")

    try:
        await websocket.send_json({"event": CONNECTED, "data": {"identity": identity}})

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                logger.debug(f"Dropping binary frame from {identity}")
                continue
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug(f"Dropping undecodable frame from {identity}")
                continue

            # Handled one at a time so a connection's sends keep their order
            await relay_core.dispatch(identity, frame)

    except WebSocketDisconnect:
        pass
    finally:
        channels.leave(identity, websocket)
        logger.info(f"User disconnected: {identity}")
