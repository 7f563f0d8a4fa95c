import anyio
from fastapi import APIRouter, WebSocket
from pydantic import ValidationError

from constants import MAX_FRAME_SIZE
from lifecycle import ConnectionManager
from schemas.events import Envelope
from logging_config import get_logger

logger = get_logger(__name__)

signaling_router = APIRouter(tags=["signaling"])


@signaling_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Realtime channel. Frames are JSON objects `{"event": ..., "data": ...}`."""
    manager: ConnectionManager = websocket.app.state.manager
    allowed_origins = websocket.app.state.allowed_origins

    origin = websocket.headers.get("origin")
    if origin and origin not in allowed_origins:
        logger.warning(f"WebSocket connection rejected: origin {origin} not allowed")
        await websocket.close(code=1008, reason="Origin not allowed")
        return

    await websocket.accept()
    connection = await manager.connect(websocket)

    try:
        message_count = 0
        while connection.is_open:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {connection.id} (code={message.get('code')})")
                connection.transport_closed = True
                break

            data = message.get("text")
            if data is None:
                logger.warning(f"Dropping binary frame from connection {connection.id}")
                continue
            if len(data) > MAX_FRAME_SIZE:
                logger.warning(f"Dropping oversized frame ({len(data)} chars) from connection {connection.id}")
                continue

            message_count += 1
            try:
                envelope = Envelope.model_validate_json(data)
            except ValidationError:
                logger.warning(f"Dropping malformed frame #{message_count} from connection {connection.id}")
                continue

            logger.debug(f"Received {envelope.event} (#{message_count}) from connection {connection.id}")
            await manager.dispatch(connection, envelope.event, envelope.data)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.id}: {e}", exc_info=True)
    finally:
        # Membership cleanup has to run to completion even if the handler was cancelled
        with anyio.CancelScope(shield=True):
            await manager.disconnect(connection)
