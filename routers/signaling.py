import anyio
from fastapi import APIRouter, WebSocket
from pydantic import ValidationError

from schemas.signaling import CONNECTED, ClientFrame
from signaling.errors import DeliveryError
from logging_config import get_logger

logger = get_logger(__name__)

signaling_router = APIRouter(tags=["signaling"])


@signaling_router.websocket("/ws")
async def signaling_endpoint(websocket: WebSocket):
    """One signaling session per WebSocket.

    Frames in both directions are JSON objects of the form
    ``{"event": "...", "data": {...}}``. The socket closing, for any reason,
    is the disconnect.
    """
    gateway = websocket.app.state.gateway
    coordinator = websocket.app.state.coordinator

    await websocket.accept()
    connection_id = gateway.attach(websocket)
    coordinator.connect(connection_id)
    client_host = websocket.client.host if websocket.client else 'unknown'
    logger.info(f"WebSocket connection {connection_id} accepted from {client_host}")

    try:
        await gateway.send(connection_id, CONNECTED, {"connectionId": connection_id})

        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {connection_id}")
                break
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")

            raw = message.get("text")
            if raw is None:
                logger.warning(f"Binary frame from connection {connection_id}")
                await coordinator.reject(connection_id, "Invalid message: expected a text frame")
                continue

            try:
                frame = ClientFrame.model_validate_json(raw)
            except ValidationError:
                logger.warning(f"Unparseable frame from connection {connection_id}")
                await coordinator.reject(connection_id, "Invalid message: expected a JSON object with event and data")
                continue

            # Frames are handled one at a time, which keeps this sender's signals in order
            try:
                await coordinator.handle_event(connection_id, frame.event, frame.data)
            except DeliveryError as e:
                logger.warning(f"Delivery failure while handling {frame.event} from {connection_id}: {e}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        # Cleanup must finish even when the server cancels this task on shutdown
        with anyio.CancelScope(shield=True):
            try:
                await coordinator.disconnect(connection_id)
            except DeliveryError as e:
                logger.warning(f"Cleanup for {connection_id} completed with delivery failures: {e}")
            except Exception as e:
                logger.error(f"Error cleaning up connection {connection_id}: {e}", exc_info=True)
            gateway.detach(connection_id)

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")
