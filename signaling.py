import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from models.events import ErrorMessage, parse_client_event
from session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


async def _reject(websocket: WebSocket, code: str, message: str):
    await websocket.send_json(ErrorMessage(code=code, message=message).model_dump())


@router.websocket("/ws")
async def signaling_endpoint(websocket: WebSocket):
    coordinator: SessionCoordinator = websocket.app.state.coordinator
    max_message_bytes = websocket.app.state.settings.max_message_bytes

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    await coordinator.connect(connection_id, websocket.send_json)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                logger.warning(f"Binary frame from {connection_id} rejected")
                await _reject(websocket, "invalid-event", "Events must be sent as JSON text frames")
                continue
            if len(raw.encode("utf-8")) > max_message_bytes:
                logger.warning(f"Message from {connection_id} exceeds {max_message_bytes} bytes")
                await _reject(websocket, "message-too-large", f"Messages are limited to {max_message_bytes} bytes")
                continue

            try:
                event = parse_client_event(raw)
            except ValidationError as e:
                logger.warning(f"Invalid event from {connection_id}: {e.error_count()} error(s)")
                details = "; ".join(
                    f"{'.'.join(str(part) for part in err['loc']) or 'message'}: {err['msg']}" for err in e.errors()
                )
                await _reject(websocket, "invalid-event", details)
                continue

            await coordinator.handle(connection_id, event)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        await coordinator.disconnect(connection_id)
