# vanishchat/api/chat_ws.py

import json
import logging
from typing import Optional

import pydantic
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from vanishchat.core.errors import CryptoError, StorageError, ValidationError
from vanishchat.schemas.events import AuthEvent, AuthSuccessEvent, ChatEvent, ErrorEvent

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_FORMAT = "Invalid message format"
SEND_FAILED = "Failed to send message"


def parse_frame(raw: str) -> dict:
    try:
        frame = json.loads(raw)
    except ValueError:
        raise ValidationError(INVALID_FORMAT)
    if not isinstance(frame, dict):
        raise ValidationError(INVALID_FORMAT)
    return frame


async def receive_frame(websocket: WebSocket) -> str:
    """
    Next client frame as text. Binary frames are read as UTF-8; anything
    undecodable is a ValidationError, and a close raises WebSocketDisconnect.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
    if message.get("text") is not None:
        return message["text"]
    try:
        return (message.get("bytes") or b"").decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError(INVALID_FORMAT)


def parse_chat_event(raw: str) -> ChatEvent:
    frame = parse_frame(raw)
    if frame.get("type") == "auth":
        raise ValidationError("Already authenticated")
    try:
        return ChatEvent.model_validate(frame)
    except pydantic.ValidationError:
        raise ValidationError(INVALID_FORMAT)


async def authenticate(websocket: WebSocket) -> Optional[str]:
    """
    The first frame must be ``{"type": "auth", "username": ...}``. Credentials
    are checked upstream; the identity is taken as given.
    """
    try:
        raw = await receive_frame(websocket)
        return AuthEvent.model_validate(parse_frame(raw)).username
    except (ValidationError, pydantic.ValidationError):
        await websocket.send_json(ErrorEvent(message="Authentication required").model_dump())
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    hub = websocket.app.state.hub
    service = websocket.app.state.messages

    await websocket.accept()
    try:
        username = await authenticate(websocket)
    except WebSocketDisconnect:
        return
    if username is None:
        return

    # From here on every frame to this client goes through the hub queue,
    # so replies and broadcasts stay in order
    hub.subscribe(username, websocket)
    hub.send_to(username, websocket, AuthSuccessEvent(username=username))
    try:
        while True:
            try:
                event = parse_chat_event(await receive_frame(websocket))
                await service.send(username, event.text)
            except ValidationError as e:
                hub.send_to(username, websocket, ErrorEvent(message=str(e)))
            except (CryptoError, StorageError) as e:
                logger.error("❌ Send from %s failed: %s", username, e)
                hub.send_to(username, websocket, ErrorEvent(message=SEND_FAILED))
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(username, websocket)
