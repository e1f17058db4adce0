"""
Real-time chat relay over WebSocket.

Clients authenticate with ``{"type": "auth", "token": ...}`` and then send
``chat_message`` frames; each question is stored, echoed back as
``message_sent`` and answered with an ``ai_response`` frame.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from lawhelp.api.v1.auth import authenticate_token
from lawhelp.core.dependencies import get_ai_service, get_websocket_storage
from lawhelp.core.exceptions import AccessDeniedError, AIServiceError, NotFoundError
from lawhelp.models import User
from lawhelp.schemas import ChatMessageResponse
from lawhelp.services.ai_service import AILegalService
from lawhelp.services.chat_service import ChatService
from lawhelp.services.connections import manager
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_FORMAT = "Invalid message format"
AI_FAILURE = "Failed to get AI response. Please try again."


async def send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"type": "error", "message": message})


def _message_frame(frame_type: str, message) -> Dict[str, Any]:
    return {"type": frame_type, "message": ChatMessageResponse.model_validate(message).model_dump(mode="json")}


async def handle_chat_message(websocket: WebSocket, user: User, frame: Dict[str, Any], service: ChatService) -> None:
    session_id = frame.get("session_id")
    content = frame.get("content")
    if not isinstance(session_id, int) or isinstance(session_id, bool) or not isinstance(content, str) or not content.strip():
        await send_error(websocket, INVALID_FORMAT)
        return

    try:
        session = service.get_owned_session(session_id, user)
    except (NotFoundError, AccessDeniedError) as e:
        await send_error(websocket, str(e))
        return

    user_message = service.add_user_message(session, content)
    await websocket.send_json(_message_frame("message_sent", user_message))

    try:
        ai_message = await service.answer(session, content)
    except AIServiceError as e:
        logger.error(f"AI service error on session {session_id}: {e}")
        await send_error(websocket, AI_FAILURE)
        return

    await websocket.send_json(_message_frame("ai_response", ai_message))


@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    storage: Storage = Depends(get_websocket_storage),
    ai_service: AILegalService = Depends(get_ai_service),
):
    await websocket.accept()
    logger.info("WebSocket connection established")
    service = ChatService(storage, ai_service)
    user: Optional[User] = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await send_error(websocket, INVALID_FORMAT)
                continue
            if not isinstance(frame, dict):
                await send_error(websocket, INVALID_FORMAT)
                continue

            frame_type = frame.get("type")
            if frame_type == "auth":
                token = frame.get("token")
                authenticated = authenticate_token(token, storage) if isinstance(token, str) else None
                if authenticated is None:
                    await websocket.send_json({"type": "auth_error", "message": "Invalid token"})
                    continue
                user = authenticated
                manager.connect(user.id, websocket)
                await websocket.send_json({"type": "auth_success", "user_id": user.id})
            elif frame_type == "ping":
                await websocket.send_json({"type": "pong"})
            elif frame_type == "chat_message":
                if user is None:
                    await send_error(websocket, "Authentication required")
                    continue
                await handle_chat_message(websocket, user, frame, service)
            else:
                await send_error(websocket, INVALID_FORMAT)
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    finally:
        manager.disconnect(websocket)
