import logging
from fastapi import APIRouter, Depends, HTTPException

from lawhelp.api.v1.auth import get_current_user
from lawhelp.core.dependencies import get_ai_service, get_storage
from lawhelp.core.exceptions import AIServiceError
from lawhelp.core.response_utils import create_success_response, ResponseTimer
from lawhelp.models import User
from lawhelp.schemas import (
    ChatExchangeResponse, ChatMessageCreate, ChatSessionCreate, ChatSessionUpdate, StandardResponse,
)
from lawhelp.services.ai_service import AILegalService
from lawhelp.services.chat_service import ChatService
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter()


def get_chat_service(
    storage: Storage = Depends(get_storage),
    ai_service: AILegalService = Depends(get_ai_service),
) -> ChatService:
    return ChatService(storage, ai_service)


@router.post("/sessions", response_model=StandardResponse, status_code=201)
def create_chat_session(
    session_data: ChatSessionCreate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Create a new chat session."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.create_session(current_user, session_data),
            status_code=201,
            execution_time=timer.get_execution_time()
        )


@router.get("/sessions", response_model=StandardResponse)
def list_chat_sessions(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """List chat sessions for the current user, most recently active first."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.list_sessions(current_user),
            execution_time=timer.get_execution_time()
        )


@router.get("/sessions/{session_id}", response_model=StandardResponse)
def get_chat_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Get a chat session with all its messages."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.get_session_with_messages(session_id, current_user),
            execution_time=timer.get_execution_time()
        )


@router.patch("/sessions/{session_id}", response_model=StandardResponse)
def update_chat_session(
    session_id: int,
    update_data: ChatSessionUpdate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Update a chat session."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.update_session(session_id, current_user, update_data),
            execution_time=timer.get_execution_time()
        )


@router.delete("/sessions/{session_id}", response_model=StandardResponse)
def delete_chat_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Delete a chat session and its messages."""
    with ResponseTimer() as timer:
        service.delete_session(session_id, current_user)
        return create_success_response(
            data=None,
            message="Chat session deleted successfully",
            execution_time=timer.get_execution_time()
        )


@router.get("/sessions/{session_id}/messages", response_model=StandardResponse)
def get_chat_messages(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Messages of a session, oldest first."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.get_messages(session_id, current_user),
            execution_time=timer.get_execution_time()
        )


@router.post("/sessions/{session_id}/messages", response_model=StandardResponse, status_code=201)
async def send_chat_message(
    session_id: int,
    message_data: ChatMessageCreate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Ask a question in a session and return both stored messages."""
    with ResponseTimer() as timer:
        try:
            user_message, ai_message = await service.relay_message(session_id, current_user, message_data.content)
        except AIServiceError as e:
            logger.error(f"AI relay failed for session {session_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to get AI response. Please try again.")

        return create_success_response(
            data=ChatExchangeResponse(user_message=user_message, assistant_message=ai_message),
            status_code=201,
            execution_time=timer.get_execution_time()
        )
