"""
Chat Service for LawHelp.

Manages chat sessions and relays questions to the AI legal assistant,
persisting both sides of every exchange.
"""

import logging
from typing import List, Optional, Tuple

from lawhelp.core.constants import DEFAULT_SESSION_TITLE, SESSION_TITLE_MAX_LENGTH
from lawhelp.core.exceptions import AccessDeniedError, AIServiceError, NotFoundError
from lawhelp.models import ChatMessage, ChatSession, User, utcnow
from lawhelp.schemas import (
    ChatSessionCreate, ChatSessionUpdate, ChatSessionResponse, ChatMessageResponse, ChatSessionWithMessages,
)
from lawhelp.services.ai_service import AILegalService
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)

# Earlier turns handed to the model as context
HISTORY_MESSAGES = 6


def session_title_from(question: str) -> str:
    """First characters of the opening question, marked when truncated."""
    question = question.strip()
    if len(question) > SESSION_TITLE_MAX_LENGTH:
        return question[:SESSION_TITLE_MAX_LENGTH] + "..."
    return question


def format_chat_history(messages: List[ChatMessage]) -> str:
    parts = []
    for msg in messages:
        if msg.role == "user":
            parts.append(f"User: {msg.content}")
        elif msg.role == "assistant":
            parts.append(f"Assistant: {msg.content}")
    return "\n".join(parts)


class ChatService:
    """Service for managing chat sessions and chat messages."""

    def __init__(self, storage: Storage, ai_service: Optional[AILegalService] = None):
        self.storage = storage
        self.ai_service = ai_service

    def _to_response(self, session: ChatSession) -> ChatSessionResponse:
        response = ChatSessionResponse.model_validate(session)
        response.message_count = len(self.storage.get_chat_messages(session.id))
        return response

    def get_owned_session(self, session_id: int, user: User) -> ChatSession:
        """
        Load a session the user owns.

        Raises:
            NotFoundError: No session with this id
            AccessDeniedError: The session belongs to another user
        """
        session = self.storage.get_chat_session(session_id)
        if session is None:
            raise NotFoundError("Chat session not found")
        if session.user_id != user.id:
            logger.warning(f"User {user.id} denied access to chat session {session_id}")
            raise AccessDeniedError("Access denied")
        return session

    def create_session(self, user: User, session_data: ChatSessionCreate) -> ChatSessionResponse:
        session = self.storage.create_chat_session(
            user_id=user.id,
            title=session_data.title or DEFAULT_SESSION_TITLE,
            language=session_data.language,
        )
        logger.info(f"Created chat session {session.id} for user {user.id}")
        return ChatSessionResponse.model_validate(session)

    def list_sessions(self, user: User) -> List[ChatSessionResponse]:
        return [self._to_response(session) for session in self.storage.get_chat_sessions(user.id)]

    def get_session_with_messages(self, session_id: int, user: User) -> ChatSessionWithMessages:
        session = self.get_owned_session(session_id, user)
        messages = [ChatMessageResponse.model_validate(m) for m in self.storage.get_chat_messages(session.id)]
        return ChatSessionWithMessages(
            **ChatSessionResponse.model_validate(session).model_dump(exclude={"message_count"}),
            message_count=len(messages),
            messages=messages,
        )

    def get_messages(self, session_id: int, user: User) -> List[ChatMessageResponse]:
        self.get_owned_session(session_id, user)
        return [ChatMessageResponse.model_validate(m) for m in self.storage.get_chat_messages(session_id)]

    def update_session(self, session_id: int, user: User, update_data: ChatSessionUpdate) -> ChatSessionResponse:
        self.get_owned_session(session_id, user)
        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        session = self.storage.update_chat_session(session_id, updated_at=utcnow(), **changes)
        logger.info(f"Updated chat session {session_id} for user {user.id}: {sorted(changes)}")
        return self._to_response(session)

    def delete_session(self, session_id: int, user: User) -> bool:
        self.get_owned_session(session_id, user)
        deleted = self.storage.delete_chat_session(session_id)
        logger.info(f"Deleted chat session {session_id} for user {user.id}")
        return deleted

    def add_user_message(self, session: ChatSession, content: str) -> ChatMessage:
        message = self.storage.create_chat_message(session_id=session.id, role="user", content=content)
        self.storage.update_chat_session(session.id, updated_at=utcnow())
        return message

    async def answer(self, session: ChatSession, question: str) -> ChatMessage:
        """
        Ask the assistant, store its reply and name the session after the
        first exchange.

        Raises:
            AIServiceError: The assistant could not be reached
        """
        if self.ai_service is None:
            raise AIServiceError("AI service is not available")

        history = self.storage.get_chat_messages(session.id)[:-1][-HISTORY_MESSAGES:]
        try:
            result = await self.ai_service.process_legal_query(
                question,
                context=format_chat_history(history) or None,
                language=session.language or "en",
            )
        except AIServiceError:
            raise
        except Exception as e:
            logger.error(f"AI service error for session {session.id}: {e}")
            raise AIServiceError("Failed to get AI response") from e

        ai_message = self.storage.create_chat_message(
            session_id=session.id,
            role="assistant",
            content=result.answer,
            category=result.category,
            confidence=result.confidence,
            references_data=result.references,
        )

        fields = {"updated_at": utcnow()}
        if len(self.storage.get_chat_messages(session.id)) == 2:
            fields["title"] = session_title_from(question)
        self.storage.update_chat_session(session.id, **fields)
        return ai_message

    async def relay_message(
        self, session_id: int, user: User, content: str
    ) -> Tuple[ChatMessageResponse, ChatMessageResponse]:
        """Persist a question and the assistant's answer to it."""
        session = self.get_owned_session(session_id, user)
        user_message = self.add_user_message(session, content)
        ai_message = await self.answer(session, content)
        return ChatMessageResponse.model_validate(user_message), ChatMessageResponse.model_validate(ai_message)
