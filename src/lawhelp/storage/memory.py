"""
In-memory storage adapter.

Rows are kept in per-table dictionaries keyed by id. Used for local
development, the test-suite, and as the fallback when no database is
reachable.
"""

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional, Type

from lawhelp.core.exceptions import ConflictError, NotFoundError
from lawhelp.models import (
    Base, ChatMessage, ChatSession, Lawyer, LawyerRating, Notification, User, VerificationCode, utcnow,
)
from lawhelp.storage.base import LawyerFilters, Storage, lawyer_matches

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dictionary-backed implementation of ``Storage``."""

    backend_name = "memory"

    def __init__(self):
        self.users: Dict[int, User] = {}
        self.chat_sessions: Dict[int, ChatSession] = {}
        self.chat_messages: Dict[int, ChatMessage] = {}
        self.lawyers: Dict[int, Lawyer] = {}
        self.lawyer_ratings: Dict[int, LawyerRating] = {}
        self.verification_codes: Dict[int, VerificationCode] = {}
        self.notifications: Dict[int, Notification] = {}
        self._counters: Dict[str, itertools.count] = {}
        self._lock = threading.Lock()

    def _new(self, model: Type[Base], table: Dict[int, Any], fields: Dict[str, Any]) -> Any:
        """Build a row with column defaults applied and store it under a fresh id."""
        obj = model(**fields)
        for column in model.__table__.columns:
            if column.primary_key or column.default is None:
                continue
            if getattr(obj, column.key) is None:
                default = column.default
                value = default.arg(None) if default.is_callable else default.arg
                setattr(obj, column.key, value)

        with self._lock:
            counter = self._counters.setdefault(model.__tablename__, itertools.count(1))
            obj.id = next(counter)
            table[obj.id] = obj
        return obj

    @staticmethod
    def _update(table: Dict[int, Any], row_id: int, label: str, fields: Dict[str, Any]) -> Any:
        obj = table.get(row_id)
        if obj is None:
            raise NotFoundError(f"{label} not found")
        for key, value in fields.items():
            setattr(obj, key, value)
        if hasattr(obj, "updated_at"):
            obj.updated_at = utcnow()
        return obj

    # User operations
    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def create_user(self, **fields: Any) -> User:
        if self.get_user_by_email(fields.get("email")):
            raise ConflictError("User already exists with this email")
        return self._new(User, self.users, fields)

    def update_user(self, user_id: int, **fields: Any) -> User:
        return self._update(self.users, user_id, "User", fields)

    # Chat operations
    def create_chat_session(self, **fields: Any) -> ChatSession:
        return self._new(ChatSession, self.chat_sessions, fields)

    def get_chat_sessions(self, user_id: int) -> List[ChatSession]:
        sessions = [s for s in self.chat_sessions.values() if s.user_id == user_id]
        return sorted(sessions, key=lambda s: (s.updated_at, s.id), reverse=True)

    def get_chat_session(self, session_id: int) -> Optional[ChatSession]:
        return self.chat_sessions.get(session_id)

    def update_chat_session(self, session_id: int, **fields: Any) -> ChatSession:
        return self._update(self.chat_sessions, session_id, "Chat session", fields)

    def delete_chat_session(self, session_id: int) -> bool:
        if self.chat_sessions.pop(session_id, None) is None:
            return False
        for message_id in [m.id for m in self.chat_messages.values() if m.session_id == session_id]:
            del self.chat_messages[message_id]
        return True

    # Message operations
    def create_chat_message(self, **fields: Any) -> ChatMessage:
        if fields.get("session_id") not in self.chat_sessions:
            raise NotFoundError("Chat session not found")
        return self._new(ChatMessage, self.chat_messages, fields)

    def get_chat_messages(self, session_id: int) -> List[ChatMessage]:
        messages = [m for m in self.chat_messages.values() if m.session_id == session_id]
        return sorted(messages, key=lambda m: (m.created_at, m.id))

    # Lawyer operations
    def create_lawyer(self, **fields: Any) -> Lawyer:
        for lawyer in self.lawyers.values():
            if lawyer.license_number == fields.get("license_number"):
                raise ConflictError("License number already registered")
            if lawyer.user_id == fields.get("user_id"):
                raise ConflictError("User already has a lawyer profile")
        lawyer = self._new(Lawyer, self.lawyers, fields)
        return self._with_user(lawyer) or lawyer

    def _with_user(self, lawyer: Lawyer) -> Optional[Lawyer]:
        user = self.users.get(lawyer.user_id)
        if user is None:
            return None
        lawyer.user = user
        return lawyer

    def get_lawyers(self, filters: Optional[LawyerFilters] = None) -> List[Lawyer]:
        filters = filters or LawyerFilters()
        results = []
        for lawyer in self.lawyers.values():
            if lawyer_matches(lawyer, filters) and self._with_user(lawyer) is not None:
                results.append(lawyer)
        return sorted(results, key=lambda lawyer: lawyer.rating or 0, reverse=True)

    def get_lawyer(self, lawyer_id: int) -> Optional[Lawyer]:
        lawyer = self.lawyers.get(lawyer_id)
        if lawyer is None:
            return None
        return self._with_user(lawyer)

    def get_lawyer_by_user(self, user_id: int) -> Optional[Lawyer]:
        for lawyer in self.lawyers.values():
            if lawyer.user_id == user_id:
                return self._with_user(lawyer)
        return None

    def update_lawyer(self, lawyer_id: int, **fields: Any) -> Lawyer:
        lawyer = self._update(self.lawyers, lawyer_id, "Lawyer", fields)
        return self._with_user(lawyer) or lawyer

    # Rating operations
    def create_lawyer_rating(self, **fields: Any) -> LawyerRating:
        if fields.get("lawyer_id") not in self.lawyers:
            raise NotFoundError("Lawyer not found")
        return self._new(LawyerRating, self.lawyer_ratings, fields)

    def get_lawyer_ratings(self, lawyer_id: int) -> List[LawyerRating]:
        ratings = [r for r in self.lawyer_ratings.values() if r.lawyer_id == lawyer_id]
        return sorted(ratings, key=lambda r: (r.created_at, r.id), reverse=True)

    # Verification operations
    def create_verification_code(self, **fields: Any) -> VerificationCode:
        return self._new(VerificationCode, self.verification_codes, fields)

    def get_verification_code(self, user_id: int, code_type: str, code: str) -> Optional[VerificationCode]:
        now = utcnow()
        for verification_code in self.verification_codes.values():
            if (
                verification_code.user_id == user_id
                and verification_code.type == code_type
                and verification_code.code == code
                and verification_code.is_valid(now)
            ):
                return verification_code
        return None

    def mark_verification_code_used(self, code_id: int) -> None:
        code = self.verification_codes.get(code_id)
        if code is not None:
            code.used = True

    # Notification operations
    def create_notification(self, **fields: Any) -> Notification:
        return self._new(Notification, self.notifications, fields)

    def get_user_notifications(self, user_id: int) -> List[Notification]:
        notifications = [n for n in self.notifications.values() if n.user_id == user_id]
        return sorted(notifications, key=lambda n: (n.created_at, n.id), reverse=True)

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self.notifications.get(notification_id)

    def mark_notification_read(self, notification_id: int) -> None:
        notification = self.notifications.get(notification_id)
        if notification is not None:
            notification.read_status = True

    def stats(self) -> Dict[str, int]:
        return {
            "total_users": len(self.users),
            "active_chat_sessions": sum(1 for s in self.chat_sessions.values() if s.status == "active"),
            "total_messages": len(self.chat_messages),
            "lawyers_count": len(self.lawyers),
        }
