"""
Storage interface shared by the in-memory and SQL adapters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lawhelp.models import (
    ChatMessage, ChatSession, Lawyer, LawyerRating, Notification, User, VerificationCode,
)


@dataclass
class LawyerFilters:
    """Directory query. Text filters are case-insensitive substring matches."""
    specialization: Optional[str] = None
    location: Optional[str] = None
    language: Optional[str] = None
    min_rating: Optional[float] = None
    verified: Optional[bool] = None


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle.lower() in value.lower()


def lawyer_matches(lawyer: Lawyer, filters: LawyerFilters) -> bool:
    """Apply directory filters to a single lawyer profile."""
    if filters.specialization and not any(
        _contains(item, filters.specialization) for item in (lawyer.specialization or [])
    ):
        return False
    if filters.language and not any(
        _contains(item, filters.language) for item in (lawyer.languages or [])
    ):
        return False
    if filters.location and not _contains(lawyer.location, filters.location):
        return False
    if filters.min_rating is not None and (lawyer.rating or 0) < filters.min_rating:
        return False
    if filters.verified is not None and bool(lawyer.is_verified) != filters.verified:
        return False
    return True


class Storage(ABC):
    """Create/read/update operations over the LawHelp tables."""

    backend_name = "abstract"

    # User operations
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, **fields: Any) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, **fields: Any) -> User: ...

    # Chat operations
    @abstractmethod
    def create_chat_session(self, **fields: Any) -> ChatSession: ...

    @abstractmethod
    def get_chat_sessions(self, user_id: int) -> List[ChatSession]: ...

    @abstractmethod
    def get_chat_session(self, session_id: int) -> Optional[ChatSession]: ...

    @abstractmethod
    def update_chat_session(self, session_id: int, **fields: Any) -> ChatSession: ...

    @abstractmethod
    def delete_chat_session(self, session_id: int) -> bool: ...

    # Message operations
    @abstractmethod
    def create_chat_message(self, **fields: Any) -> ChatMessage: ...

    @abstractmethod
    def get_chat_messages(self, session_id: int) -> List[ChatMessage]: ...

    # Lawyer operations
    @abstractmethod
    def create_lawyer(self, **fields: Any) -> Lawyer: ...

    @abstractmethod
    def get_lawyers(self, filters: Optional[LawyerFilters] = None) -> List[Lawyer]: ...

    @abstractmethod
    def get_lawyer(self, lawyer_id: int) -> Optional[Lawyer]: ...

    @abstractmethod
    def get_lawyer_by_user(self, user_id: int) -> Optional[Lawyer]: ...

    @abstractmethod
    def update_lawyer(self, lawyer_id: int, **fields: Any) -> Lawyer: ...

    # Rating operations
    @abstractmethod
    def create_lawyer_rating(self, **fields: Any) -> LawyerRating: ...

    @abstractmethod
    def get_lawyer_ratings(self, lawyer_id: int) -> List[LawyerRating]: ...

    # Verification operations
    @abstractmethod
    def create_verification_code(self, **fields: Any) -> VerificationCode: ...

    @abstractmethod
    def get_verification_code(self, user_id: int, code_type: str, code: str) -> Optional[VerificationCode]: ...

    @abstractmethod
    def mark_verification_code_used(self, code_id: int) -> None: ...

    # Notification operations
    @abstractmethod
    def create_notification(self, **fields: Any) -> Notification: ...

    @abstractmethod
    def get_user_notifications(self, user_id: int) -> List[Notification]: ...

    @abstractmethod
    def get_notification(self, notification_id: int) -> Optional[Notification]: ...

    @abstractmethod
    def mark_notification_read(self, notification_id: int) -> None: ...

    # Operational
    @abstractmethod
    def stats(self) -> Dict[str, int]:
        """Counts used by the metrics endpoint."""

    def check_connection(self) -> bool:
        return True
