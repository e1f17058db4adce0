"""
SQLAlchemy storage adapter.

One implementation serves MySQL (``mysql+pymysql``), PostgreSQL
(``postgresql+psycopg2``) and SQLite; the dialect comes from the URL.
Every operation runs in its own transaction and returns detached rows.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from lawhelp.core.database import (
    check_database_connection, create_database_engine, create_session_factory, create_tables, session_scope,
)
from lawhelp.core.exceptions import ConflictError, NotFoundError
from lawhelp.models import (
    Base, ChatMessage, ChatSession, Lawyer, LawyerRating, Notification, User, VerificationCode, utcnow,
)
from lawhelp.storage.base import LawyerFilters, Storage, lawyer_matches

logger = logging.getLogger(__name__)


class SqlStorage(Storage):
    """ORM-backed implementation of ``Storage``."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.backend_name = engine.dialect.name
        self.session_factory = create_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlStorage":
        return cls(create_database_engine(database_url))

    def initialize(self) -> None:
        """Verify the connection and create missing tables."""
        if not check_database_connection(self.engine):
            raise RuntimeError("Database connection failed")
        create_tables(self.engine)

    def check_connection(self) -> bool:
        return check_database_connection(self.engine)

    def _create(self, model: Type[Base], fields: Dict[str, Any], conflict_message: str = "Record already exists") -> Any:
        obj = model(**fields)
        try:
            with session_scope(self.session_factory) as db:
                db.add(obj)
                db.flush()
        except IntegrityError as e:
            logger.warning(f"Integrity error creating {model.__tablename__}: {e.orig}")
            raise ConflictError(conflict_message) from e
        return obj

    def _get(self, model: Type[Base], row_id: int, *options) -> Optional[Any]:
        with session_scope(self.session_factory) as db:
            return db.get(model, row_id, options=list(options))

    def _update(self, model: Type[Base], row_id: int, label: str, fields: Dict[str, Any], *options) -> Any:
        try:
            with session_scope(self.session_factory) as db:
                obj = db.get(model, row_id, options=list(options))
                if obj is None:
                    raise NotFoundError(f"{label} not found")
                for key, value in fields.items():
                    setattr(obj, key, value)
                db.flush()
                return obj
        except IntegrityError as e:
            raise ConflictError(f"{label} update conflicts with an existing record") from e

    def _list(self, statement) -> List[Any]:
        with session_scope(self.session_factory) as db:
            return list(db.execute(statement).unique().scalars().all())

    # User operations
    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with session_scope(self.session_factory) as db:
            return db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def create_user(self, **fields: Any) -> User:
        if self.get_user_by_email(fields.get("email")):
            raise ConflictError("User already exists with this email")
        return self._create(User, fields, "User already exists with this email")

    def update_user(self, user_id: int, **fields: Any) -> User:
        return self._update(User, user_id, "User", fields)

    # Chat operations
    def create_chat_session(self, **fields: Any) -> ChatSession:
        return self._create(ChatSession, fields)

    def get_chat_sessions(self, user_id: int) -> List[ChatSession]:
        return self._list(
            select(ChatSession)
            .where(ChatSession.user_id == user_id)
            .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
        )

    def get_chat_session(self, session_id: int) -> Optional[ChatSession]:
        return self._get(ChatSession, session_id)

    def update_chat_session(self, session_id: int, **fields: Any) -> ChatSession:
        return self._update(ChatSession, session_id, "Chat session", fields)

    def delete_chat_session(self, session_id: int) -> bool:
        with session_scope(self.session_factory) as db:
            session = db.get(ChatSession, session_id)
            if session is None:
                return False
            db.delete(session)
            return True

    # Message operations
    def create_chat_message(self, **fields: Any) -> ChatMessage:
        if self.get_chat_session(fields.get("session_id")) is None:
            raise NotFoundError("Chat session not found")
        return self._create(ChatMessage, fields)

    def get_chat_messages(self, session_id: int) -> List[ChatMessage]:
        return self._list(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        )

    # Lawyer operations
    def create_lawyer(self, **fields: Any) -> Lawyer:
        if self.get_lawyer_by_user(fields.get("user_id")) is not None:
            raise ConflictError("User already has a lawyer profile")
        lawyer = self._create(Lawyer, fields, "License number already registered")
        return self.get_lawyer(lawyer.id)

    def get_lawyers(self, filters: Optional[LawyerFilters] = None) -> List[Lawyer]:
        filters = filters or LawyerFilters()
        statement = select(Lawyer).options(joinedload(Lawyer.user)).join(User, Lawyer.user_id == User.id)
        if filters.min_rating is not None:
            statement = statement.where(Lawyer.rating >= filters.min_rating)
        if filters.verified is not None:
            statement = statement.where(Lawyer.is_verified == filters.verified)
        statement = statement.order_by(Lawyer.rating.desc(), Lawyer.id.asc())

        # JSON list columns are matched in Python to stay dialect independent
        return [lawyer for lawyer in self._list(statement) if lawyer_matches(lawyer, filters)]

    def get_lawyer(self, lawyer_id: int) -> Optional[Lawyer]:
        return self._get(Lawyer, lawyer_id, joinedload(Lawyer.user))

    def get_lawyer_by_user(self, user_id: int) -> Optional[Lawyer]:
        with session_scope(self.session_factory) as db:
            return db.execute(
                select(Lawyer).options(joinedload(Lawyer.user)).where(Lawyer.user_id == user_id)
            ).unique().scalar_one_or_none()

    def update_lawyer(self, lawyer_id: int, **fields: Any) -> Lawyer:
        return self._update(Lawyer, lawyer_id, "Lawyer", fields, joinedload(Lawyer.user))

    # Rating operations
    def create_lawyer_rating(self, **fields: Any) -> LawyerRating:
        if self._get(Lawyer, fields.get("lawyer_id")) is None:
            raise NotFoundError("Lawyer not found")
        return self._create(LawyerRating, fields)

    def get_lawyer_ratings(self, lawyer_id: int) -> List[LawyerRating]:
        return self._list(
            select(LawyerRating)
            .where(LawyerRating.lawyer_id == lawyer_id)
            .order_by(LawyerRating.created_at.desc(), LawyerRating.id.desc())
        )

    # Verification operations
    def create_verification_code(self, **fields: Any) -> VerificationCode:
        return self._create(VerificationCode, fields)

    def get_verification_code(self, user_id: int, code_type: str, code: str) -> Optional[VerificationCode]:
        with session_scope(self.session_factory) as db:
            return db.execute(
                select(VerificationCode).where(
                    VerificationCode.user_id == user_id,
                    VerificationCode.type == code_type,
                    VerificationCode.code == code,
                    VerificationCode.used.is_(False),
                    VerificationCode.expires_at > utcnow(),
                ).limit(1)
            ).scalar_one_or_none()

    def mark_verification_code_used(self, code_id: int) -> None:
        with session_scope(self.session_factory) as db:
            code = db.get(VerificationCode, code_id)
            if code is not None:
                code.used = True

    # Notification operations
    def create_notification(self, **fields: Any) -> Notification:
        return self._create(Notification, fields)

    def get_user_notifications(self, user_id: int) -> List[Notification]:
        return self._list(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self._get(Notification, notification_id)

    def mark_notification_read(self, notification_id: int) -> None:
        with session_scope(self.session_factory) as db:
            notification = db.get(Notification, notification_id)
            if notification is not None:
                notification.read_status = True

    def stats(self) -> Dict[str, int]:
        with session_scope(self.session_factory) as db:
            return {
                "total_users": db.scalar(select(func.count(User.id))) or 0,
                "active_chat_sessions": db.scalar(
                    select(func.count(ChatSession.id)).where(ChatSession.status == "active")
                ) or 0,
                "total_messages": db.scalar(select(func.count(ChatMessage.id))) or 0,
                "lawyers_count": db.scalar(select(func.count(Lawyer.id))) or 0,
            }
