"""
Database models.
"""

# Import all models to ensure they are registered with SQLAlchemy
from .base import Base, utcnow
from .user import User
from .chat import ChatSession, ChatMessage
from .lawyer import Lawyer, LawyerRating
from .verification import VerificationCode
from .notification import Notification

__all__ = [
    "Base", "utcnow", "User", "ChatSession", "ChatMessage",
    "Lawyer", "LawyerRating", "VerificationCode", "Notification",
]
