"""
Security utilities for LawHelp.

Password hashing, JWT access tokens, password strength rules and log
sanitization for personal data.
"""

import re
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext

from lawhelp.core.config import get_config
from lawhelp.core.exceptions import AuthenticationError

config = get_config()
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


def _truncate_for_bcrypt(password: str) -> str:
    # Bcrypt has a 72 byte limit
    encoded = password.encode('utf-8')
    if len(encoded) > BCRYPT_MAX_BYTES:
        return encoded[:BCRYPT_MAX_BYTES].decode('utf-8', errors='ignore')
    return password


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(_truncate_for_bcrypt(plain_password), hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(_truncate_for_bcrypt(password))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(days=config.security.access_token_expire_days)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, config.security.secret_key, algorithm=config.security.jwt_algorithm)


def create_user_token(user) -> str:
    """Access token identifying a user by id."""
    return create_access_token({"sub": str(user.id), "email": user.email})


def decode_access_token(token: str) -> int:
    """
    Validate a token and return the user id it was issued for.

    Raises:
        AuthenticationError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(token, config.security.secret_key, algorithms=[config.security.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Token subject is not a user id") from e


class PasswordValidator:
    """Validates password strength."""

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """
        Validate password strength.

        Args:
            password: Password to validate

        Returns:
            Dict with validation results
        """
        errors = []
        min_length = config.security.min_password_length
        max_length = config.security.max_password_length

        # Length validation
        if len(password) < min_length:
            errors.append(f"Password must be at least {min_length} characters")
        if len(password) > max_length:
            errors.append(f"Password must be no more than {max_length} characters")

        # Character requirements
        if not any(c.isalpha() for c in password):
            errors.append("Password must contain at least one letter")
        if not any(c.isdigit() for c in password):
            errors.append("Password must contain at least one digit")

        return {
            'is_valid': len(errors) == 0,
            'errors': errors,
        }


class SecureLogger:
    """Redacts personal data before it reaches the logs."""

    PII_PATTERNS = [
        r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',  # Email
        r'\+?237[\s-]?\d{8,9}\b',  # Cameroon phone
        r'\b\d{3}-\d{3}-\d{4}\b',  # Phone
    ]

    @staticmethod
    def sanitize_log_message(message: str) -> str:
        """
        Sanitize log message to remove personal data.

        Args:
            message: Log message to sanitize

        Returns:
            Sanitized message with matches replaced by [REDACTED]
        """
        sanitized = message
        for pattern in SecureLogger.PII_PATTERNS:
            sanitized = re.sub(pattern, '[REDACTED]', sanitized, flags=re.IGNORECASE)
        return sanitized

    @staticmethod
    def log_securely(level: str, message: str, **kwargs):
        """Log message at the named level after sanitization."""
        log = getattr(logger, level.lower(), logger.debug)
        log(SecureLogger.sanitize_log_message(message), **kwargs)
