"""Custom exceptions for LawHelp"""


class LawHelpError(Exception):
    """Base exception for all application errors"""
    pass


class NotFoundError(LawHelpError):
    """Raised when a requested record does not exist"""
    pass


class ConflictError(LawHelpError):
    """Raised when a write violates a uniqueness constraint"""
    pass


class AuthenticationError(LawHelpError):
    """Raised when a token or credential cannot be validated"""
    pass


class AIServiceError(LawHelpError):
    """Raised when the completion API cannot produce an answer"""
    pass


class AccessDeniedError(LawHelpError):
    """Raised when a user touches a record owned by someone else"""
    pass


class InvalidRequestError(LawHelpError):
    """Raised when a request is well-formed but not allowed in the current state"""
    pass
