"""
Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional, Dict, Any, Generic, TypeVar, List, Literal
from datetime import datetime

# Generic type for response data
T = TypeVar('T')

SessionStatus = Literal["active", "completed", "archived"]
SessionLanguage = Literal["en", "fr"]
TwoFactorMethod = Literal["email", "totp"]


class Metadata(BaseModel):
    """Standard metadata for API responses."""
    statusCode: int = Field(..., description="HTTP status code")
    errors: List[str] = Field(default_factory=list, description="List of error messages")
    executionTime: float = Field(..., description="Request execution time in seconds")
    timestamp: datetime = Field(..., description="Response timestamp")


class StandardResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""
    data: T = Field(..., description="Response data")
    metadata: Metadata = Field(..., description="Response metadata")
    success: int = Field(..., description="Success indicator (1 for success, 0 for failure)")


class ErrorResponse(BaseModel):
    """Error response schema."""
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class SuccessResponse(BaseModel):
    """Success response schema."""
    message: str = Field(..., description="Success message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional success details")


# Users and authentication
class UserCreate(BaseModel):
    """Schema for user registration."""
    name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    phone: Optional[str] = Field(None, max_length=20, description="Phone number")
    location: Optional[str] = Field(None, max_length=255, description="City or region")

    @property
    def first_name(self) -> str:
        return self.name.split(' ')[0] or self.name

    @property
    def last_name(self) -> str:
        return ' '.join(self.name.split(' ')[1:])


class UserUpdate(BaseModel):
    """Schema for profile updates."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=255)
    profile_image_url: Optional[str] = Field(None, max_length=500)


class UserResponse(BaseModel):
    """Schema for user responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    is_lawyer: bool
    email_verified: bool
    two_factor_enabled: bool
    two_factor_method: Optional[str] = None
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RegisterResponse(BaseModel):
    message: str
    user_id: int
    email_sent: bool


class LoginRequest(BaseModel):
    """Schema for login requests."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class TokenResponse(BaseModel):
    """Issued after a successful login or second factor."""
    token: str
    token_type: str = "bearer"
    user: UserResponse


class TwoFactorChallenge(BaseModel):
    """Returned by login when a second factor is required."""
    requires_two_factor: bool = True
    user_id: int
    method: str
    message: str


class VerifyEmailRequest(BaseModel):
    user_id: int
    code: str = Field(..., min_length=1, max_length=10)


class ResendVerificationRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address to resend verification to")


class VerifyTwoFactorRequest(BaseModel):
    user_id: int
    code: str = Field(..., min_length=1, max_length=10)
    method: TwoFactorMethod = "email"


class TwoFactorSetupResponse(BaseModel):
    secret: str
    qr_code_url: str
    backup_codes: List[str]


class VerifyTwoFactorSetupRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=10)
    method: TwoFactorMethod


class DisableTwoFactorRequest(BaseModel):
    password: str = Field(..., min_length=1)


# Chat
class ChatSessionCreate(BaseModel):
    """Schema for creating a new chat session."""
    title: Optional[str] = Field(None, max_length=255, description="Title for the chat session")
    language: SessionLanguage = Field(default="en", description="Answer language")


class ChatSessionUpdate(BaseModel):
    """Schema for updating a chat session."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[SessionStatus] = None
    language: Optional[SessionLanguage] = None


class ChatSessionResponse(BaseModel):
    """Schema for chat session responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    status: str
    language: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    message_count: int = Field(default=0, description="Number of messages in the session")


class ChatMessageCreate(BaseModel):
    """Schema for a question posted to a session."""
    content: str = Field(..., min_length=1, max_length=10000, description="Message content")


class ChatMessageResponse(BaseModel):
    """Schema for chat message responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    role: str
    content: str
    category: Optional[str] = None
    confidence: Optional[float] = None
    references_data: Optional[List[str]] = None
    created_at: Optional[datetime] = None


class ChatSessionWithMessages(ChatSessionResponse):
    """Schema for chat session with messages."""
    messages: List[ChatMessageResponse] = Field(default_factory=list, description="Messages in the session")


class ChatExchangeResponse(BaseModel):
    """The persisted question and answer of one relay round."""
    user_message: ChatMessageResponse
    assistant_message: Optional[ChatMessageResponse] = None


# Lawyers
class LawyerCreate(BaseModel):
    license_number: str = Field(..., min_length=1, max_length=100)
    specialization: List[str] = Field(..., min_length=1)
    experience_years: int = Field(..., ge=0, le=80)
    location: str = Field(..., min_length=1, max_length=255)
    languages: List[str] = Field(..., min_length=1)
    hourly_rate: Optional[int] = Field(None, ge=0, description="Hourly rate in CFA francs")
    bio: Optional[str] = Field(None, max_length=5000)
    education: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    availability_schedule: Optional[Dict[str, Any]] = None


class LawyerUpdate(BaseModel):
    specialization: Optional[List[str]] = Field(None, min_length=1)
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    languages: Optional[List[str]] = Field(None, min_length=1)
    hourly_rate: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = Field(None, max_length=5000)
    education: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    availability_schedule: Optional[Dict[str, Any]] = None


class LawyerUserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    profile_image_url: Optional[str] = None


class LawyerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    license_number: str
    specialization: List[str]
    experience_years: int
    location: str
    languages: List[str]
    hourly_rate: Optional[int] = None
    bio: Optional[str] = None
    education: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    availability_schedule: Optional[Dict[str, Any]] = None
    is_verified: bool
    rating: float
    total_ratings: int
    created_at: Optional[datetime] = None
    user: Optional[LawyerUserSummary] = None


class LawyerRatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=2000)


class LawyerRatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lawyer_id: int
    user_id: int
    rating: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None


# Notifications
class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    message: str
    type: str
    read_status: bool
    created_at: Optional[datetime] = None


class HealthCheckResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(..., description="Service status")
    timestamp: datetime
    uptime: int = Field(..., description="Seconds since startup")
    version: str = Field(..., description="API version")
    environment: str
    storage: str = Field(..., description="Active storage backend")
