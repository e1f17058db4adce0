import logging
from datetime import timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from lawhelp.core.config import get_config
from lawhelp.core.constants import CODE_EMAIL_VERIFICATION, CODE_TWO_FACTOR
from lawhelp.core.dependencies import get_storage
from lawhelp.core.exceptions import AuthenticationError
from lawhelp.core.response_utils import create_success_response, ResponseTimer
from lawhelp.core.security import (
    PasswordValidator, SecureLogger, create_user_token, decode_access_token, get_password_hash, verify_password,
)
from lawhelp.models import User, utcnow
from lawhelp.schemas import (
    DisableTwoFactorRequest, LoginRequest, RegisterResponse, ResendVerificationRequest, StandardResponse,
    TokenResponse, TwoFactorChallenge, TwoFactorSetupResponse, UserCreate, UserResponse, VerifyEmailRequest,
    VerifyTwoFactorRequest, VerifyTwoFactorSetupRequest,
)
from lawhelp.services.notification_service import NotificationService
from lawhelp.services.two_factor_service import two_factor_service
from lawhelp.storage import Storage

config = get_config()
logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

router = APIRouter()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> User:
    """Get current authenticated user."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = authenticate_token(credentials.credentials, storage)
    if user is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")
    return user


def authenticate_token(token: str, storage: Storage) -> Optional[User]:
    """Resolve a bearer token to its user, or None when it is not valid."""
    try:
        user_id = decode_access_token(token)
    except AuthenticationError as e:
        logger.info(f"Rejected access token: {e}")
        return None
    return storage.get_user(user_id)


def require_admin_role(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role."""
    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def _issue_code(storage: Storage, user: User, code_type: str, lifetime: timedelta) -> bool:
    """Store a fresh email code for the user and send it. Returns whether the email went out."""
    code = two_factor_service.generate_email_code()
    storage.create_verification_code(
        user_id=user.id,
        code=code,
        type=code_type,
        expires_at=utcnow() + lifetime,
    )
    return two_factor_service.send_email_code(user.email, code, code_type, name=user.name)


def _email_verification_lifetime() -> timedelta:
    return timedelta(hours=config.security.email_verification_expire_hours)


def _two_factor_lifetime() -> timedelta:
    return timedelta(minutes=config.security.two_factor_code_expire_minutes)


def _login_response(storage: Storage, user: User) -> TokenResponse:
    user = storage.update_user(user.id, last_active=utcnow())
    return TokenResponse(token=create_user_token(user), user=UserResponse.model_validate(user))


@router.post("/register", response_model=StandardResponse, status_code=201)
def register(user_data: UserCreate, storage: Storage = Depends(get_storage)):
    """Register a new user and email them a verification code."""
    with ResponseTimer() as timer:
        email = user_data.email.lower()
        SecureLogger.log_securely("info", f"Registration attempt - Email: {email}")

        validation = PasswordValidator.validate_password(user_data.password)
        if not validation['is_valid']:
            raise HTTPException(status_code=400, detail="; ".join(validation['errors']))

        if storage.get_user_by_email(email):
            raise HTTPException(status_code=400, detail="User already exists with this email")

        new_user = storage.create_user(
            name=user_data.name,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            email=email,
            password_hash=get_password_hash(user_data.password),
            phone=user_data.phone,
            location=user_data.location,
        )
        email_sent = _issue_code(storage, new_user, CODE_EMAIL_VERIFICATION, _email_verification_lifetime())

        # Prepare response message
        if email_sent:
            message = "User registered successfully. Please check your email for verification code."
        else:
            message = "User registered successfully. The verification email could not be sent; request a new code."

        return create_success_response(
            data=RegisterResponse(message=message, user_id=new_user.id, email_sent=email_sent),
            status_code=201,
            execution_time=timer.get_execution_time()
        )


@router.post("/resend-verification", response_model=StandardResponse)
def resend_verification_email(resend_data: ResendVerificationRequest, storage: Storage = Depends(get_storage)):
    """Resend email verification."""
    with ResponseTimer() as timer:
        user = storage.get_user_by_email(resend_data.email.lower())
        if not user:
            raise HTTPException(status_code=404, detail="Email not found")

        if user.email_verified:
            raise HTTPException(status_code=400, detail="Email already verified")

        email_sent = _issue_code(storage, user, CODE_EMAIL_VERIFICATION, _email_verification_lifetime())
        if email_sent:
            message = "Verification email sent successfully"
        else:
            message = "Failed to send verification email. Please contact support."

        return create_success_response(
            data=None,
            message=message,
            additional_details={"email_sent": email_sent},
            execution_time=timer.get_execution_time()
        )


@router.post("/verify-email", response_model=StandardResponse)
async def verify_email(request: VerifyEmailRequest, storage: Storage = Depends(get_storage)):
    """Confirm the address with the code sent at registration."""
    with ResponseTimer() as timer:
        verification_code = storage.get_verification_code(request.user_id, CODE_EMAIL_VERIFICATION, request.code)
        if not verification_code:
            raise HTTPException(status_code=400, detail="Invalid or expired verification code")

        storage.mark_verification_code_used(verification_code.id)
        user = storage.update_user(request.user_id, email_verified=True)

        await NotificationService(storage).notify(
            user.id,
            "Welcome to LawHelp",
            "Your email has been verified. Ask your first legal question or browse the lawyer directory.",
            type="success",
        )
        logger.info(f"Email verified for user {user.id}")

        return create_success_response(
            data=None,
            message="Email verified successfully",
            execution_time=timer.get_execution_time()
        )


@router.post("/login", response_model=StandardResponse)
def login(login_data: LoginRequest, storage: Storage = Depends(get_storage)):
    """Login with email and password."""
    with ResponseTimer() as timer:
        user = storage.get_user_by_email(login_data.email.lower())
        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if not user.email_verified:
            raise HTTPException(status_code=401, detail="Please verify your email before logging in")

        if user.two_factor_enabled:
            method = user.two_factor_method or "email"
            if method == "email":
                _issue_code(storage, user, CODE_TWO_FACTOR, _two_factor_lifetime())
                message = "Please enter the verification code sent to your email"
            else:
                message = "Please enter the code from your authenticator app"
            return create_success_response(
                data=TwoFactorChallenge(user_id=user.id, method=method, message=message),
                execution_time=timer.get_execution_time()
            )

        return create_success_response(
            data=_login_response(storage, user),
            execution_time=timer.get_execution_time()
        )


@router.post("/verify-2fa", response_model=StandardResponse)
def verify_two_factor(request: VerifyTwoFactorRequest, storage: Storage = Depends(get_storage)):
    """Complete a login that required a second factor."""
    with ResponseTimer() as timer:
        user = storage.get_user(request.user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if request.method == "totp":
            if two_factor_service.verify_totp(request.code, user.two_factor_secret):
                pass
            elif request.code.upper() in (user.backup_codes or []):
                remaining = [code for code in user.backup_codes if code != request.code.upper()]
                user = storage.update_user(user.id, backup_codes=remaining)
                logger.info(f"Backup code used by user {user.id}, {len(remaining)} left")
            else:
                raise HTTPException(status_code=400, detail="Invalid verification code")
        else:
            verification_code = storage.get_verification_code(user.id, CODE_TWO_FACTOR, request.code)
            if not verification_code:
                raise HTTPException(status_code=400, detail="Invalid or expired verification code")
            storage.mark_verification_code_used(verification_code.id)

        return create_success_response(
            data=_login_response(storage, user),
            execution_time=timer.get_execution_time()
        )


@router.post("/2fa/setup/totp", response_model=StandardResponse)
def setup_totp(current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    """Generate an authenticator secret. 2FA stays off until the first code is verified."""
    with ResponseTimer() as timer:
        setup = two_factor_service.generate_totp_secret(current_user.email)
        storage.update_user(current_user.id, two_factor_secret=setup.secret, backup_codes=setup.backup_codes)

        return create_success_response(
            data=TwoFactorSetupResponse(
                secret=setup.secret,
                qr_code_url=setup.qr_code_url,
                backup_codes=setup.backup_codes,
            ),
            execution_time=timer.get_execution_time()
        )


@router.post("/2fa/setup/email", response_model=StandardResponse)
def setup_email_two_factor(current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    """Send a test code for email-based 2FA."""
    with ResponseTimer() as timer:
        email_sent = _issue_code(storage, current_user, CODE_TWO_FACTOR, _two_factor_lifetime())
        return create_success_response(
            data=None,
            message="Verification code sent to your email",
            additional_details={"email_sent": email_sent},
            execution_time=timer.get_execution_time()
        )


@router.post("/2fa/verify-setup", response_model=StandardResponse)
def verify_two_factor_setup(
    request: VerifyTwoFactorSetupRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Enable 2FA once the user proves they receive codes."""
    with ResponseTimer() as timer:
        if request.method == "totp":
            if not current_user.two_factor_secret:
                raise HTTPException(status_code=400, detail="TOTP has not been set up")
            if not two_factor_service.verify_totp(request.code, current_user.two_factor_secret):
                raise HTTPException(status_code=400, detail="Invalid verification code")
        else:
            verification_code = storage.get_verification_code(current_user.id, CODE_TWO_FACTOR, request.code)
            if not verification_code:
                raise HTTPException(status_code=400, detail="Invalid or expired verification code")
            storage.mark_verification_code_used(verification_code.id)

        storage.update_user(current_user.id, two_factor_enabled=True, two_factor_method=request.method)
        logger.info(f"Two-factor authentication ({request.method}) enabled for user {current_user.id}")

        return create_success_response(
            data=None,
            message="Two-factor authentication enabled successfully",
            additional_details={"method": request.method},
            execution_time=timer.get_execution_time()
        )


@router.post("/2fa/disable", response_model=StandardResponse)
def disable_two_factor(
    request: DisableTwoFactorRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    with ResponseTimer() as timer:
        if not verify_password(request.password, current_user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid password")

        storage.update_user(
            current_user.id,
            two_factor_enabled=False,
            two_factor_method=None,
            two_factor_secret=None,
            backup_codes=None,
        )
        logger.info(f"Two-factor authentication disabled for user {current_user.id}")

        return create_success_response(
            data=None,
            message="Two-factor authentication disabled successfully",
            execution_time=timer.get_execution_time()
        )
