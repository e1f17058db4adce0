"""
Two-factor authentication helpers.

TOTP secrets and QR codes for authenticator apps, backup codes, and the
six-digit codes sent by email for verification and login.
"""

import base64
import io
import logging
import re
import secrets
import string
from dataclasses import dataclass
from typing import List, Optional

import pyotp
import qrcode

from lawhelp.core.config import get_config
from lawhelp.core.constants import (
    BACKUP_CODE_COUNT, BACKUP_CODE_LENGTH, CODE_EMAIL_VERIFICATION, CODE_PASSWORD_RESET,
    CODE_PATTERN, CODE_TWO_FACTOR, TOTP_ISSUER, TOTP_SECRET_LENGTH, TOTP_VALID_WINDOW,
)
from lawhelp.services.email_service import EmailService, email_service

config = get_config()
logger = logging.getLogger(__name__)

_CODE_RE = re.compile(CODE_PATTERN)

EMAIL_SUBJECTS = {
    CODE_EMAIL_VERIFICATION: "LawHelp - Verify Your Email Address",
    CODE_TWO_FACTOR: "LawHelp - Two-Factor Authentication Code",
    CODE_PASSWORD_RESET: "LawHelp - Password Reset Code",
}

EMAIL_INSTRUCTIONS = {
    CODE_EMAIL_VERIFICATION: "Please use this code to verify your email address. This code will expire in 24 hours.",
    CODE_TWO_FACTOR: "Please use this code to complete your two-factor authentication. This code will expire in 10 minutes.",
    CODE_PASSWORD_RESET: "Please use this code to reset your password. This code will expire in 1 hour.",
}


@dataclass
class TwoFactorSetup:
    secret: str
    qr_code_url: str
    backup_codes: List[str]


class TwoFactorService:
    """TOTP and email code handling."""

    def __init__(self, mailer: Optional[EmailService] = None):
        self.mailer = mailer or email_service

    def generate_totp_secret(self, email: str, app_name: str = TOTP_ISSUER) -> TwoFactorSetup:
        """
        Create a TOTP secret, its QR code and a fresh set of backup codes.

        The QR code encodes the otpauth:// provisioning URI and is returned as
        a PNG data URL ready for an <img> tag.
        """
        secret = pyotp.random_base32(length=TOTP_SECRET_LENGTH)
        uri = pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=app_name)
        return TwoFactorSetup(
            secret=secret,
            qr_code_url=self._qr_data_url(uri),
            backup_codes=self.generate_backup_codes(),
        )

    @staticmethod
    def _qr_data_url(data: str) -> str:
        image = qrcode.make(data)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

    @staticmethod
    def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> List[str]:
        alphabet = string.ascii_uppercase + string.digits
        return [''.join(secrets.choice(alphabet) for _ in range(BACKUP_CODE_LENGTH)) for _ in range(count)]

    def verify_totp(self, code: str, secret: Optional[str]) -> bool:
        """Check a code against the secret, allowing one step of clock drift."""
        if not secret or not self.is_valid_totp_code(code):
            return False
        return pyotp.TOTP(secret).verify(code, valid_window=TOTP_VALID_WINDOW)

    @staticmethod
    def generate_email_code() -> str:
        return str(100000 + secrets.randbelow(900000))

    @staticmethod
    def is_valid_email_code(code: str) -> bool:
        return bool(code) and _CODE_RE.match(code) is not None

    @staticmethod
    def is_valid_totp_code(code: str) -> bool:
        return bool(code) and _CODE_RE.match(code) is not None

    @staticmethod
    def get_email_subject(code_type: str) -> str:
        return EMAIL_SUBJECTS.get(code_type, "LawHelp - Verification Code")

    @staticmethod
    def get_email_message(code: str, code_type: str) -> str:
        instructions = EMAIL_INSTRUCTIONS.get(code_type, "This code will expire soon, please use it promptly.")
        return f"Your verification code is: {code}\n\n{instructions}"

    def send_email_code(self, email: str, code: str, code_type: str, name: str = "there") -> bool:
        """Deliver a code by email. Returns False when it could not be sent."""
        sent = self.mailer.send_email(
            email,
            self.get_email_subject(code_type),
            self.get_email_message(code, code_type),
            name=name,
        )
        if not sent and not config.is_production():
            # Local accounts can still be verified from the server log
            logger.info(f"{code_type} code for user {name}: {code}")
        return sent


two_factor_service = TwoFactorService()
