"""
Email service for LawHelp.
Delivers verification and two-factor codes over SMTP.
"""

import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from lawhelp.core.config import EmailConfig, get_config
from lawhelp.core.security import SecureLogger

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails."""

    def __init__(self, settings: Optional[EmailConfig] = None, app_name: Optional[str] = None):
        """Initialize email service."""
        config = get_config()
        self.settings = settings or config.email
        self.app_name = app_name or config.application.app_name
        self.smtp_server = self.settings.smtp_server
        self.smtp_port = self.settings.smtp_port
        self.sender_email = self.settings.email_from or self.settings.smtp_username

        # Check if email is configured
        if not self.settings.is_configured:
            logger.warning("Email service not configured - SMTP credentials missing")
            logger.warning(f"SMTP_USERNAME: {'SET' if self.settings.smtp_username else 'NOT SET'}")
            logger.warning(f"SMTP_PASSWORD: {'SET' if self.settings.smtp_password else 'NOT SET'}")
            self.is_configured = False
        else:
            self.is_configured = True
            logger.info(f"Email service configured with {self.smtp_server}:{self.smtp_port}")

    def _render_html(self, name: str, body: str) -> str:
        paragraphs = "".join(f"<p>{line}</p>" for line in body.split("\n") if line.strip())
        return f"""
            <html>
            <body>
                <h2>{self.app_name}</h2>
                <p>Hello {name},</p>
                {paragraphs}
                <br>
                <p>Best regards,<br>The {self.app_name} Team</p>
            </body>
            </html>
            """

    def send_email(self, email: str, subject: str, body: str, name: str = "there") -> bool:
        """
        Send a plain text + HTML email.

        Returns:
            True when the SMTP server accepted the message, False otherwise.
        """
        if not self.is_configured:
            logger.warning("Email service not configured - cannot send email")
            return False

        try:
            text_content = f"Hello {name},\n\n{body}\n\nBest regards,\nThe {self.app_name} Team"

            # Create message
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = self.sender_email
            message["To"] = email

            message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(self._render_html(name, body), "html"))

            # Send email
            context = ssl.create_default_context()
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls(context=context)
                server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.sendmail(self.sender_email, email, message.as_string())

            SecureLogger.log_securely("info", f"Email '{subject}' sent to {email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            SecureLogger.log_securely("error", f"Failed to send email to {email}: {str(e)}")
            return False


# Initialize email service
email_service = EmailService()
