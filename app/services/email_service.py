"""
Account email delivery.

SMTP when configured; otherwise the message is only logged (recipient and
subject, never the link or token).
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Sends password reset and verification messages."""

    def __init__(self):
        settings = get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.smtp_from_email = settings.smtp_from_email
        self.smtp_from_name = settings.smtp_from_name
        self.smtp_use_tls = settings.smtp_use_tls
        self.frontend_url = settings.frontend_url.rstrip("/")
        self.app_name = settings.app_name

        self.is_configured = bool(self.smtp_host and self.smtp_port)

        if not self.is_configured:
            logger.warning("Email service not configured - emails will only be logged")

    async def send_email(self, to_email: str, subject: str, text_body: str) -> bool:
        if not self.is_configured:
            logger.info(f"[EMAIL] To: {to_email}, Subject: {subject}")
            return True

        try:
            return await asyncio.to_thread(self._send_smtp, to_email, subject, text_body)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

    def _send_smtp(self, to_email: str, subject: str, text_body: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.smtp_from_name} <{self.smtp_from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))

        context = ssl.create_default_context()
        if self.smtp_use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls(context=context)
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.smtp_from_email, to_email, msg.as_string())
        else:
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context) as server:
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.smtp_from_email, to_email, msg.as_string())

        logger.info(f"Email sent to {to_email}")
        return True

    async def send_password_reset(
        self,
        to_email: str,
        token: str,
        user_name: str = "there",
        expiry_minutes: int = 60,
    ) -> bool:
        link = f"{self.frontend_url}/reset-password?token={token}"
        text_body = f"""Hi {user_name},

We received a request to reset the password of your {self.app_name} account.
Open the link below to choose a new password:

{link}

The link expires in {expiry_minutes} minutes and can be used once.
If you didn't ask for this, you can ignore this email.
"""
        return await self.send_email(to_email, f"{self.app_name} - Reset your password", text_body)

    async def send_verification(self, to_email: str, token: str, user_name: str = "there") -> bool:
        link = f"{self.frontend_url}/verify-email?token={token}"
        text_body = f"""Hi {user_name},

Welcome to {self.app_name}! Please confirm your email address:

{link}
"""
        return await self.send_email(to_email, f"{self.app_name} - Confirm your email", text_body)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
