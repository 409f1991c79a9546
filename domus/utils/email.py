"""
utils/email.py

Outbound email over SMTP. With no SMTP_HOST configured the message is
written to the log instead, which is what local development relies on.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from domus.core.config import settings
from domus.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class SMTPConfig:
    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    from_email: str = ""

    @classmethod
    def from_settings(cls) -> "SMTPConfig":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            from_email=settings.EMAILS_FROM,
        )


def _recovery_html(reset_url: str) -> str:
    return (
        "<p>We received a request to reset your password.</p>"
        f'<p><a href="{reset_url}">Choose a new password</a></p>'
        f"<p>The link expires in {settings.RECOVERY_TOKEN_EXPIRE_MINUTES} minutes. "
        "If you did not ask for this, ignore this email.</p>"
    )


class EmailSender:
    def __init__(self, config: Optional[SMTPConfig] = None):
        self.config = config or SMTPConfig.from_settings()

    def _send(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.config.from_email or self.config.username
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.config.host, self.config.port, timeout=30) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.username and self.config.password:
                    server.login(self.config.username, self.config.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            raise EmailDeliveryError() from e

        logger.info(f"Email '{subject}' sent to {to}")

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self.config.host:
            logger.info(f"SMTP disabled, email to {to} not sent. Subject: {subject}\n{html}")
            return
        await run_in_threadpool(self._send, to, subject, html)

    async def send_password_recovery(self, to: str, reset_url: str) -> None:
        await self.send(to, "Password recovery", _recovery_html(reset_url))


def get_email_sender() -> EmailSender:
    return EmailSender()
