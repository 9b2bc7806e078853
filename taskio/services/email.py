"""Outbound email delivery.

Sends mail over SMTP when SMTP_HOST is configured. Without it, deliveries
are only logged, which is what local development and tests rely on.
Failures propagate to the caller; there is no retry.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from taskio.config import get_settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body_html: str) -> None:
    """Send an HTML email.

    Args:
        to_email: Recipient address
        subject: Message subject
        body_html: HTML body

    Raises:
        smtplib.SMTPException, OSError: If the transport fails
    """
    settings = get_settings()

    if not settings.SMTP_HOST:
        logger.info(
            "[SIMULATED] Delivering email",
            extra={"recipient": to_email, "subject": subject},
        )
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg.attach(MIMEText(body_html, "html"))

    with smtplib.SMTP(
        settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
    ) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email delivered", extra={"recipient": to_email, "subject": subject})


def send_password_reset_email(to_email: str, token: str) -> None:
    """Send the password reset link."""
    settings = get_settings()
    reset_url = f"{settings.FRONTEND_URL}/#/reset-password?token={token}"

    body = f"""
    <h2>Reset your password</h2>
    <p>Click the link below to reset your password:</p>
    <p><a href="{reset_url}" target="_blank">{reset_url}</a></p>
    <p>This link expires in {settings.RESET_TOKEN_EXPIRATION_HOURS} hour.</p>
    """

    send_email(to_email, "Reset your password - Taskio", body)
