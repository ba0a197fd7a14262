"""Transactional email through the Resend HTTP API."""

from html import escape
from typing import Optional

import httpx

from recruitcrm.core.config import settings
from recruitcrm.core.logging import get_logger

logger = get_logger("email")

RESEND_ENDPOINT = "https://api.resend.com/emails"


class EmailError(Exception):
    """Raised when the email provider rejects a message."""


class Mailer:
    def __init__(self, api_key: str, sender: str, timeout: float = 15.0):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """
        Send one message.

        Returns False without sending when no API key is configured.

        Raises:
            EmailError: when the provider call fails
        """
        if not self.api_key:
            logger.warning(f"RESEND_API_KEY not set - email '{subject}' to {to} not sent")
            return False

        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        if text:
            payload["text"] = text

        try:
            response = httpx.post(
                RESEND_ENDPOINT,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {to}: {e}")
            raise EmailError(str(e)) from e

        logger.info(f"Email sent successfully to {to}")
        return True


def get_mailer() -> Mailer:
    return Mailer(settings.RESEND_API_KEY, settings.EMAIL_FROM)


def password_reset_email(reset_link: str) -> tuple[str, str]:
    subject = f"Reset your {settings.APP_NAME} password"
    html = (
        f"<h2>Password reset</h2>"
        f"<p>Someone asked to reset the password for your {escape(settings.APP_NAME)} account.</p>"
        f'<p><a href="{escape(reset_link)}">Choose a new password</a></p>'
        f"<p>The link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes. "
        f"If you did not ask for this, ignore this email.</p>"
    )
    return subject, html


def contact_email(name: str, email: str, message: str) -> tuple[str, str, str]:
    subject = f"New Contact Form Message from {name}"
    html = (
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>Name:</strong> {escape(name)}</p>"
        f"<p><strong>Email:</strong> {escape(email)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{escape(message).replace(chr(10), '<br>')}</p>"
    )
    text = f"New Contact Form Submission\n\nName: {name}\nEmail: {email}\nMessage: {message}\n"
    return subject, html, text
