"""
Contact form endpoint.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from recruitcrm.core.config import settings
from recruitcrm.core.errors import APIError
from recruitcrm.core.logging import get_logger
from recruitcrm.services.email import EmailError, Mailer, contact_email, get_mailer

logger = get_logger("contact")

router = APIRouter()

CONTACT_EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


@router.post("")
def send_contact_message(
    body: ContactRequest,
    mailer: Mailer = Depends(get_mailer),
):
    """Forward a contact form submission to the configured recipient."""
    if not body.name or not body.email or not body.message:
        raise APIError(status.HTTP_400_BAD_REQUEST, "All fields are required")

    if not re.match(CONTACT_EMAIL_PATTERN, body.email):
        raise APIError(status.HTTP_400_BAD_REQUEST, "Please enter a valid email address")

    subject, html, text = contact_email(body.name, body.email, body.message)

    if not settings.CONTACT_RECIPIENT:
        logger.info(f"CONTACT_RECIPIENT not set - contact message from {body.email} logged only: {subject}")
        return {"message": "Message sent successfully"}

    try:
        mailer.send(settings.CONTACT_RECIPIENT, subject, html, text)
    except EmailError as e:
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to send message: {e}")

    return {"message": "Message sent successfully"}
