"""
Authentication API endpoints.

Only emails that an admin registered in the role table may sign up, sign in
or reset a password. Sessions idle out after a fixed inactivity window.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitcrm.core.config import settings
from recruitcrm.core.errors import APIError, database_error
from recruitcrm.core.logging import get_logger
from recruitcrm.core.security import (
    create_access_token,
    create_reset_token,
    decode_access_token,
    get_password_hash,
    get_reset_token_email,
    verify_password,
)
from recruitcrm.core.session import sessions
from recruitcrm.db.session import get_db
from recruitcrm.models import User
from recruitcrm.services.email import EmailError, Mailer, get_mailer, password_reset_email

logger = get_logger("auth")

router = APIRouter()

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"


# ============== Pydantic Schemas ==============


class EmailRequest(BaseModel):
    """Body carrying a single (possibly missing) email."""

    email: Optional[str] = None


class SignupRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError("Invalid email format")
        return v.lower()


class UpdatePasswordRequest(BaseModel):
    token: str
    password: str


class ActivityRequest(BaseModel):
    event: str = "request"


class RoleRecord(BaseModel):
    """Role record as returned by the role lookup."""

    id: int
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    idle_timeout_seconds: int


# ============== Helper Functions ==============


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a role record by email address (case-insensitive)."""
    return db.query(User).filter(User.email == email.lower()).first()


def lookup_role(db: Session, email: str) -> Optional[User]:
    """Role lookup that surfaces datastore failures as 500s."""
    try:
        return get_user_by_email(db, email)
    except SQLAlchemyError as e:
        raise database_error(e, "Database error occurred. Please try again")


def _session_expired() -> APIError:
    return APIError(
        status.HTTP_401_UNAUTHORIZED,
        "Session expired. Please sign in again.",
        extra={"redirect": "/"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _access_payload(token: str) -> dict:
    payload = decode_access_token(token)
    if payload is None or payload.get("purpose") or not payload.get("sub") or not payload.get("sid"):
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def authenticate_token(db: Session, token: str, event: str = "request") -> User:
    """
    Resolve a bearer token to its user, counting the call as activity.

    Raises APIError 401 if the token is invalid, the session has been signed
    out or has idled out, or the role record is gone.
    """
    payload = _access_payload(token)

    if not sessions.touch(payload["sid"], event):
        raise _session_expired()

    user = get_user_by_email(db, payload["sub"])
    if user is None:
        sessions.end(payload["sid"])
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Dependency to get the current authenticated user from the JWT token."""
    return authenticate_token(db, token)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise APIError(status.HTTP_403_FORBIDDEN, "Admin access required")
    return current_user


async def require_editor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in ("Admin", "Editor"):
        raise APIError(status.HTTP_403_FORBIDDEN, "Editor access required")
    return current_user


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )


# ============== API Endpoints ==============


@router.post("/check-role")
async def check_role(body: EmailRequest, db: Session = Depends(get_db)):
    """
    Look up the role record for an email.

    Returns ``{"data": null}`` when there is no match; that is not an error.
    """
    if not body.email:
        raise APIError(status.HTTP_400_BAD_REQUEST, "Email is required")

    try:
        user = get_user_by_email(db, body.email)
    except SQLAlchemyError as e:
        logger.error(f"Role lookup failed for {body.email}: {e}")
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, str(getattr(e, "orig", e)))

    return {"data": RoleRecord.model_validate(user).model_dump() if user else None}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    """Create login credentials for an email an admin has already registered."""
    user = lookup_role(db, body.email)
    if user is None:
        raise APIError(
            status.HTTP_403_FORBIDDEN,
            "This email is not authorized to create an account. Please contact your administrator.",
        )

    if user.hashed_password:
        raise APIError(status.HTTP_409_CONFLICT, "User already registered")

    _validate_password(body.password)

    user.hashed_password = get_password_hash(body.password)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to create account")

    logger.info(f"Account created for {user.email}")
    return {"success": True, "user": RoleRecord.model_validate(user).model_dump()}


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Login and get a JWT access token.

    Uses OAuth2 password flow. Send username (email) and password
    as form data.
    """
    user = lookup_role(db, form_data.username)
    if user is None:
        raise APIError(
            status.HTTP_403_FORBIDDEN,
            "This email is not authorized to sign in. Please contact your administrator.",
        )

    if not user.hashed_password or not verify_password(form_data.password, user.hashed_password):
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session_id = sessions.start(user.email)
    access_token = create_access_token(data={"sub": user.email, "sid": session_id})

    return Token(
        access_token=access_token,
        role=user.role,
        idle_timeout_seconds=int(sessions.timeout.total_seconds()),
    )


@router.post("/logout")
async def logout(token: str = Depends(oauth2_scheme)):
    """End the session bound to the presented token."""
    payload = _access_payload(token)
    sessions.end(payload["sid"])
    return {"success": True}


@router.get("/me", response_model=RoleRecord)
async def get_me(current_user: User = Depends(get_current_user)):
    """Current authenticated user with role and names."""
    return current_user


@router.post("/activity")
async def record_activity(
    body: ActivityRequest,
    token: str = Depends(oauth2_scheme),
):
    """
    Record a client input-activity event.

    Activity events restart the idle countdown; other events are accepted
    but leave it running.
    """
    payload = _access_payload(token)
    if not sessions.touch(payload["sid"], body.event):
        raise _session_expired()

    return {
        "active": True,
        "remaining_seconds": int(sessions.remaining(payload["sid"]).total_seconds()),
    }


@router.post("/reset-password")
def reset_password(
    body: EmailRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Email a password reset link to a registered user."""
    if not body.email:
        raise APIError(status.HTTP_400_BAD_REQUEST, "Email is required")

    user = lookup_role(db, body.email)
    if user is None:
        raise APIError(
            status.HTTP_404_NOT_FOUND,
            "This email is not found in our system. Please contact your administrator.",
        )

    reset_link = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/reset-password?token={create_reset_token(user.email)}"
    subject, html = password_reset_email(reset_link)

    try:
        mailer.send(user.email, subject, html)
    except EmailError as e:
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to send reset email: {e}",
        )

    return {"success": True}


@router.post("/update-password")
def update_password(body: UpdatePasswordRequest, db: Session = Depends(get_db)):
    """Set a new password using the token from a reset link."""
    email = get_reset_token_email(body.token)
    if email is None:
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid or expired reset link. Please request a new password reset.",
        )

    _validate_password(body.password)

    user = lookup_role(db, email)
    if user is None:
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid or expired reset link. Please request a new password reset.",
        )

    user.hashed_password = get_password_hash(body.password)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to update password")

    # Existing sessions were opened with the old password
    sessions.end_all_for(user.email)
    logger.info(f"Password updated for {user.email}")
    return {"success": True}
