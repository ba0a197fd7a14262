"""
User administration endpoints.

Admins manage the role table that decides who may sign in.
"""

import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitcrm.api.routes.auth import EMAIL_PATTERN, require_admin
from recruitcrm.core.errors import APIError, database_error
from recruitcrm.core.session import sessions
from recruitcrm.db.session import get_db
from recruitcrm.models import ROLES, User

router = APIRouter()

DUPLICATE_EMAIL = "A user with this email already exists"


# ============== Pydantic Schemas ==============


def _check_role(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in ROLES:
        raise ValueError(f"Role must be one of {', '.join(ROLES)}")
    return v


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is not None and not re.match(EMAIL_PATTERN, v):
        raise ValueError("Invalid email format")
    return v.lower() if v else v


class UserCreate(BaseModel):
    email: str
    role: str = "Viewer"
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _check_role(v)


class UserUpdate(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _check_role(v)


class UserResponse(BaseModel):
    id: int
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    has_account: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
            has_account=bool(user.hashed_password),
            created_at=user.created_at,
        )


# ============== API Endpoints ==============


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """All role records, newest first."""
    try:
        users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    except SQLAlchemyError as e:
        raise database_error(e, "Failed to fetch users")
    return [UserResponse.from_user(user) for user in users]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Register an email with a role so its owner can sign up."""
    user = User(**user_data.model_dump())
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to save user", conflict_message=DUPLICATE_EMAIL)

    db.refresh(user)
    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise APIError(status.HTTP_404_NOT_FOUND, "User not found")

    previous_email = user.email
    for key, value in user_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to save user", conflict_message=DUPLICATE_EMAIL)

    if user.email != previous_email:
        sessions.end_all_for(previous_email)

    db.refresh(user)
    return UserResponse.from_user(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise APIError(status.HTTP_404_NOT_FOUND, "User not found")

    if user.id == current_user.id:
        raise APIError(status.HTTP_400_BAD_REQUEST, "You cannot delete your own account")

    email = user.email
    db.delete(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to delete user")

    sessions.end_all_for(email)
    return {"message": "User deleted", "user_id": user_id}
