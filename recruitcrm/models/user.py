from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from recruitcrm.db.base import Base

ROLES = ("Admin", "Editor", "Viewer")


class User(Base):
    """Role record for a person allowed to use the CRM."""

    __tablename__ = "users_role"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default="Viewer")  # 'Admin' | 'Editor' | 'Viewer'
    first_name = Column(String)
    last_name = Column(String)

    # Set on sign-up; role records are created by an admin first
    hashed_password = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    notifications = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"
