"""
Recruit CRM Database Seeder

Creates the tables and the first Admin role record, so that person can sign
up and add everyone else from the users admin.

    ADMIN_EMAIL=you@example.com python seed_db.py
"""

import os
from typing import Optional

from recruitcrm.db.session import SessionLocal, engine
from recruitcrm.db.base import Base
from recruitcrm.models import User, Candidate, Company, Notification  # noqa: F401
from recruitcrm.core.security import get_password_hash

DEFAULT_ADMIN_EMAIL = "admin@recruitcrm.local"


def seed_database(
    email: Optional[str] = None,
    first_name: str = "Admin",
    last_name: str = "",
    password: Optional[str] = None,
) -> User:
    """
    Seed the database with the first Admin.

    Returns the existing record untouched if the email is already registered.
    When ``password`` is given the account is created ready to sign in;
    otherwise the admin completes sign-up through the API.
    """
    email = (email or os.environ.get("ADMIN_EMAIL") or DEFAULT_ADMIN_EMAIL).strip().lower()
    password = password or os.environ.get("ADMIN_PASSWORD")

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"Role record for {email} already exists ({existing.role}). Skipping...")
            return existing

        print("Seeding database...")

        admin = User(
            email=email,
            role="Admin",
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password) if password else None,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        print("✅ Database seeded successfully!")
        print(f"\n📋 Admin: {email}")
        if password:
            print("Sign in with the password you provided.")
        else:
            print("Sign up with this email to set a password.")

        return admin

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
