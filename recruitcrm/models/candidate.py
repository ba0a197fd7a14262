from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text

from recruitcrm.db.base import Base


class Candidate(Base):
    """Flat candidate record, mostly filled from a parsed CV."""

    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)

    # 1. Identity & contact
    first_name = Column(String)
    middle_name = Column(String)
    last_name = Column(String)
    email_1 = Column(String)
    email_2 = Column(String)
    mobile_phone = Column(String)
    address = Column(String)
    city = Column(String)
    state = Column(String)
    zip = Column(String)

    # 2. Compensation & experience
    current_salary = Column(String)
    desired_salary = Column(String)
    skills = Column(Text)
    current_company = Column(String)
    title = Column(String)
    years_of_experience = Column(String)  # '1+', '3+', '5+' or ''
    category = Column(String)
    industry = Column(String)
    willing_to_relocate = Column(Boolean, default=False)
    date_available = Column(Date, nullable=True)

    # 3. Pipeline meta
    source = Column(String)
    referred_by = Column(String)
    ownership = Column(String)
    general_comments = Column(Text)
    status = Column(String)

    # Storage path of the uploaded CV inside the CV bucket
    cv_url = Column(String, nullable=True)

    user_date_added = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
