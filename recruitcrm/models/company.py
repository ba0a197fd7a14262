from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from recruitcrm.db.base import Base


class Company(Base):
    """Company tracked by the CRM, optionally filled by enrichment."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False, index=True)
    location = Column(String)
    industry = Column(String)
    number_of_employees = Column(String)  # band such as '11-50' or '1000+'
    website = Column(String)
    linkedin_url = Column(String)
    status = Column(String)

    created_by = Column(Integer, ForeignKey("users_role.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
