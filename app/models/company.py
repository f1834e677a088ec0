import re

from sqlalchemy import Column, String, Text, Integer, Float, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def compute_company_slug(name: str) -> str:
    """Natural key for companies: lowercase, non-alphanumeric runs -> '-', trimmed."""
    return _NON_ALNUM.sub("-", str(name or "").lower()).strip("-")


class Company(Base):
    """Shared company research record, deduplicated across users by slug."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    website = Column(String)
    description = Column(Text)
    industry = Column(String)
    company_size = Column(String)  # Startup | Small | Medium | Large | Enterprise
    headquarters = Column(String)
    founded_year = Column(Integer)
    culture_summary = Column(Text)
    pros = Column(JSONB, default=list)
    cons = Column(JSONB, default=list)
    overall_rating = Column(Float)  # 0.0 - 5.0
    linkedin_url = Column(String)
    glassdoor_url = Column(String)
    last_researched_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    applications = relationship("Application", back_populates="company")
