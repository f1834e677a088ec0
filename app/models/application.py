from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

APPLICATION_STATUSES = ("not_applied", "applied", "interviewing", "offer", "rejected", "withdrawn")


class Application(Base):
    """One user's candidacy for one job posting."""

    __tablename__ = "applications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Linked asynchronously by the research worker
    company_id = Column(String, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)

    job_title = Column(String, nullable=False)
    company_name = Column(String, nullable=False)  # free text, may differ from companies.name
    location = Column(String)
    job_url = Column(String)
    job_description = Column(Text)

    status = Column(String, default="not_applied", nullable=False)
    applied_date = Column(DateTime(timezone=True))

    match_score = Column(Integer)  # 0-100 or NULL
    match_analysis = Column(JSONB)

    interview_prep_enabled = Column(Boolean, default=False)
    interview_questions = Column(JSONB)
    interview_prep_generated_at = Column(DateTime(timezone=True))

    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    company = relationship("Company", back_populates="applications")
