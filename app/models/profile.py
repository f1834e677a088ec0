from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

ACCOUNT_STATUSES = ("active", "hibernated", "deleted")


class Profile(Base):
    """Per-user settings and job-search preferences."""

    __tablename__ = "profiles"

    id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    email = Column(String)
    full_name = Column(String)

    # Professional profile used by match analysis
    current_job_title = Column(String)
    experience_level = Column(String)
    skills = Column(JSONB, default=list)
    career_goals = Column(Text)
    short_term_goal = Column(Text)
    long_term_goal = Column(Text)

    # Preferences
    top_values = Column(JSONB, default=list)
    deal_breakers = Column(JSONB, default=list)
    work_location_preference = Column(String)
    preferred_company_size = Column(JSONB)
    preferred_industries = Column(JSONB)

    onboarding_completed = Column(Boolean, default=False)
    account_status = Column(String, default="active", nullable=False)  # active | hibernated | deleted
    deletion_scheduled_at = Column(DateTime(timezone=True))
    # Mirror of subscriptions.tier; written only by subscription_service.mirror_profile_tier
    subscription_tier = Column(String, default="free", nullable=False)
    is_admin = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="profile")
