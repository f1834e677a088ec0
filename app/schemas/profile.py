from datetime import datetime

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: str
    email: str | None = None
    full_name: str | None = None
    current_job_title: str | None = None
    experience_level: str | None = None
    skills: list[str] | None = None
    career_goals: str | None = None
    short_term_goal: str | None = None
    long_term_goal: str | None = None
    top_values: list[str] | None = None
    deal_breakers: list[str] | None = None
    work_location_preference: str | None = None
    preferred_company_size: list[str] | None = None
    preferred_industries: list[str] | None = None
    onboarding_completed: bool = False
    account_status: str = "active"
    deletion_scheduled_at: datetime | None = None
    subscription_tier: str = "free"
    is_admin: bool = False

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=200)
    current_job_title: str | None = Field(default=None, max_length=200)
    experience_level: str | None = Field(default=None, max_length=100)
    skills: list[str] | None = None
    career_goals: str | None = Field(default=None, max_length=5000)
    short_term_goal: str | None = Field(default=None, max_length=2000)
    long_term_goal: str | None = Field(default=None, max_length=2000)
    top_values: list[str] | None = None
    deal_breakers: list[str] | None = None
    work_location_preference: str | None = Field(default=None, max_length=100)
    preferred_company_size: list[str] | None = None
    preferred_industries: list[str] | None = None
