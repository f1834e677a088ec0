from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ApplicationStatus = Literal["not_applied", "applied", "interviewing", "offer", "rejected", "withdrawn"]


class ScrapeRequest(BaseModel):
    url: str = Field(min_length=1, max_length=2000)


class ScrapedJob(BaseModel):
    job_title: str = ""
    company_name: str = ""
    location: str = ""
    description: str = ""
    success: bool = False
    error: str | None = None


class AnalyzeMatchRequest(BaseModel):
    """Either an existing application id, or the job fields of an unsaved posting."""

    application_id: str | None = None
    job_title: str | None = Field(default=None, max_length=500)
    company_name: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=500)
    job_description: str | None = Field(default=None, max_length=50000)


class AnalyzeMatchResponse(BaseModel):
    success: bool = True
    match_score: int | None
    analysis: dict
    analyzed: bool


class ApplicationCreate(BaseModel):
    job_url: str | None = Field(default=None, max_length=2000)
    job_title: str | None = Field(default=None, max_length=500)
    company_name: str | None = Field(default=None, max_length=500)
    company_website: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=500)
    job_description: str | None = Field(default=None, max_length=50000)
    status: ApplicationStatus = "not_applied"
    applied_date: datetime | None = None
    notes: str | None = None
    # Preview result from /applications/analyze-match, saved as-is
    match_score: int | None = Field(default=None, ge=0, le=100)
    match_analysis: dict | None = None
    # Run the wizard stages server-side when the client did not
    scrape: bool = False
    analyze: bool = False
    research_company: bool = True
    interview_prep_enabled: bool = False


class ApplicationUpdate(BaseModel):
    job_title: str | None = Field(default=None, max_length=500)
    company_name: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=500)
    job_url: str | None = Field(default=None, max_length=2000)
    job_description: str | None = Field(default=None, max_length=50000)
    status: ApplicationStatus | None = None
    applied_date: datetime | None = None
    notes: str | None = None
    interview_prep_enabled: bool | None = None


class ApplicationResponse(BaseModel):
    id: str
    user_id: str
    company_id: str | None = None
    job_title: str
    company_name: str
    location: str | None = None
    job_url: str | None = None
    job_description: str | None = None
    status: str
    applied_date: datetime | None = None
    match_score: int | None = None
    match_analysis: dict | None = None
    interview_prep_enabled: bool = False
    interview_questions: dict | None = None
    interview_prep_generated_at: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class DeleteApplicationsRequest(BaseModel):
    ids: list[str] = Field(min_length=1, max_length=100)


class DeleteApplicationsResponse(BaseModel):
    success: bool = True
    deleted: int
    deletions_remaining: int | None = None


class DeleteLimitResponse(BaseModel):
    tier: str
    remaining: int | None


class PracticeAnswer(BaseModel):
    question_id: str
    answer: str = ""
    time_spent: int = Field(default=0, ge=0)  # seconds


class InterviewFeedbackRequest(BaseModel):
    answers: list[PracticeAnswer]
    total_time: int = Field(default=0, ge=0)  # seconds
