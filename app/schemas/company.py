from datetime import datetime

from pydantic import BaseModel, Field


class CompanyResponse(BaseModel):
    id: str
    slug: str
    name: str
    website: str | None = None
    description: str | None = None
    industry: str | None = None
    company_size: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    culture_summary: str | None = None
    pros: list[str] | None = None
    cons: list[str] | None = None
    overall_rating: float | None = None
    linkedin_url: str | None = None
    glassdoor_url: str | None = None
    last_researched_at: datetime | None = None

    class Config:
        from_attributes = True


class CompanyResearchRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=500)
    website: str | None = Field(default=None, max_length=2000)
    application_id: str | None = None
