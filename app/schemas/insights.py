from pydantic import BaseModel, Field

from app.schemas.ai import CareerInsights


class LocationCount(BaseModel):
    location: str
    count: int


class InsightsStats(BaseModel):
    total_applications: int = 0
    not_applied_count: int = 0
    applied_count: int = 0
    interviewing_count: int = 0
    offers_count: int = 0
    rejected_count: int = 0
    response_rate: float = 0.0  # (interviewing + offers) / applied, percent
    average_match_score: int = 0
    recent_applications: int = 0  # created in the last 7 days
    previous_applications: int = 0  # created 7-14 days ago
    top_locations: list[LocationCount] = Field(default_factory=list)


class InsightsResponse(BaseModel):
    stats: InsightsStats
    insights: CareerInsights
