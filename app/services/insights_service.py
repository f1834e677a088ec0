"""
Job search insights: counts over the user's applications plus a career-coaching read of them.

The AI read fails soft like interview prep: when the model is unavailable or its JSON is unusable,
rule-based recommendations are returned with is_fallback set.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone

from app.repos import application_repo
from app.schemas.ai import CareerInsights
from app.schemas.insights import InsightsResponse, InsightsStats, LocationCount
from app.services.llm_client import LLMResponseError, llm_generate_insights

logger = logging.getLogger(__name__)

TREND_WINDOW = timedelta(days=7)
TOP_LOCATION_COUNT = 5
LOW_MATCH_SCORE = 70
WEEKLY_TARGET = 3


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_stats(applications, now: datetime | None = None) -> InsightsStats:
    now = now or datetime.now(timezone.utc)
    total = len(applications)
    by_status = Counter(a.status for a in applications)
    applied = by_status["applied"]
    responded = by_status["interviewing"] + by_status["offer"]

    # Unscored applications count as 0, so analyzing more postings moves the average.
    average = round(sum(a.match_score or 0 for a in applications) / total) if total else 0

    locations = Counter(a.location.strip() for a in applications if a.location and a.location.strip())
    created = [_aware(a.created_at) for a in applications if a.created_at is not None]
    return InsightsStats(
        total_applications=total,
        not_applied_count=by_status["not_applied"],
        applied_count=applied,
        interviewing_count=by_status["interviewing"],
        offers_count=by_status["offer"],
        rejected_count=by_status["rejected"],
        response_rate=round(responded / applied * 100, 1) if applied else 0.0,
        average_match_score=average,
        recent_applications=sum(1 for c in created if c >= now - TREND_WINDOW),
        previous_applications=sum(1 for c in created if now - 2 * TREND_WINDOW <= c < now - TREND_WINDOW),
        top_locations=[
            LocationCount(location=loc, count=count) for loc, count in locations.most_common(TOP_LOCATION_COUNT)
        ],
    )


def build_fallback_insights(stats: InsightsStats) -> CareerInsights:
    if stats.total_applications == 0:
        return CareerInsights(
            overall_assessment="You have not tracked any applications yet.",
            recommendations=["Add the jobs you are interested in to start tracking your search"],
            closing="Every search starts with the first application.",
            is_fallback=True,
        )

    recommendations = []
    if stats.applied_count == 0:
        recommendations.append("Start applying to the jobs you've tracked")
    if stats.response_rate == 0 and stats.applied_count > 0:
        recommendations.append("Follow up on your applications to increase response rate")
    if stats.average_match_score < LOW_MATCH_SCORE:
        recommendations.append("Consider targeting companies with higher match scores")
    if stats.recent_applications < WEEKLY_TARGET:
        recommendations.append("Try to apply to at least 3-5 jobs per week for better results")
    if not recommendations:
        recommendations.append("Keep your current pace and prepare for upcoming interviews")

    return CareerInsights(
        overall_assessment=(
            f"You are tracking {stats.total_applications} applications and have applied to "
            f"{stats.applied_count}, with a {stats.response_rate}% response rate."
        ),
        key_insights=[
            f"{stats.interviewing_count} interviewing and {stats.offers_count} offers so far",
            f"Average match score is {stats.average_match_score}%",
            f"{stats.recent_applications} applications in the last 7 days "
            f"vs {stats.previous_applications} the week before",
        ],
        recommendations=recommendations,
        closing="Consistent effort pays off. Keep going.",
        is_fallback=True,
    )


def generate_insights(stats: InsightsStats) -> CareerInsights:
    if stats.total_applications == 0:
        return build_fallback_insights(stats)
    try:
        return llm_generate_insights(stats.model_dump())
    except LLMResponseError as e:
        logger.warning("Insights fell back to template: %s", e)
        return build_fallback_insights(stats)


def insights_for_user(db, user_id: str) -> InsightsResponse:
    stats = compute_stats(application_repo.list_all_for_user(db, user_id))
    insights = generate_insights(stats)
    logger.info(
        "Insights generated for user=%s applications=%d fallback=%s",
        user_id,
        stats.total_applications,
        insights.is_fallback,
    )
    return InsightsResponse(stats=stats, insights=insights)
