import logging

from app.models.profile import Profile
from app.services.llm_client import llm_analyze_match

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_CHARS = 100

PREFERENCE_FIELDS = (
    "top_values",
    "deal_breakers",
    "work_location_preference",
    "preferred_company_size",
    "preferred_industries",
)
PROFILE_FIELDS = (
    "current_job_title",
    "experience_level",
    "skills",
    "career_goals",
    "short_term_goal",
    "long_term_goal",
)

NO_PREFERENCES_ANALYSIS = {
    "strengths": [],
    "concerns": [],
    "recommendations": ["Set your job preferences to get personalized match insights"],
    "summary": "Complete your profile preferences to receive AI-powered job matching analysis.",
}
SHORT_DESCRIPTION_ANALYSIS = {
    "strengths": [],
    "concerns": [],
    "recommendations": ["Add the full job description to get an AI match analysis"],
    "summary": "The job description is too short or missing, so no match analysis was run.",
}


class MatchInputError(ValueError):
    """Job title or company name missing."""


def has_preferences(profile: Profile | None) -> bool:
    if profile is None:
        return False
    return any(bool(getattr(profile, field, None)) for field in PREFERENCE_FIELDS)


def preferences_from_profile(profile: Profile) -> dict:
    return {field: getattr(profile, field, None) for field in PREFERENCE_FIELDS + PROFILE_FIELDS}


def analyze_match(
    job_title: str | None,
    company_name: str | None,
    job_description: str | None,
    location: str | None,
    profile: Profile | None,
) -> tuple[int | None, dict, bool]:
    """
    Returns (match_score, analysis, analyzed).

    Short descriptions and empty preferences short-circuit to a null score without calling the model.
    LLMResponseError from the model propagates to the caller.
    """
    job_title = (job_title or "").strip()
    company_name = (company_name or "").strip()
    if not job_title or not company_name:
        raise MatchInputError("Job title and company name are required")

    description = (job_description or "").strip()
    if len(description) < MIN_DESCRIPTION_CHARS:
        logger.info("Match analysis skipped: description too short (%d chars)", len(description))
        return None, dict(SHORT_DESCRIPTION_ANALYSIS), False
    if not has_preferences(profile):
        logger.info("Match analysis skipped: profile has no preferences")
        return None, dict(NO_PREFERENCES_ANALYSIS), False

    result = llm_analyze_match(job_title, company_name, description, location, preferences_from_profile(profile))
    logger.info("Match analysis done: company=%s score=%d", company_name, result.match_score)
    return result.match_score, result.model_dump(), True
