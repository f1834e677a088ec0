import json
import logging
import re

import boto3
from botocore.config import Config
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.schemas.ai import CareerInsights, CompanyResearch, InterviewFeedback, InterviewPrep, MatchAnalysis

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


class LLMResponseError(Exception):
    """The model could not be reached or did not return the expected JSON object."""


def _call_bedrock_llm(prompt: str, timeout: float = 60.0, max_tokens: int = 1200) -> str:
    """Call Bedrock LLM via converse API and return response text."""
    try:
        client = boto3.client(
            "bedrock-runtime",
            region_name=settings.aws_region,
            config=Config(read_timeout=int(timeout), connect_timeout=10),
        )
        response = client.converse(
            modelId=settings.bedrock_llm_model_id,
            messages=[
                {
                    "role": "user",
                    "content": [{"text": prompt}],
                }
            ],
            inferenceConfig={
                "maxTokens": max_tokens,
                "temperature": 0.2,
            },
        )
        blocks = (response.get("output") or {}).get("message", {}).get("content", [])
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict)).strip()
        logger.debug("Bedrock LLM response length=%d", len(text))
        return text
    except Exception as e:
        logger.warning("Bedrock LLM call failed: %s", e)
        raise


def is_llm_enabled() -> bool:
    """Whether Bedrock LLM is enabled."""
    return bool(settings.bedrock_llm_enabled and settings.bedrock_llm_model_id and settings.aws_region)


def extract_json_object(text: str) -> dict:
    """Parse one JSON object from model output, optionally wrapped in ```json or ``` fences."""
    clean = _FENCE_OPEN.sub("", (text or "").strip())
    clean = _FENCE_CLOSE.sub("", clean).strip()
    try:
        obj = json.loads(clean)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Model returned malformed JSON: {e}") from e
    if not isinstance(obj, dict):
        raise LLMResponseError("Model returned JSON that is not an object")
    return obj


def _ask_json(prompt: str, contract: type[BaseModel], *, timeout: float = 60.0, max_tokens: int = 1200):
    """Run a prompt and validate the reply against a pydantic contract."""
    if not is_llm_enabled():
        raise LLMResponseError("AI provider is not configured")
    try:
        text = _call_bedrock_llm(prompt, timeout=timeout, max_tokens=max_tokens)
    except Exception as e:
        raise LLMResponseError(f"AI provider call failed: {e}") from e
    obj = extract_json_object(text)
    try:
        return contract.model_validate(obj)
    except ValidationError as e:
        raise LLMResponseError(f"Model JSON did not match {contract.__name__}: {e.error_count()} errors") from e


def _join(values, empty: str) -> str:
    values = [str(v) for v in (values or []) if str(v or "").strip()]
    return ", ".join(values) if values else empty


def llm_analyze_match(
    job_title: str,
    company_name: str,
    job_description: str,
    location: str | None,
    preferences: dict,
) -> MatchAnalysis:
    """Score a posting 0-100 against the user's career profile and preferences."""
    description = job_description[:3000] + ("..." if len(job_description) > 3000 else "")
    prompt = f"""You are an expert career advisor analyzing job opportunities. Analyze this job posting against
BOTH the candidate's professional qualifications AND their career preferences. Be honest; do not inflate scores.

JOB DETAILS:
- Title: {job_title}
- Company: {company_name}
- Location: {location or "Not specified"}
- Description: {description}

CANDIDATE PROFESSIONAL PROFILE:
- Current Position: {preferences.get("current_job_title") or "Not specified"}
- Experience Level: {preferences.get("experience_level") or "Not specified"}
- Skills: {_join(preferences.get("skills"), "Not specified")}
- Career Goals: {preferences.get("career_goals") or "Not specified"}
- Short-term Goal (1-2 years): {preferences.get("short_term_goal") or "Not specified"}
- Long-term Goal (3-5 years): {preferences.get("long_term_goal") or "Not specified"}

CANDIDATE PREFERENCES:
- Top Values: {_join(preferences.get("top_values"), "Not specified")}
- Deal Breakers: {_join(preferences.get("deal_breakers"), "None specified")}
- Work Location Preference: {preferences.get("work_location_preference") or "Flexible"}
- Preferred Company Sizes: {_join(preferences.get("preferred_company_size"), "Any")}
- Preferred Industries: {_join(preferences.get("preferred_industries"), "Any")}

Respond with ONLY a JSON object (no markdown) in exactly this shape:
{{
  "match_score": <0-100>,
  "category_scores": {{"values_alignment": <0-100>, "culture_fit": <0-100>, "growth_opportunity": <0-100>, "practical_fit": <0-100>}},
  "strengths": ["..."],
  "concerns": ["..."],
  "recommendations": ["..."],
  "interview_question": "<one question the candidate should ask>",
  "summary": "<2-3 sentences>"
}}"""
    return _ask_json(prompt, MatchAnalysis)


def llm_generate_interview_prep(
    job_title: str,
    company_name: str,
    job_description: str,
    company_description: str | None = None,
    culture_summary: str | None = None,
) -> InterviewPrep:
    """Generate an interview question bank for one application."""
    background = f"\nCOMPANY BACKGROUND:\n{company_description}\n" if company_description else ""
    culture = f"\nCOMPANY CULTURE:\n{culture_summary}\n" if culture_summary else ""
    prompt = f"""You are an expert interview coach. Generate interview preparation materials for this position.

JOB DETAILS:
- Title: {job_title}
- Company: {company_name}
- Description: {job_description[:2500]}
{background}{culture}
Include 5 behavioral (STAR) questions, 5 technical/role-specific questions, 3 company-specific questions
and 3 questions about the role itself, plus key topics, preparation tips and company insights.

Respond with ONLY a JSON object (no markdown) in exactly this shape:
{{
  "questions": [
    {{"id": "q1", "category": "behavioral", "question": "...", "tips": ["..."], "sample_answer": "..."}}
  ],
  "key_topics": ["..."],
  "preparation_tips": ["..."],
  "company_insights": ["..."]
}}"""
    return _ask_json(prompt, InterviewPrep, timeout=120.0, max_tokens=4000).numbered()


def _format_seconds(seconds: int) -> str:
    return f"{seconds // 60}m {seconds % 60}s"


def llm_analyze_interview_answers(
    job_title: str,
    company_name: str,
    job_description: str | None,
    questions: list[dict],
    answers: list[dict],
    total_time: int,
) -> InterviewFeedback:
    """Grade a practice session. `answers` are dicts with question_id, answer, time_spent."""
    by_id = {a.get("question_id"): a for a in answers}
    blocks = []
    for idx, q in enumerate(questions, start=1):
        answer = by_id.get(q.get("id")) or {}
        spent = answer.get("time_spent") or 0
        blocks.append(
            f"Question {idx} ({q.get('category', 'general')}):\n{q.get('question', '')}\n"
            f"Candidate's Answer:\n{answer.get('answer') or '(No answer provided)'}\n"
            f"Time Spent: {_format_seconds(spent) if spent else 'N/A'}"
        )
    context = (job_description or "No job description available")[:1000]
    prompt = f"""You are an expert interview coach analyzing a candidate's practice interview for a {job_title}
position at {company_name}.

Job Context:
{context}

The candidate answered {len(questions)} questions in {_format_seconds(total_time)}.

{chr(10).join(blocks)}

Score each answer 0-100 (85+ excellent, 70-84 good, 55-69 moderate, 40-54 weak, below 40 poor).

Respond with ONLY a JSON object (no markdown) in exactly this shape:
{{
  "overall_score": <0-100>,
  "question_feedback": [
    {{"question_id": "q1", "question": "...", "user_answer": "...", "strengths": ["..."],
      "improvements": ["..."], "ideal_approach": "...", "score": <0-100>}}
  ],
  "general_advice": ["..."],
  "encouragement": "..."
}}"""
    return _ask_json(prompt, InterviewFeedback, timeout=120.0, max_tokens=4000)


def llm_research_company(company_name: str, website: str | None = None) -> CompanyResearch:
    """Produce a research record for one company from the model's general knowledge."""
    site = f"WEBSITE: {website}\n" if website else ""
    prompt = f"""You are a professional company researcher. Provide background information that helps a job seeker
decide whether to apply.

COMPANY: {company_name}
{site}
Respond with ONLY a JSON object (no markdown) in exactly this shape:
{{
  "name": "{company_name}",
  "website": "<url or null>",
  "description": "<3-4 sentences>",
  "industry": "...",
  "company_size": "<Startup|Small|Medium|Large|Enterprise>",
  "headquarters": "<city, country>",
  "founded_year": <year or null>,
  "culture_summary": "<2-3 sentences>",
  "pros": ["..."],
  "cons": ["..."],
  "overall_rating": <1.0-5.0>,
  "linkedin_url": "<url or null>",
  "glassdoor_url": "<url or null>"
}}
Be honest and balanced; use null where you do not know."""
    return _ask_json(prompt, CompanyResearch, timeout=settings.research_timeout_seconds)


def llm_generate_insights(stats: dict) -> CareerInsights:
    """Career-coaching read of the user's job search numbers. `stats` is an InsightsStats dump."""
    locations = ", ".join(f"{loc['location']} ({loc['count']})" for loc in stats.get("top_locations") or [])
    location_line = f"- Top Target Locations: {locations}\n" if locations else ""
    prompt = f"""You are an expert career advisor and job search strategist. Analyze these job search statistics
and give personalized, actionable insights.

JOB SEARCH STATISTICS:
- Total Applications Tracked: {stats.get("total_applications", 0)}
- Not Yet Applied: {stats.get("not_applied_count", 0)}
- Applied: {stats.get("applied_count", 0)}
- Currently Interviewing: {stats.get("interviewing_count", 0)}
- Offers Received: {stats.get("offers_count", 0)}
- Rejected: {stats.get("rejected_count", 0)}
- Response Rate: {stats.get("response_rate", 0)}% (interviews + offers / applied)
- Average Match Score: {stats.get("average_match_score", 0)}%
- Recent Activity: {stats.get("recent_applications", 0)} applications in the last 7 days \
(vs {stats.get("previous_applications", 0)} in the previous 7 days)
{location_line}
Fewer than 5 applications: stress volume. Response rate under 10%: focus on quality and targeting.
Many tracked but not applied: encourage action. Doing well: acknowledge it and suggest optimizations.
Use the specific numbers above. Plain text only, no markdown.

Respond with ONLY a JSON object (no markdown) in exactly this shape:
{{
  "overall_assessment": "<2-3 sentences>",
  "key_insights": ["<3-4 items>"],
  "recommendations": ["<5-7 specific actions, most important first>"],
  "closing": "<1-2 encouraging sentences>"
}}"""
    return _ask_json(prompt, CareerInsights, max_tokens=1500)
