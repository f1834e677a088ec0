"""Typed contracts for JSON returned by the LLM. Parsed once in llm_client, never ad hoc."""

import math

from pydantic import BaseModel, Field, field_validator


def _clamp_int(value, low: int, high: int) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, OverflowError) as e:
        # pydantic only reports ValueError as a validation failure
        raise ValueError(f"not a score: {value!r}") from e
    return max(low, min(high, number))


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v or "").strip()]


class CategoryScores(BaseModel):
    values_alignment: int = 0
    culture_fit: int = 0
    growth_opportunity: int = 0
    practical_fit: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_int(v if v is not None else 0, 0, 100)


class MatchAnalysis(BaseModel):
    match_score: int
    category_scores: CategoryScores = Field(default_factory=CategoryScores)
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    interview_question: str = ""
    summary: str = ""

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp_match_score(cls, v):
        return _clamp_int(v, 0, 100)

    @field_validator("strengths", "concerns", "recommendations", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)


class InterviewQuestion(BaseModel):
    id: str = ""
    category: str = "role-specific"
    question: str
    tips: list[str] = Field(default_factory=list)
    sample_answer: str | None = None

    @field_validator("tips", mode="before")
    @classmethod
    def coerce_tips(cls, v):
        return _string_list(v)


class InterviewPrep(BaseModel):
    questions: list[InterviewQuestion] = Field(default_factory=list)
    key_topics: list[str] = Field(default_factory=list)
    preparation_tips: list[str] = Field(default_factory=list)
    company_insights: list[str] = Field(default_factory=list)
    generated_at: str | None = None
    is_fallback: bool = False

    @field_validator("key_topics", "preparation_tips", "company_insights", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)

    def numbered(self) -> "InterviewPrep":
        """Fill missing question ids as q1, q2, ..."""
        for idx, question in enumerate(self.questions, start=1):
            if not question.id:
                question.id = f"q{idx}"
        return self


class QuestionFeedback(BaseModel):
    question_id: str
    question: str = ""
    user_answer: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    ideal_approach: str = ""
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_int(v if v is not None else 0, 0, 100)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)


class InterviewFeedback(BaseModel):
    overall_score: int
    question_feedback: list[QuestionFeedback]
    general_advice: list[str] = Field(default_factory=list)
    encouragement: str = ""
    is_fallback: bool = False

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_overall(cls, v):
        return _clamp_int(v, 0, 100)

    @field_validator("general_advice", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)


class CompanyResearch(BaseModel):
    name: str
    website: str | None = None
    description: str | None = None
    industry: str | None = None
    company_size: str | None = None
    headquarters: str | None = None
    founded_year: int | None = None
    culture_summary: str | None = None
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    overall_rating: float | None = None
    linkedin_url: str | None = None
    glassdoor_url: str | None = None

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)

    @field_validator("overall_rating", mode="before")
    @classmethod
    def clamp_rating(cls, v):
        if v is None or v == "":
            return None
        try:
            rating = float(v)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(rating):
            return None
        return max(0.0, min(5.0, rating))

    @field_validator("founded_year", mode="before")
    @classmethod
    def parse_year(cls, v):
        if v in (None, "", "Unknown"):
            return None
        try:
            return int(str(v)[:4])
        except ValueError:
            return None


class CareerInsights(BaseModel):
    overall_assessment: str
    key_insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    closing: str = ""
    is_fallback: bool = False

    @field_validator("key_insights", "recommendations", mode="before")
    @classmethod
    def coerce_lists(cls, v):
        return _string_list(v)
