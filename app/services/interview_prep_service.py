"""
Interview question banks and practice-answer feedback.

Both AI calls fail soft: when the model is unavailable or returns unusable JSON, a templated
fallback is returned (flagged with is_fallback) so the practice flow never blocks.
"""

import logging
from datetime import datetime, timezone

from app.database import SessionLocal
from app.models.application import Application
from app.repos.application_repo import get_by_id as get_application_by_id, set_interview_prep
from app.repos.company_repo import get_by_id as get_company_by_id
from app.schemas.ai import InterviewFeedback, InterviewPrep, InterviewQuestion, QuestionFeedback
from app.services.llm_client import LLMResponseError, llm_analyze_interview_answers, llm_generate_interview_prep

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_CHARS = 100
FALLBACK_OVERALL_SCORE = 70
FALLBACK_QUESTION_SCORE = 65


class InterviewPrepInputError(ValueError):
    """Application is missing what prep generation needs."""


def build_fallback_prep(job_title: str, company_name: str) -> InterviewPrep:
    questions = [
        InterviewQuestion(
            category="behavioral",
            question="Tell me about a time you delivered a difficult project under a tight deadline.",
            tips=["Use the STAR method", "Quantify the result"],
        ),
        InterviewQuestion(
            category="behavioral",
            question="Describe a disagreement with a teammate and how you resolved it.",
            tips=["Focus on listening and the outcome", "Show what you learned"],
        ),
        InterviewQuestion(
            category="role-specific",
            question=f"What experience makes you a strong fit for the {job_title} role?",
            tips=["Map your experience to the job description", "Pick two or three concrete examples"],
        ),
        InterviewQuestion(
            category="company",
            question=f"Why do you want to work at {company_name}?",
            tips=["Reference the company's products and mission", "Connect it to your own goals"],
        ),
        InterviewQuestion(
            category="role",
            question="What would you aim to accomplish in your first 90 days?",
            tips=["Show you understand the role's priorities", "Balance learning with early wins"],
        ),
    ]
    return InterviewPrep(
        questions=questions,
        key_topics=[f"Core responsibilities of a {job_title}", f"{company_name}'s products and customers"],
        preparation_tips=[
            "Prepare four or five STAR stories that cover leadership, conflict, failure and impact",
            "Re-read the job description and note the skills it repeats",
            "Prepare two thoughtful questions for the interviewer",
        ],
        company_insights=[f"Research {company_name}'s recent news, mission and values before the interview"],
        generated_at=datetime.now(timezone.utc).isoformat(),
        is_fallback=True,
    ).numbered()


def generate_interview_prep(
    job_title: str,
    company_name: str,
    job_description: str,
    company_description: str | None = None,
    culture_summary: str | None = None,
) -> InterviewPrep:
    try:
        prep = llm_generate_interview_prep(
            job_title, company_name, job_description, company_description, culture_summary
        )
    except LLMResponseError as e:
        logger.warning("Interview prep generation fell back to template for company=%s: %s", company_name, e)
        return build_fallback_prep(job_title, company_name)
    if not prep.questions:
        logger.warning("Interview prep returned no questions for company=%s; using template", company_name)
        return build_fallback_prep(job_title, company_name)
    prep.generated_at = datetime.now(timezone.utc).isoformat()
    return prep


def prepare_for_application(db, application: Application) -> InterviewPrep:
    """Generate and save prep for one application. Raises InterviewPrepInputError on a short description."""
    description = (application.job_description or "").strip()
    if len(description) < MIN_DESCRIPTION_CHARS:
        raise InterviewPrepInputError(
            "Job description is too short. Please add more details to generate interview prep."
        )
    company = get_company_by_id(db, application.company_id) if application.company_id else None
    prep = generate_interview_prep(
        application.job_title,
        application.company_name,
        description,
        company.description if company else None,
        company.culture_summary if company else None,
    )
    set_interview_prep(db, application.id, prep.model_dump(), datetime.now(timezone.utc))
    logger.info(
        "Interview prep saved for application=%s questions=%d fallback=%s",
        application.id,
        len(prep.questions),
        prep.is_fallback,
    )
    return prep


def generate_prep_in_background(application_id: str) -> None:
    """Detached task queued on create/update when an application enters interviewing."""
    db = SessionLocal()
    try:
        application = get_application_by_id(db, application_id)
        if not application:
            logger.info("Interview prep skipped: application %s no longer exists", application_id)
            return
        if application.interview_questions:
            logger.info("Interview prep skipped: application %s already has questions", application_id)
            return
        prepare_for_application(db, application)
    except InterviewPrepInputError as e:
        logger.info("Interview prep skipped for application=%s: %s", application_id, e)
    except Exception as e:
        logger.exception("Background interview prep failed for application=%s: %s", application_id, e)
    finally:
        db.close()


def build_fallback_feedback(questions: list[dict], answers: list[dict]) -> InterviewFeedback:
    by_id = {a.get("question_id"): a for a in answers}
    return InterviewFeedback(
        overall_score=FALLBACK_OVERALL_SCORE,
        question_feedback=[
            QuestionFeedback(
                question_id=str(q.get("id") or ""),
                question=q.get("question") or "",
                user_answer=(by_id.get(q.get("id")) or {}).get("answer") or "(No answer provided)",
                strengths=["You attempted the question"],
                improvements=[
                    "Could provide more specific examples",
                    "Consider using the STAR method for better structure",
                ],
                ideal_approach="Provide a structured answer with specific examples and measurable outcomes",
                score=FALLBACK_QUESTION_SCORE,
            )
            for q in questions
        ],
        general_advice=[
            "Practice structuring your answers using frameworks like STAR (Situation, Task, Action, Result)",
            "Include specific, quantifiable examples from your experience",
            "Show enthusiasm and knowledge about the company and role",
            "Prepare stories that demonstrate key competencies",
        ],
        encouragement=(
            "Great job completing the practice session! Keep practicing and you'll continue to improve. "
            "Remember, interview skills develop with consistent practice."
        ),
        is_fallback=True,
    )


def analyze_answers(application: Application, answers: list[dict], total_time: int) -> InterviewFeedback:
    """Feedback on a practice session over the application's saved question bank."""
    questions = list((application.interview_questions or {}).get("questions") or [])
    if not questions:
        raise InterviewPrepInputError("Generate interview prep for this application first.")
    try:
        feedback = llm_analyze_interview_answers(
            application.job_title,
            application.company_name,
            application.job_description,
            questions,
            answers,
            total_time,
        )
    except LLMResponseError as e:
        logger.warning("Interview feedback fell back to template for application=%s: %s", application.id, e)
        return build_fallback_feedback(questions, answers)
    if not feedback.question_feedback:
        logger.warning("Interview feedback had no per-question entries for application=%s", application.id)
        return build_fallback_feedback(questions, answers)
    return feedback
