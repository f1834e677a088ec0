import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_active_user
from app.models.application import APPLICATION_STATUSES
from app.models.user import User
from app.repos import application_repo
from app.repos.profile_repo import get_by_id as get_profile
from app.repos.subscription_repo import get_by_user as get_subscription
from app.schemas.application import (
    AnalyzeMatchRequest,
    AnalyzeMatchResponse,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    DeleteApplicationsRequest,
    DeleteApplicationsResponse,
    DeleteLimitResponse,
    InterviewFeedbackRequest,
    ScrapedJob,
    ScrapeRequest,
)
from app.services.deletion_gate import (
    ApplicationsNotFound,
    DeletionPolicyError,
    delete_applications,
    remaining_deletions,
    tier_of,
)
from app.services.enrichment_orchestrator import ApplicationInputError, create_application, update_application
from app.services.interview_prep_service import InterviewPrepInputError, analyze_answers, prepare_for_application
from app.services.job_scraper import scrape_job_posting
from app.services.llm_client import LLMResponseError, is_llm_enabled
from app.services.match_analyzer import MatchInputError, analyze_match

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/applications", tags=["applications"])


def _get_owned_or_404(db: Session, application_id: str, user_id: str):
    application = application_repo.get_for_user(db, application_id, user_id)
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


def _ai_failure(user_id: str, e: LLMResponseError) -> HTTPException:
    logger.warning("Match analysis failed for user=%s: %s", user_id, e)
    if not is_llm_enabled():
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AI provider is not configured")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI match analysis failed. Please try again.")


@router.post("/scrape", response_model=ScrapedJob)
def scrape(body: ScrapeRequest, user: User = Depends(get_current_active_user)):
    """Best-effort extraction; success=false means fall back to manual entry."""
    return scrape_job_posting(body.url)


@router.post("/analyze-match", response_model=AnalyzeMatchResponse)
def analyze(
    body: AnalyzeMatchRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Score an existing application (saved on the row) or an unsaved posting (preview)."""
    if body.application_id:
        application = _get_owned_or_404(db, body.application_id, user.id)
        job_title, company_name = application.job_title, application.company_name
        location, description = application.location, application.job_description
    else:
        job_title, company_name = body.job_title, body.company_name
        location, description = body.location, body.job_description

    try:
        score, analysis, analyzed = analyze_match(job_title, company_name, description, location, get_profile(db, user.id))
    except MatchInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either application_id or job details (job_title, company_name) required",
        ) from e
    except LLMResponseError as e:
        raise _ai_failure(user.id, e) from e

    if body.application_id and analyzed:
        try:
            application_repo.set_match_analysis(db, body.application_id, user.id, score, analysis)
        except Exception as e:
            logger.exception("Saving match analysis failed for application=%s: %s", body.application_id, e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save analysis") from e
    return AnalyzeMatchResponse(match_score=score, analysis=analysis, analyzed=analyzed)


@router.get("/delete-limit", response_model=DeleteLimitResponse)
def delete_limit(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    tier = tier_of(get_subscription(db, user.id))
    return DeleteLimitResponse(tier=tier, remaining=remaining_deletions(db, user.id))


def _run_delete(db: Session, user_id: str, ids: list[str]) -> DeleteApplicationsResponse:
    try:
        deleted, remaining = delete_applications(db, user_id, ids)
    except ApplicationsNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DeletionPolicyError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except Exception as e:
        logger.exception("Delete failed for user=%s ids=%s: %s", user_id, ids, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete applications") from e
    return DeleteApplicationsResponse(deleted=deleted, deletions_remaining=remaining)


@router.post("/delete", response_model=DeleteApplicationsResponse)
def delete_batch(
    body: DeleteApplicationsRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return _run_delete(db, user.id, body.ids)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
def create(
    body: ApplicationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Save immediately; company research and interview prep run after the response.

    With analyze=true an AI failure fails the request (502/503) and nothing is saved.
    """
    try:
        return create_application(db, user.id, body, get_profile(db, user.id), background_tasks)
    except ApplicationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except LLMResponseError as e:
        raise _ai_failure(user.id, e) from e
    except Exception as e:
        logger.exception("Failed saving application for user=%s: %s", user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save application") from e


@router.get("", response_model=list[ApplicationResponse])
def list_applications(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 200,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    if status_filter and status_filter not in APPLICATION_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {status_filter}")
    return application_repo.list_for_user(db, user.id, status=status_filter, limit=min(max(1, limit), 500))


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return _get_owned_or_404(db, application_id, user.id)


@router.patch("/{application_id}", response_model=ApplicationResponse)
def patch_application(
    application_id: str,
    body: ApplicationUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    changes = body.model_dump(exclude_unset=True)
    try:
        application = update_application(db, user.id, application_id, changes, background_tasks)
    except Exception as e:
        logger.exception("Failed updating application=%s for user=%s: %s", application_id, user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update application") from e
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


@router.delete("/{application_id}", response_model=DeleteApplicationsResponse)
def delete_one(
    application_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return _run_delete(db, user.id, [application_id])


@router.post("/{application_id}/interview-prep")
def generate_interview_prep(
    application_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    application = _get_owned_or_404(db, application_id, user.id)
    try:
        prep = prepare_for_application(db, application)
    except InterviewPrepInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.exception("Interview prep failed for application=%s: %s", application_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save interview prep") from e
    return {"success": True, "interview_prep": prep.model_dump()}


@router.post("/{application_id}/interview-feedback")
def interview_feedback(
    application_id: str,
    body: InterviewFeedbackRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    application = _get_owned_or_404(db, application_id, user.id)
    answers = [a.model_dump() for a in body.answers]
    try:
        feedback = analyze_answers(application, answers, body.total_time)
    except InterviewPrepInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"feedback": feedback.model_dump()}
