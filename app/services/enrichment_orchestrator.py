"""
Application save flow: scrape -> analyze -> persist -> detached research / interview prep.

Persisting never waits on enrichment. The row is inserted with company_id NULL and the
research worker links the company after the response has gone out.
"""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.models.application import Application
from app.models.profile import Profile
from app.repos import application_repo
from app.schemas.application import ApplicationCreate
from app.services.interview_prep_service import generate_prep_in_background
from app.services.job_scraper import COMPANY_NOT_FOUND, DESCRIPTION_NOT_FOUND, TITLE_NOT_FOUND, scrape_job_posting
from app.services.match_analyzer import analyze_match
from app.services.research_worker import research_company

logger = logging.getLogger(__name__)

INTERVIEWING = "interviewing"


class ApplicationInputError(ValueError):
    """Not enough job details to save an application."""


def _fill_from_scrape(data: ApplicationCreate) -> None:
    scraped = scrape_job_posting(data.job_url)
    if not scraped.success:
        logger.info("Scrape for new application failed, keeping manual fields: %s", scraped.error)
        return
    if not data.job_title and scraped.job_title != TITLE_NOT_FOUND:
        data.job_title = scraped.job_title
    if not data.company_name and scraped.company_name != COMPANY_NOT_FOUND:
        data.company_name = scraped.company_name
    if not data.location and scraped.location:
        data.location = scraped.location
    if not data.job_description and scraped.description and scraped.description != DESCRIPTION_NOT_FOUND:
        data.job_description = scraped.description


def _should_prepare_interview(application: Application) -> bool:
    return bool(
        application.status == INTERVIEWING
        and application.interview_prep_enabled
        and not application.interview_questions
    )


def create_application(
    db: Session,
    user_id: str,
    data: ApplicationCreate,
    profile: Profile | None,
    background_tasks: BackgroundTasks,
) -> Application:
    if data.scrape and data.job_url:
        _fill_from_scrape(data)

    job_title = (data.job_title or "").strip()
    company_name = (data.company_name or "").strip()
    if not job_title or not company_name:
        raise ApplicationInputError("Job title and company name are required")

    match_score, match_analysis = data.match_score, data.match_analysis
    if match_analysis is None and data.analyze:
        # Requested explicitly, so LLMResponseError propagates and nothing is saved.
        match_score, match_analysis, _ = analyze_match(
            job_title, company_name, data.job_description, data.location, profile
        )

    application = application_repo.create(
        db,
        user_id,
        job_title,
        company_name,
        location=data.location,
        job_url=data.job_url,
        job_description=data.job_description,
        status=data.status,
        applied_date=data.applied_date,
        notes=data.notes,
        match_score=match_score,
        match_analysis=match_analysis,
        interview_prep_enabled=data.interview_prep_enabled,
    )
    logger.info("Application %s created for user=%s company=%s", application.id, user_id, company_name)

    if data.research_company:
        background_tasks.add_task(research_company, company_name, data.company_website, application.id)
    if _should_prepare_interview(application):
        background_tasks.add_task(generate_prep_in_background, application.id)
    return application


def update_application(
    db: Session,
    user_id: str,
    application_id: str,
    changes: dict,
    background_tasks: BackgroundTasks,
) -> Application | None:
    """Apply a PATCH. Entering interviewing with prep enabled and no questions yet queues generation."""
    existing = application_repo.get_for_user(db, application_id, user_id)
    if not existing:
        return None
    previous_status = existing.status
    fields = {k: v for k, v in changes.items() if k in application_repo.UPDATABLE_FIELDS}
    application = application_repo.update(db, application_id, user_id, **fields)
    if application is None:
        return None
    if previous_status != INTERVIEWING and _should_prepare_interview(application):
        logger.info("Application %s entered interviewing; queueing interview prep", application_id)
        background_tasks.add_task(generate_prep_in_background, application.id)
    return application
