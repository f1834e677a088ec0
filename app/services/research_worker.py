"""
Background company research.

Resolves a company name to a shared Company row, calling the research service at most once per
freshness window, and links the triggering application when one is given. Runs detached from the
request that queued it, so every failure is logged here and nothing is raised to the caller.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.company import Company, compute_company_slug
from app.repos.application_repo import link_company
from app.repos.company_repo import get_by_slug, upsert_research
from app.services.company_research_client import CompanyResearchError, fetch_company_research

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(days=30)


def is_fresh(company: Company | None, now: datetime | None = None) -> bool:
    if not company or not company.last_researched_at:
        return False
    researched_at = company.last_researched_at
    if researched_at.tzinfo is None:
        researched_at = researched_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now - researched_at < FRESHNESS_WINDOW


def _link(db: Session, application_id: str | None, company: Company) -> None:
    if not application_id:
        return
    if link_company(db, application_id, company.id):
        logger.info("Application %s linked to company %s", application_id, company.slug)
    else:
        logger.info("Application %s no longer exists; company %s not linked", application_id, company.slug)


def _research(db: Session, company_name: str, website: str | None, application_id: str | None) -> Company | None:
    slug = compute_company_slug(company_name)
    if not slug:
        logger.info("Company research skipped: name %r has no usable slug", company_name)
        return None

    cached = get_by_slug(db, slug)
    if is_fresh(cached):
        logger.info("Company research cache hit: slug=%s", slug)
        _link(db, application_id, cached)
        return cached

    try:
        research = fetch_company_research(company_name, website)
    except CompanyResearchError as e:
        logger.warning("Company research failed for slug=%s: %s", slug, e)
        return None

    values = research.model_dump()
    if not values.get("website") and website:
        values["website"] = website
    company = upsert_research(db, slug, values)
    logger.info("Company researched and saved: slug=%s id=%s", slug, company.id)
    _link(db, application_id, company)
    return company


def research_company(
    company_name: str,
    website: str | None = None,
    application_id: str | None = None,
    db: Session | None = None,
) -> Company | None:
    """
    Best-effort research. Returns the Company (cached or fresh), or None when nothing was produced.
    Opens its own session unless one is passed in.
    """
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        return _research(db, company_name, website, application_id)
    except Exception as e:
        logger.exception("Company research crashed for company=%r application=%s: %s", company_name, application_id, e)
        db.rollback()
        return None
    finally:
        if own_session:
            db.close()
