import logging
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.core.security import generate_id
from app.models.company import Company

logger = logging.getLogger(__name__)

RESEARCH_FIELDS = (
    "name",
    "website",
    "description",
    "industry",
    "company_size",
    "headquarters",
    "founded_year",
    "culture_summary",
    "pros",
    "cons",
    "overall_rating",
    "linkedin_url",
    "glassdoor_url",
)


def get_by_slug(db: Session, slug: str) -> Company | None:
    return db.query(Company).filter(Company.slug == slug).first()


def get_by_id(db: Session, company_id: str) -> Company | None:
    return db.query(Company).filter(Company.id == company_id).first()


def list_all(db: Session, search: str | None = None, limit: int = 100) -> list[Company]:
    q = db.query(Company)
    if search and search.strip():
        q = q.filter(Company.name.ilike(f"%{search.strip()}%"))
    return q.order_by(Company.name.asc()).limit(limit).all()


def upsert_research(
    db: Session,
    slug: str,
    research: dict,
    researched_at: datetime | None = None,
) -> Company:
    """
    INSERT ... ON CONFLICT (slug) DO UPDATE with fresh research.
    Concurrent researches of one company converge on a single row.
    """
    values = {k: research.get(k) for k in RESEARCH_FIELDS if k in research}
    values["last_researched_at"] = researched_at or datetime.now(timezone.utc)
    stmt = pg_insert(Company).values(id=generate_id(), slug=slug, **values)
    update_cols = {k: stmt.excluded[k] for k in values}
    update_cols["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=[Company.slug], set_=update_cols).returning(Company.id)
    company_id = db.execute(stmt).scalar_one()
    db.commit()
    logger.debug("Company upserted slug=%s id=%s", slug, company_id)
    return get_by_id(db, company_id)
