from datetime import datetime

from sqlalchemy.orm import Session

from app.models.application import Application
from app.core.security import generate_id

# Columns a user may set through PATCH /applications/{id}
UPDATABLE_FIELDS = (
    "job_title",
    "company_name",
    "location",
    "job_url",
    "job_description",
    "status",
    "applied_date",
    "notes",
    "interview_prep_enabled",
)


def create(
    db: Session,
    user_id: str,
    job_title: str,
    company_name: str,
    *,
    location: str | None = None,
    job_url: str | None = None,
    job_description: str | None = None,
    status: str = "not_applied",
    applied_date: datetime | None = None,
    notes: str | None = None,
    match_score: int | None = None,
    match_analysis: dict | None = None,
    interview_prep_enabled: bool = False,
) -> Application:
    application = Application(
        id=generate_id(),
        user_id=user_id,
        company_id=None,
        job_title=job_title,
        company_name=company_name,
        location=location,
        job_url=job_url,
        job_description=job_description,
        status=status,
        applied_date=applied_date,
        notes=notes,
        match_score=match_score,
        match_analysis=match_analysis,
        interview_prep_enabled=interview_prep_enabled,
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def get_for_user(db: Session, application_id: str, user_id: str) -> Application | None:
    return (
        db.query(Application)
        .filter(Application.id == application_id, Application.user_id == user_id)
        .first()
    )


def get_by_id(db: Session, application_id: str) -> Application | None:
    """Unscoped lookup for background tasks that only carry the application id."""
    return db.query(Application).filter(Application.id == application_id).first()


def list_all_for_user(db: Session, user_id: str) -> list[Application]:
    return db.query(Application).filter(Application.user_id == user_id).all()


def list_for_user(
    db: Session,
    user_id: str,
    status: str | None = None,
    limit: int = 200,
) -> list[Application]:
    q = db.query(Application).filter(Application.user_id == user_id)
    if status:
        q = q.filter(Application.status == status)
    return q.order_by(Application.created_at.desc()).limit(limit).all()


def get_many_for_user(db: Session, user_id: str, application_ids: list[str]) -> list[Application]:
    return (
        db.query(Application)
        .filter(Application.user_id == user_id, Application.id.in_(application_ids))
        .all()
    )


def update(db: Session, application_id: str, user_id: str, **fields) -> Application | None:
    application = get_for_user(db, application_id, user_id)
    if not application:
        return None
    for key, value in fields.items():
        setattr(application, key, value)
    db.commit()
    db.refresh(application)
    return application


def set_match_analysis(
    db: Session,
    application_id: str,
    user_id: str,
    match_score: int | None,
    match_analysis: dict,
) -> Application | None:
    return update(db, application_id, user_id, match_score=match_score, match_analysis=match_analysis)


def set_interview_prep(
    db: Session,
    application_id: str,
    interview_questions: dict,
    generated_at: datetime,
) -> bool:
    updated = (
        db.query(Application)
        .filter(Application.id == application_id)
        .update(
            {
                Application.interview_prep_enabled: True,
                Application.interview_questions: interview_questions,
                Application.interview_prep_generated_at: generated_at,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return bool(updated)


def link_company(db: Session, application_id: str, company_id: str) -> bool:
    """Point an application at its researched company. Returns False if the application is gone."""
    updated = (
        db.query(Application)
        .filter(Application.id == application_id)
        .update({Application.company_id: company_id}, synchronize_session=False)
    )
    db.commit()
    return bool(updated)


def delete_many_for_user(db: Session, user_id: str, application_ids: list[str]) -> int:
    """Delete owned applications. Does not commit; the deletion gate owns the transaction."""
    return (
        db.query(Application)
        .filter(Application.user_id == user_id, Application.id.in_(application_ids))
        .delete(synchronize_session=False)
    )


def count_all(db: Session) -> int:
    return db.query(Application).count()
