from sqlalchemy.orm import Session

from app.models.profile import Profile

# Columns a user may edit through PATCH /profile
EDITABLE_FIELDS = (
    "full_name",
    "current_job_title",
    "experience_level",
    "skills",
    "career_goals",
    "short_term_goal",
    "long_term_goal",
    "top_values",
    "deal_breakers",
    "work_location_preference",
    "preferred_company_size",
    "preferred_industries",
)


def get_by_id(db: Session, user_id: str) -> Profile | None:
    return db.query(Profile).filter(Profile.id == user_id).first()


def create(db: Session, user_id: str, email: str, *, commit: bool = True) -> Profile:
    profile = Profile(
        id=user_id,
        email=email,
        skills=[],
        top_values=[],
        deal_breakers=[],
        account_status="active",
        subscription_tier="free",
        is_admin=False,
    )
    db.add(profile)
    if commit:
        db.commit()
        db.refresh(profile)
    return profile


def update(db: Session, user_id: str, **fields) -> Profile | None:
    """Set the given columns (None values are skipped). Returns None if the profile is missing."""
    profile = get_by_id(db, user_id)
    if not profile:
        return None
    for key, value in fields.items():
        if value is not None:
            setattr(profile, key, value)
    db.commit()
    db.refresh(profile)
    return profile


def set_account_status(db: Session, user_id: str, account_status: str, deletion_scheduled_at=None) -> Profile | None:
    profile = get_by_id(db, user_id)
    if not profile:
        return None
    profile.account_status = account_status
    profile.deletion_scheduled_at = deletion_scheduled_at
    db.commit()
    db.refresh(profile)
    return profile


def set_subscription_tier(db: Session, user_id: str, tier: str) -> bool:
    """Write the denormalized tier column. Only subscription_service should call this."""
    updated = (
        db.query(Profile)
        .filter(Profile.id == user_id)
        .update({Profile.subscription_tier: tier}, synchronize_session=False)
    )
    db.commit()
    return bool(updated)
