import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_active_user, get_current_user
from app.models.user import User
from app.repos import profile_repo
from app.schemas.profile import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profile", tags=["profile"])

DELETION_GRACE_PERIOD = timedelta(days=30)


def _profile_or_404(db: Session, user_id: str):
    profile = profile_repo.get_by_id(db, user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _profile_or_404(db, user.id)


@router.patch("", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    _profile_or_404(db, user.id)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in profile_repo.EDITABLE_FIELDS}
    try:
        return profile_repo.update(db, user.id, **fields)
    except Exception as e:
        logger.exception("Profile update failed for user=%s: %s", user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update profile") from e


@router.post("/complete-onboarding", response_model=ProfileResponse)
def complete_onboarding(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Save the onboarding answers and mark onboarding done."""
    _profile_or_404(db, user.id)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in profile_repo.EDITABLE_FIELDS}
    try:
        profile = profile_repo.update(db, user.id, onboarding_completed=True, **fields)
    except Exception as e:
        logger.exception("Onboarding completion failed for user=%s: %s", user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to complete onboarding") from e
    logger.info("Onboarding completed for user=%s", user.id)
    return profile


@router.post("/hibernate", response_model=ProfileResponse)
def hibernate(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    _profile_or_404(db, user.id)
    logger.info("Account hibernated: user=%s", user.id)
    return profile_repo.set_account_status(db, user.id, "hibernated")


@router.post("/schedule-deletion", response_model=ProfileResponse)
def schedule_deletion(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Mark the account deleted; data is kept until the grace period ends, reactivation cancels it."""
    _profile_or_404(db, user.id)
    when = datetime.now(timezone.utc) + DELETION_GRACE_PERIOD
    logger.info("Account deletion scheduled: user=%s at=%s", user.id, when.isoformat())
    return profile_repo.set_account_status(db, user.id, "deleted", deletion_scheduled_at=when)


@router.post("/reactivate", response_model=ProfileResponse)
def reactivate(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = _profile_or_404(db, user.id)
    if profile.account_status == "active":
        return profile
    logger.info("Account reactivated: user=%s from=%s", user.id, profile.account_status)
    return profile_repo.set_account_status(db, user.id, "active", deletion_scheduled_at=None)
