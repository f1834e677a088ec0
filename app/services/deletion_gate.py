"""
Tier-gated application deletion.

Free tier: every application must be at least 14 days old, and at most 10 deletions are allowed per
trailing 30 days; a batch that breaks either rule is rejected whole. Premium deletes freely and is not
logged. The quota check, delete and log insert share one transaction, serialized per user by locking
the Subscription row.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.repos import application_repo, deletion_log_repo, subscription_repo

logger = logging.getLogger(__name__)

FREE_MIN_AGE = timedelta(days=14)
FREE_DELETION_QUOTA = 10
QUOTA_WINDOW = timedelta(days=30)


class DeletionPolicyError(Exception):
    """Batch rejected by the free-tier rules."""


class ApplicationsNotFound(LookupError):
    """One or more ids are not the caller's applications."""


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def tier_of(subscription) -> str:
    return "premium" if subscription is not None and subscription.tier == "premium" else "free"


def remaining_deletions(db: Session, user_id: str, now: datetime | None = None) -> int | None:
    """Free-tier deletions left in the trailing window; None for premium."""
    if tier_of(subscription_repo.get_by_user(db, user_id)) == "premium":
        return None
    now = now or datetime.now(timezone.utc)
    used = deletion_log_repo.count_since(db, user_id, now - QUOTA_WINDOW)
    return max(0, FREE_DELETION_QUOTA - used)


def delete_applications(
    db: Session,
    user_id: str,
    application_ids: list[str],
    now: datetime | None = None,
) -> tuple[int, int | None]:
    """Returns (deleted_count, remaining). remaining is None for premium."""
    ids = list(dict.fromkeys(application_ids))
    now = now or datetime.now(timezone.utc)
    try:
        tier = tier_of(subscription_repo.get_by_user_for_update(db, user_id))

        owned = application_repo.get_many_for_user(db, user_id, ids)
        if len(owned) != len(ids):
            raise ApplicationsNotFound("One or more applications were not found")

        remaining = None
        if tier == "free":
            # Rows without created_at count as too new.
            too_new = [
                a.id for a in owned if _aware(a.created_at) is None or now - _aware(a.created_at) < FREE_MIN_AGE
            ]
            if too_new:
                raise DeletionPolicyError(
                    f"Free plan applications can only be deleted after {FREE_MIN_AGE.days} days "
                    f"({len(too_new)} in this batch are too new). Upgrade to premium to delete anytime."
                )
            used = deletion_log_repo.count_since(db, user_id, now - QUOTA_WINDOW)
            left = max(0, FREE_DELETION_QUOTA - used)
            if len(ids) > left:
                raise DeletionPolicyError(
                    f"Free plan allows {FREE_DELETION_QUOTA} deletions per {QUOTA_WINDOW.days} days; "
                    f"{left} remaining. Upgrade to premium for unlimited deletions."
                )
            remaining = left - len(ids)

        deleted = application_repo.delete_many_for_user(db, user_id, ids)
        if tier == "free":
            deletion_log_repo.add_entries(db, user_id, ids, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted %d applications for user=%s tier=%s remaining=%s", deleted, user_id, tier, remaining)
    return deleted, remaining
