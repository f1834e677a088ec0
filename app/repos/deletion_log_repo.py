from datetime import datetime

from sqlalchemy.orm import Session

from app.core.security import generate_id
from app.models.deletion_log import DeletionLog


def count_since(db: Session, user_id: str, since: datetime) -> int:
    return (
        db.query(DeletionLog)
        .filter(DeletionLog.user_id == user_id, DeletionLog.deleted_at >= since)
        .count()
    )


def add_entries(db: Session, user_id: str, application_ids: list[str], deleted_at: datetime) -> list[DeletionLog]:
    """Stage one audit row per id with a shared timestamp. Caller commits."""
    entries = [
        DeletionLog(id=generate_id(), user_id=user_id, application_id=app_id, deleted_at=deleted_at)
        for app_id in application_ids
    ]
    for entry in entries:
        db.add(entry)
    return entries
