import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_admin
from app.models.user import User
from app.repos.admin_repo import get_stats
from app.repos.profile_repo import get_by_id as get_profile, update as update_profile
from app.services.llm_client import is_llm_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminFlagUpdate(BaseModel):
    is_admin: bool


@router.get("/stats")
def get_admin_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_admin),
):
    """Return dashboard stats. Admin only."""
    try:
        return get_stats(db)
    except Exception as e:
        logger.exception("Admin stats failed for admin=%s: %s", user.email, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load admin stats") from e


@router.post("/users/{user_id}/admin")
def set_admin_flag(
    user_id: str,
    body: AdminFlagUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """Grant or revoke admin. Admin only. Cannot demote self."""
    if user_id == current_user.id and not body.is_admin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove your own admin status",
        )
    if not get_profile(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    profile = update_profile(db, user_id, is_admin=bool(body.is_admin))
    logger.info("Admin %s set is_admin=%s for user=%s", current_user.email, body.is_admin, user_id)
    return {"id": profile.id, "is_admin": bool(profile.is_admin)}


@router.get("/ai-status")
def ai_status(user: User = Depends(get_current_admin)):
    """Which AI provider is configured. Admin only."""
    return {
        "provider": "bedrock",
        "configured": is_llm_enabled(),
        "model_id": settings.bedrock_llm_model_id or None,
        "region": settings.aws_region or None,
    }
