import logging

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.config import settings
from app.core.security import decode_access_token, is_research_service_token
from app.models.user import User
from app.repos.profile_repo import get_by_id as get_profile
from app.repos.user_repo import get_by_id

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

INACTIVE_STATUSES = {"hibernated", "deleted"}


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials:
        logger.info("Auth failed: missing bearer credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        logger.info("Auth failed: invalid or expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    user = get_by_id(db, user_id)
    if not user:
        logger.info("Auth failed: user from token not found")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_current_active_user(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> User:
    """Require an account that is not hibernated or scheduled for deletion."""
    profile = get_profile(db, user.id)
    if profile and profile.account_status in INACTIVE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {profile.account_status}. Reactivate it to continue.",
        )
    return user


def get_current_admin(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> User:
    """Require authenticated user whose profile has is_admin=True."""
    profile = get_profile(db, user.id)
    if not profile or not profile.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_research_service_token(
    x_research_token: str | None = Header(default=None),
) -> None:
    """Guard for /research/company: callers present RESEARCH_SERVICE_TOKEN in X-Research-Token."""
    if not settings.research_service_token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Research service is not enabled",
        )
    if not is_research_service_token(x_research_token):
        logger.info("Research service call rejected: bad or missing token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid research service token",
        )
