import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.auth import UserRegister, UserLogin, Token, UserResponse
from app.core.security import verify_password, create_access_token
from app.repos.user_repo import get_by_email, create as create_user
from app.repos.profile_repo import get_by_id as get_profile, create as create_profile
from app.repos.subscription_repo import create_default as create_default_subscription
from app.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _user_to_response(user: User, profile) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        is_admin=bool(getattr(profile, "is_admin", False)),
        onboarding_completed=bool(getattr(profile, "onboarding_completed", False)),
        account_status=getattr(profile, "account_status", None) or "active",
        subscription_tier=getattr(profile, "subscription_tier", None) or "free",
    )


@router.post("/register", response_model=Token)
def register(data: UserRegister, db: Session = Depends(get_db)):
    """Create the user with its profile and a free subscription in one commit."""
    try:
        if get_by_email(db, data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )
        user = create_user(db, data.email, data.password, commit=False)
        profile = create_profile(db, user.id, user.email, commit=False)
        create_default_subscription(db, user.id, commit=False)
        db.commit()
        db.refresh(user)
        logger.info("User registered: %s", user.email)
        token = create_access_token(user.id)
        return Token(access_token=token, user=_user_to_response(user, profile))
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Register failed for email=%s: %s", data.email, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Registration failed") from e


@router.post("/login", response_model=Token)
def login(data: UserLogin, db: Session = Depends(get_db)):
    try:
        user = get_by_email(db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled",
            )
        logger.info("User logged in: %s", user.email)
        token = create_access_token(user.id)
        return Token(access_token=token, user=_user_to_response(user, get_profile(db, user.id)))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Login failed for email=%s: %s", data.email, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Login failed") from e


@router.get("/me", response_model=UserResponse)
def get_me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _user_to_response(user, get_profile(db, user.id))
