from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_active_user
from app.models.user import User
from app.schemas.insights import InsightsResponse
from app.services.insights_service import insights_for_user

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("", response_model=InsightsResponse)
def generate_insights(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return insights_for_user(db, user.id)
