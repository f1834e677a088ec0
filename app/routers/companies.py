import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_active_user
from app.models.user import User
from app.repos import application_repo, company_repo
from app.schemas.company import CompanyResearchRequest, CompanyResponse
from app.services.research_worker import research_company

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("", response_model=list[CompanyResponse])
def list_companies(
    search: str | None = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    return company_repo.list_all(db, search=search, limit=min(max(1, limit), 500))


@router.get("/{slug}", response_model=CompanyResponse)
def get_company(
    slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    company = company_repo.get_by_slug(db, slug)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.post("/research", response_model=CompanyResponse)
def trigger_research(
    body: CompanyResearchRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    """Run the research worker inline, e.g. to retry after a background attempt failed."""
    if body.application_id and not application_repo.get_for_user(db, body.application_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    company = research_company(body.company_name, body.website, body.application_id, db=db)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Company research is unavailable right now. Please try again later.",
        )
    return company
