"""
Company research service backed by Bedrock.

Another deployment's research worker can point company_research_url here. Callers present the
shared RESEARCH_SERVICE_TOKEN; answers are {"success": bool, "data": {...}} and AI failures come
back as success=false rather than an error status.
"""

import logging

from fastapi import APIRouter, Depends, Query

from app.dependencies import require_research_service_token
from app.services.llm_client import LLMResponseError, llm_research_company

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/research", tags=["research"])


@router.get("/company", dependencies=[Depends(require_research_service_token)])
def research_company_endpoint(
    company_name: str = Query(min_length=1, max_length=500),
    website: str | None = Query(default=None, max_length=2000),
):
    try:
        research = llm_research_company(company_name.strip(), website)
    except LLMResponseError as e:
        logger.warning("Research service could not research company=%r: %s", company_name, e)
        return {"success": False, "data": None, "error": "Company research failed"}
    return {"success": True, "data": research.model_dump()}
