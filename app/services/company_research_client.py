import logging

import httpx
from pydantic import ValidationError

from app.config import settings
from app.schemas.ai import CompanyResearch
from app.services.llm_client import LLMResponseError, llm_research_company

logger = logging.getLogger(__name__)

RESEARCH_TOKEN_HEADER = "X-Research-Token"


class CompanyResearchError(Exception):
    """Research service unreachable, timed out, or returned no usable data."""


def _research_in_process(company_name: str, website: str | None) -> CompanyResearch:
    try:
        return llm_research_company(company_name, website)
    except LLMResponseError as e:
        raise CompanyResearchError(f"In-process research failed for {company_name!r}: {e}") from e


def fetch_company_research(company_name: str, website: str | None = None) -> CompanyResearch:
    """
    GET the configured research service with a company-name query.
    Expects {"success": true, "data": {...}}; anything else raises CompanyResearchError.
    Without a configured URL the research runs in this process against Bedrock.
    """
    if not settings.company_research_url:
        return _research_in_process(company_name, website)

    params = {"company_name": company_name}
    if website:
        params["website"] = website
    headers = {}
    if settings.research_service_token:
        headers[RESEARCH_TOKEN_HEADER] = settings.research_service_token
    try:
        with httpx.Client(timeout=settings.research_timeout_seconds) as client:
            r = client.get(settings.company_research_url, params=params, headers=headers)
            r.raise_for_status()
            payload = r.json()
    except httpx.TimeoutException as e:
        raise CompanyResearchError(f"Research service timed out for {company_name!r}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise CompanyResearchError(f"Research service request failed: {e}") from e

    if not isinstance(payload, dict) or "success" not in payload or "data" not in payload:
        raise CompanyResearchError("Research service response missing success/data")
    if not payload["success"] or not isinstance(payload["data"], dict):
        raise CompanyResearchError(f"Research service reported failure: {payload.get('error') or 'no data'}")

    data = dict(payload["data"])
    data.setdefault("name", company_name)
    try:
        research = CompanyResearch.model_validate(data)
    except ValidationError as e:
        raise CompanyResearchError(f"Research payload invalid: {e.error_count()} errors") from e
    logger.debug("Research fetched for company=%s", company_name)
    return research
