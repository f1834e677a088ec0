"""
Fetch a job posting page and pull out title, company, location and description.
LinkedIn, Indeed and Glassdoor get dedicated selectors; everything else goes through a generic pass.
The scraper never raises: a failed scrape returns success=False so the caller falls back to manual entry.
"""

import logging
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from app.config import settings
from app.schemas.application import ScrapedJob

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
TITLE_NOT_FOUND = "Job Title Not Found"
COMPANY_NOT_FOUND = "Company Not Found"
DESCRIPTION_NOT_FOUND = "Description not available. Please add manually."
MAX_DESCRIPTION_CHARS = 5000

# Selector lists are tried in order; the first non-empty match wins.
SITE_SELECTORS = {
    "linkedin": {
        "title": ["h1.top-card-layout__title", "h1.topcard__title", "h1"],
        "company": ["a.topcard__org-name-link", "span.topcard__flavor", ".top-card-layout__card a"],
        "location": ["span.topcard__flavor--bullet", ".top-card-layout__card span.bullet"],
        "description": [".show-more-less-html__markup", ".description__text", '[class*="description"]'],
    },
    "indeed": {
        "title": ["h1.jobsearch-JobInfoHeader-title", '[class*="jobTitle"]'],
        "company": ['[class*="company"]', "[data-company-name]"],
        "location": ['[class*="location"]'],
        "description": ["#jobDescriptionText", '[class*="jobDescription"]'],
    },
    "glassdoor": {
        "title": ['[class*="JobDetails_jobTitle"]', "h1"],
        "company": ['[class*="EmployerProfile_employerName"]', '[data-test="employer-name"]'],
        "location": ['[class*="JobDetails_location"]'],
        "description": ['[class*="JobDetails_jobDescription"]', ".desc"],
    },
}

SITE_ERRORS = {
    "linkedin": "LinkedIn scraping failed. The page may require authentication.",
    "indeed": "Indeed scraping failed",
    "glassdoor": "Glassdoor scraping failed",
    "generic": "Generic scraping failed. The website may be blocking automated access.",
}


def _clean(text: str | None) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _first_text(soup: BeautifulSoup, selectors: list[str]) -> str:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = _clean(node.get_text(" ")) or _clean(node.get("data-company-name"))
        if text:
            return text
    return ""


def detect_site(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    for site in ("linkedin", "indeed", "glassdoor"):
        if f"{site}.com" in host:
            return site
    return "generic"


def _fetch_html(url: str) -> str:
    with httpx.Client(timeout=settings.scrape_timeout_seconds, follow_redirects=True) as client:
        r = client.get(url, headers={"User-Agent": BROWSER_USER_AGENT})
        r.raise_for_status()
        return r.text


def _extract_known_site(soup: BeautifulSoup, site: str) -> ScrapedJob:
    selectors = SITE_SELECTORS[site]
    return ScrapedJob(
        job_title=_first_text(soup, selectors["title"]) or TITLE_NOT_FOUND,
        company_name=_first_text(soup, selectors["company"]) or COMPANY_NOT_FOUND,
        location=_first_text(soup, selectors["location"]),
        description=_first_text(soup, selectors["description"]) or DESCRIPTION_NOT_FOUND,
        success=True,
    )


def _extract_generic(soup: BeautifulSoup) -> ScrapedJob:
    title = _first_text(soup, ["h1"])
    if not title and soup.title:
        title = _clean(soup.title.get_text().split("|")[0])

    company = _first_text(soup, ['[class*="company"]', '[class*="employer"]', '[class*="organization"]'])
    location = _first_text(soup, ['[class*="location"]', '[class*="city"]'])

    meta = soup.find("meta", attrs={"name": "description"})
    description = _clean(meta.get("content")) if meta else ""
    if not description:
        description = _first_text(
            soup, ['[class*="description"]', '[class*="job-description"]', "article", "main"]
        )
    if len(description) > MAX_DESCRIPTION_CHARS:
        description = description[:MAX_DESCRIPTION_CHARS] + "..."

    return ScrapedJob(
        job_title=title or TITLE_NOT_FOUND,
        company_name=company or COMPANY_NOT_FOUND,
        location=location,
        description=description or DESCRIPTION_NOT_FOUND,
        success=bool(title),
    )


def scrape_job_posting(url: str) -> ScrapedJob:
    """Scrape one posting URL. Failures come back as success=False with an error message."""
    url = (url or "").strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return ScrapedJob(success=False, error="Invalid URL")
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return ScrapedJob(success=False, error="Invalid URL")

    site = detect_site(url)
    try:
        html = _fetch_html(url)
        soup = BeautifulSoup(html, "html.parser")
        result = _extract_generic(soup) if site == "generic" else _extract_known_site(soup, site)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Scrape fetch failed: site=%s url=%s err=%s", site, url, e)
        return ScrapedJob(success=False, error=SITE_ERRORS[site])
    except Exception as e:
        logger.exception("Scrape crashed: site=%s url=%s err=%s", site, url, e)
        return ScrapedJob(success=False, error=SITE_ERRORS[site])

    logger.info(
        "Scraped job posting: site=%s success=%s title_len=%d desc_len=%d",
        site,
        result.success,
        len(result.job_title),
        len(result.description),
    )
    return result
