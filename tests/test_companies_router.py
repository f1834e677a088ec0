from types import SimpleNamespace

import pytest

import app.dependencies as deps_mod
import app.routers.companies as companies_mod
import app.routers.research as research_mod
from app.schemas.ai import CompanyResearch
from app.services.llm_client import LLMResponseError


def _company(**overrides):
    fields = {
        "id": "c1",
        "slug": "acme-corp",
        "name": "Acme Corp",
        "website": None,
        "description": None,
        "industry": "Fintech",
        "company_size": None,
        "headquarters": None,
        "founded_year": None,
        "culture_summary": None,
        "pros": [],
        "cons": [],
        "overall_rating": 4.1,
        "linkedin_url": None,
        "glassdoor_url": None,
        "last_researched_at": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_get_company_by_slug(monkeypatch, client):
    monkeypatch.setattr(companies_mod.company_repo, "get_by_slug", lambda db, slug: _company() if slug == "acme-corp" else None)
    assert client.get("/companies/acme-corp").json()["industry"] == "Fintech"
    assert client.get("/companies/unknown").status_code == 404


def test_list_companies_clamps_limit(monkeypatch, client):
    seen = {}

    def _list(db, search=None, limit=100):
        seen.update(search=search, limit=limit)
        return [_company()]

    monkeypatch.setattr(companies_mod.company_repo, "list_all", _list)
    resp = client.get("/companies?search=acme&limit=0")
    assert resp.status_code == 200
    assert seen == {"search": "acme", "limit": 1}


def test_manual_research_returns_company(monkeypatch, client):
    monkeypatch.setattr(companies_mod.application_repo, "get_for_user", lambda db, aid, uid: SimpleNamespace(id=aid))
    seen = {}

    def _research(name, website, application_id, db=None):
        seen.update(name=name, application_id=application_id)
        return _company()

    monkeypatch.setattr(companies_mod, "research_company", _research)
    resp = client.post("/companies/research", json={"company_name": "Acme Corp", "application_id": "a1"})
    assert resp.status_code == 200
    assert resp.json()["slug"] == "acme-corp"
    assert seen == {"name": "Acme Corp", "application_id": "a1"}


def test_manual_research_for_foreign_application_is_404(monkeypatch, client):
    monkeypatch.setattr(companies_mod.application_repo, "get_for_user", lambda db, aid, uid: None)
    resp = client.post("/companies/research", json={"company_name": "Acme", "application_id": "other"})
    assert resp.status_code == 404


def test_manual_research_failure_is_502(monkeypatch, client):
    monkeypatch.setattr(companies_mod, "research_company", lambda *a, **k: None)
    resp = client.post("/companies/research", json={"company_name": "Acme"})
    assert resp.status_code == 502


@pytest.fixture
def service_token(monkeypatch):
    monkeypatch.setattr(deps_mod.settings, "research_service_token", "svc-token")
    return {"X-Research-Token": "svc-token"}


def test_research_service_envelope(monkeypatch, client, service_token):
    monkeypatch.setattr(
        research_mod, "llm_research_company", lambda name, website: CompanyResearch(name=name, industry="Retail")
    )
    resp = client.get("/research/company", params={"company_name": " Acme "}, headers=service_token)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["name"] == "Acme"
    assert body["data"]["industry"] == "Retail"


def test_research_service_reports_failure_without_error_status(monkeypatch, client, service_token):
    def _fail(name, website):
        raise LLMResponseError("timeout")

    monkeypatch.setattr(research_mod, "llm_research_company", _fail)
    resp = client.get("/research/company", params={"company_name": "Acme"}, headers=service_token)
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "data": None, "error": "Company research failed"}


def test_research_service_requires_name(client, service_token):
    assert client.get("/research/company", headers=service_token).status_code == 422


def test_research_service_rejects_wrong_or_missing_token(monkeypatch, client, service_token):
    monkeypatch.setattr(
        research_mod, "llm_research_company", lambda *a: pytest.fail("must not research without a valid token")
    )
    assert client.get("/research/company", params={"company_name": "Acme"}).status_code == 401
    resp = client.get("/research/company", params={"company_name": "Acme"}, headers={"X-Research-Token": "nope"})
    assert resp.status_code == 401


def test_research_service_disabled_without_configured_token(monkeypatch, client):
    monkeypatch.setattr(deps_mod.settings, "research_service_token", "")
    resp = client.get("/research/company", params={"company_name": "Acme"}, headers={"X-Research-Token": ""})
    assert resp.status_code == 503
