import httpx
import pytest

import app.services.company_research_client as rc
from app.schemas.ai import CompanyResearch
from app.services.llm_client import LLMResponseError


@pytest.fixture(autouse=True)
def _remote_research(monkeypatch):
    monkeypatch.setattr(rc.settings, "company_research_url", "https://research.internal/research/company")
    monkeypatch.setattr(rc.settings, "research_service_token", "")


def _install_transport(monkeypatch, handler):
    real_client = httpx.Client

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(rc.httpx, "Client", _client)


def test_fetch_sends_name_and_website_and_parses_data(monkeypatch):
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": {"industry": "Fintech", "overall_rating": 4.4}})

    _install_transport(monkeypatch, handler)
    research = rc.fetch_company_research("Acme Corp", "https://acme.io")
    assert seen["params"] == {"company_name": "Acme Corp", "website": "https://acme.io"}
    assert research.name == "Acme Corp"
    assert research.industry == "Fintech"
    assert research.overall_rating == 4.4


def test_fetch_omits_empty_website(monkeypatch):
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": {"name": "Acme"}})

    _install_transport(monkeypatch, handler)
    rc.fetch_company_research("Acme", None)
    assert "website" not in seen["params"]


def test_timeout_is_research_error(monkeypatch):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    _install_transport(monkeypatch, handler)
    with pytest.raises(rc.CompanyResearchError, match="timed out"):
        rc.fetch_company_research("Acme")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"data": {"name": "Acme"}}),
        httpx.Response(200, json={"success": False, "data": None, "error": "no results"}),
        httpx.Response(200, json={"success": True, "data": []}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
def test_unusable_responses_are_research_errors(monkeypatch, response):
    _install_transport(monkeypatch, lambda request: response)
    with pytest.raises(rc.CompanyResearchError):
        rc.fetch_company_research("Acme")


def test_fetch_sends_service_token_when_configured(monkeypatch):
    monkeypatch.setattr(rc.settings, "research_service_token", "svc-token")
    seen = {}

    def handler(request):
        seen["token"] = request.headers.get("X-Research-Token")
        return httpx.Response(200, json={"success": True, "data": {"name": "Acme"}})

    _install_transport(monkeypatch, handler)
    rc.fetch_company_research("Acme")
    assert seen["token"] == "svc-token"


def test_without_url_research_runs_in_process(monkeypatch):
    monkeypatch.setattr(rc.settings, "company_research_url", "")
    monkeypatch.setattr(
        rc.httpx, "Client", lambda **kwargs: pytest.fail("must not call the research service over HTTP")
    )
    monkeypatch.setattr(
        rc, "llm_research_company", lambda name, website: CompanyResearch(name=name, industry="Retail")
    )
    research = rc.fetch_company_research("Acme", "https://acme.io")
    assert research.name == "Acme"
    assert research.industry == "Retail"


def test_in_process_model_failure_is_research_error(monkeypatch):
    monkeypatch.setattr(rc.settings, "company_research_url", "")

    def _fail(name, website):
        raise LLMResponseError("bad json")

    monkeypatch.setattr(rc, "llm_research_company", _fail)
    with pytest.raises(rc.CompanyResearchError, match="In-process research failed"):
        rc.fetch_company_research("Acme")
