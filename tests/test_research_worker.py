from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import app.services.research_worker as worker
from app.schemas.ai import CompanyResearch
from app.services.company_research_client import CompanyResearchError


class _Session:
    def __init__(self):
        self.rolled_back = 0
        self.closed = False

    def rollback(self):
        self.rolled_back += 1

    def close(self):
        self.closed = True


def _company(days_old, slug="acme-corp"):
    researched = None if days_old is None else datetime.now(timezone.utc) - timedelta(days=days_old)
    return SimpleNamespace(id="c1", slug=slug, name="Acme Corp", last_researched_at=researched)


def _track_links(monkeypatch):
    links = []
    monkeypatch.setattr(worker, "link_company", lambda db, app_id, company_id: links.append((app_id, company_id)) or True)
    return links


def _no_fetch(*args, **kwargs):
    raise AssertionError("research service must not be called")


def test_is_fresh_window():
    now = datetime(2026, 3, 31, tzinfo=timezone.utc)
    assert worker.is_fresh(None, now) is False
    assert worker.is_fresh(SimpleNamespace(last_researched_at=None), now) is False
    assert worker.is_fresh(SimpleNamespace(last_researched_at=now - timedelta(days=10)), now) is True
    assert worker.is_fresh(SimpleNamespace(last_researched_at=now - timedelta(days=30)), now) is False
    naive = (now - timedelta(days=1)).replace(tzinfo=None)
    assert worker.is_fresh(SimpleNamespace(last_researched_at=naive), now) is True


def test_fresh_cache_links_without_calling_service(monkeypatch):
    cached = _company(days_old=10)
    monkeypatch.setattr(worker, "get_by_slug", lambda db, slug: cached if slug == "acme-corp" else None)
    monkeypatch.setattr(worker, "fetch_company_research", _no_fetch)
    monkeypatch.setattr(worker, "upsert_research", _no_fetch)
    links = _track_links(monkeypatch)

    out = worker.research_company("Acme Corp!", application_id="a1", db=_Session())
    assert out is cached
    assert links == [("a1", "c1")]


def test_stale_row_is_refreshed_by_slug(monkeypatch):
    stale = _company(days_old=45)
    refreshed = _company(days_old=0)
    upserts = []
    monkeypatch.setattr(worker, "get_by_slug", lambda db, slug: stale)
    monkeypatch.setattr(
        worker, "fetch_company_research", lambda name, website: CompanyResearch(name=name, industry="Fintech")
    )

    def _upsert(db, slug, values):
        upserts.append((slug, values))
        return refreshed

    monkeypatch.setattr(worker, "upsert_research", _upsert)
    links = _track_links(monkeypatch)

    out = worker.research_company("Acme Corp", website="https://acme.io", application_id="a1", db=_Session())
    assert out is refreshed
    assert upserts[0][0] == "acme-corp"
    assert upserts[0][1]["industry"] == "Fintech"
    assert upserts[0][1]["website"] == "https://acme.io"
    assert links == [("a1", "c1")]


def test_service_failure_leaves_tables_and_link_untouched(monkeypatch):
    monkeypatch.setattr(worker, "get_by_slug", lambda db, slug: None)

    def _timeout(name, website):
        raise CompanyResearchError("Research service timed out")

    monkeypatch.setattr(worker, "fetch_company_research", _timeout)
    monkeypatch.setattr(worker, "upsert_research", _no_fetch)
    links = _track_links(monkeypatch)

    assert worker.research_company("Acme Corp", application_id="a1", db=_Session()) is None
    assert links == []


def test_unexpected_error_is_contained_and_rolled_back(monkeypatch):
    def _db_down(db, slug):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(worker, "get_by_slug", _db_down)
    session = _Session()
    assert worker.research_company("Acme Corp", db=session) is None
    assert session.rolled_back == 1
    assert session.closed is False


def test_own_session_is_opened_and_closed(monkeypatch):
    session = _Session()
    monkeypatch.setattr(worker, "SessionLocal", lambda: session)
    monkeypatch.setattr(worker, "get_by_slug", lambda db, slug: _company(days_old=1))
    _track_links(monkeypatch)
    worker.research_company("Acme Corp")
    assert session.closed is True


def test_name_without_slug_is_skipped(monkeypatch):
    monkeypatch.setattr(worker, "get_by_slug", _no_fetch)
    assert worker.research_company("!!!", db=_Session()) is None


def test_deleted_application_does_not_fail_research(monkeypatch):
    monkeypatch.setattr(worker, "get_by_slug", lambda db, slug: _company(days_old=2))
    monkeypatch.setattr(worker, "link_company", lambda db, app_id, company_id: False)
    out = worker.research_company("Acme Corp", application_id="gone", db=_Session())
    assert out is not None
