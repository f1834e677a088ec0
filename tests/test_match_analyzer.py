from types import SimpleNamespace

import pytest

import app.services.match_analyzer as ma
from app.schemas.ai import MatchAnalysis
from app.services.llm_client import LLMResponseError

LONG_DESCRIPTION = "We are hiring a backend engineer to build payment APIs in Python. " * 3


def _profile(**overrides):
    fields = {field: None for field in ma.PREFERENCE_FIELDS + ma.PROFILE_FIELDS}
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _fail_if_called(*args, **kwargs):
    raise AssertionError("AI adapter must not be called")


def test_missing_title_or_company_is_input_error():
    with pytest.raises(ma.MatchInputError):
        ma.analyze_match("", "Acme", LONG_DESCRIPTION, None, _profile(top_values=["growth"]))
    with pytest.raises(ma.MatchInputError):
        ma.analyze_match("Engineer", "   ", LONG_DESCRIPTION, None, _profile(top_values=["growth"]))


def test_short_description_never_calls_ai(monkeypatch):
    monkeypatch.setattr(ma, "llm_analyze_match", _fail_if_called)
    score, analysis, analyzed = ma.analyze_match(
        "Engineer", "Acme", "  " + "x" * 99 + "  ", None, _profile(top_values=["growth"])
    )
    assert score is None
    assert analyzed is False
    assert analysis["summary"]


def test_no_preferences_returns_templated_analysis(monkeypatch):
    monkeypatch.setattr(ma, "llm_analyze_match", _fail_if_called)
    score, analysis, analyzed = ma.analyze_match("Engineer", "Acme", LONG_DESCRIPTION, None, _profile(skills=["python"]))
    assert score is None
    assert analyzed is False
    assert analysis["recommendations"] == ["Set your job preferences to get personalized match insights"]


def test_has_preferences_accepts_any_single_field():
    assert ma.has_preferences(None) is False
    assert ma.has_preferences(_profile()) is False
    assert ma.has_preferences(_profile(top_values=[])) is False
    assert ma.has_preferences(_profile(work_location_preference="remote")) is True
    assert ma.has_preferences(_profile(preferred_industries=["fintech"])) is True


def test_analysis_passes_profile_and_returns_score(monkeypatch):
    seen = {}

    def _fake(job_title, company_name, description, location, preferences):
        seen.update(preferences)
        return MatchAnalysis(match_score=77, summary="ok")

    monkeypatch.setattr(ma, "llm_analyze_match", _fake)
    score, analysis, analyzed = ma.analyze_match(
        "Engineer", "Acme", LONG_DESCRIPTION, "Remote", _profile(top_values=["growth"], skills=["python"])
    )
    assert (score, analyzed) == (77, True)
    assert analysis["match_score"] == 77
    assert seen["top_values"] == ["growth"]
    assert seen["skills"] == ["python"]


def test_ai_failure_propagates(monkeypatch):
    def _boom(*args, **kwargs):
        raise LLMResponseError("malformed")

    monkeypatch.setattr(ma, "llm_analyze_match", _boom)
    with pytest.raises(LLMResponseError):
        ma.analyze_match("Engineer", "Acme", LONG_DESCRIPTION, None, _profile(top_values=["growth"]))
