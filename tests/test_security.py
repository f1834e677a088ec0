from app.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_id,
    hash_password,
    is_research_service_token,
    verify_password,
)


def test_password_hash_and_verify_roundtrip():
    plain = "StrongPass123!"
    hashed = hash_password(plain)
    assert hashed != plain
    assert verify_password(plain, hashed) is True
    assert verify_password("wrong", hashed) is False


def test_long_passwords_are_not_truncated():
    base = "x" * 80
    hashed = hash_password(base + "a")
    assert verify_password(base + "b", hashed) is False


def test_access_token_roundtrip():
    token = create_access_token("user-123")
    assert decode_access_token(token) == "user-123"


def test_decode_invalid_token_and_ids():
    assert decode_access_token("not-a-jwt") is None
    assert len(generate_id()) > 10
    assert generate_id() != generate_id()


def test_research_service_token_match(monkeypatch):
    monkeypatch.setattr(settings, "research_service_token", "svc-token")
    assert is_research_service_token("svc-token") is True
    assert is_research_service_token("svc-token ") is False
    assert is_research_service_token(None) is False


def test_research_service_token_unset_never_matches(monkeypatch):
    monkeypatch.setattr(settings, "research_service_token", "")
    assert is_research_service_token("") is False
    assert is_research_service_token("anything") is False
