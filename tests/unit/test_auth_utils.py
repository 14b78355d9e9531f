from datetime import UTC, datetime, timedelta

from tholvi.api.auth_utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_empty_hash_never_verifies():
    assert verify_password("anything", "") is False


def test_token_carries_subject():
    token = create_access_token({"sub": "abc"})
    payload = decode_access_token(token)
    assert payload is not None
    assert payload["sub"] == "abc"


def test_expired_token_rejected():
    past = datetime.now(UTC) - timedelta(days=30)
    token = create_access_token({"sub": "abc"}, expires_delta=timedelta(minutes=1), now_utc=past)
    assert decode_access_token(token) is None


def test_garbage_token_rejected():
    assert decode_access_token("not-a-jwt") is None
