"""Unit tests for password hashing and signed session tokens."""

from __future__ import annotations

from src.utils.security import (
    create_session_token,
    hash_password,
    verify_password,
    verify_session_token,
)

SECRET = "test-secret"


# ─── Passwords ────────────────────────────────────────────────────


def test_hash_roundtrip():
    stored = hash_password("correct horse battery")
    assert stored.startswith("scrypt$")
    assert verify_password("correct horse battery", stored)
    assert not verify_password("wrong password", stored)


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_malformed_hash_is_rejected():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "bcrypt$1$2$3$aa$bb")
    assert not verify_password("anything", "scrypt$x$8$1$zz$yy")


# ─── Session tokens ───────────────────────────────────────────────


def test_token_roundtrip():
    token = create_session_token("usr_1", SECRET, issued_at=1_000)
    assert verify_session_token(token, SECRET, ttl_seconds=3600, now=1_500) == "usr_1"


def test_missing_or_garbled_token():
    assert verify_session_token(None, SECRET, 3600) is None
    assert verify_session_token("", SECRET, 3600) is None
    assert verify_session_token("just-one-part", SECRET, 3600) is None


def test_forged_signature():
    token = create_session_token("usr_1", "other-secret", issued_at=1_000)
    assert verify_session_token(token, SECRET, 3600, now=1_000) is None


def test_tampered_user_id():
    _, issued, signature = create_session_token("usr_1", SECRET, issued_at=1_000).split(":")
    assert verify_session_token(f"usr_2:{issued}:{signature}", SECRET, 3600, now=1_000) is None


def test_expired_token():
    token = create_session_token("usr_1", SECRET, issued_at=1_000)
    assert verify_session_token(token, SECRET, ttl_seconds=60, now=1_061) is None


def test_token_from_the_future():
    token = create_session_token("usr_1", SECRET, issued_at=10_000)
    assert verify_session_token(token, SECRET, ttl_seconds=3600, now=9_000) is None
