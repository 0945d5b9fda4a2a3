"""Password hashing and signed session tokens.

Passwords are stored as ``scrypt$<n>$<r>$<p>$<salt_hex>$<hash_hex>``.

Session tokens are stateless: ``{user_id}:{issued_at}:{hmac_hex}`` where the
HMAC-SHA256 covers ``{user_id}:{issued_at}``.  Verification is constant
time and enforces a TTL, so revocation before expiry is not supported.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time

SESSION_COOKIE_NAME = "studio_session"

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_SALT_BYTES = 16
_KEY_LEN = 32


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(_SALT_BYTES)
    derived = hashlib.scrypt(
        password.encode("utf-8"), salt=salt, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P, dklen=_KEY_LEN
    )
    return f"scrypt${_SCRYPT_N}${_SCRYPT_R}${_SCRYPT_P}${salt.hex()}${derived.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, n, r, p, salt_hex, hash_hex = stored.split("$")
        if scheme != "scrypt":
            return False
        expected = bytes.fromhex(hash_hex)
        derived = hashlib.scrypt(
            password.encode("utf-8"),
            salt=bytes.fromhex(salt_hex),
            n=int(n),
            r=int(r),
            p=int(p),
            dklen=len(expected),
        )
    except ValueError:
        return False
    return hmac.compare_digest(derived, expected)


def _signature(secret: str, payload: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def create_session_token(user_id: str, secret: str, issued_at: int | None = None) -> str:
    issued = int(time.time()) if issued_at is None else issued_at
    payload = f"{user_id}:{issued}"
    return f"{payload}:{_signature(secret, payload)}"


def verify_session_token(
    token: str | None,
    secret: str,
    ttl_seconds: int,
    now: float | None = None,
) -> str | None:
    """Return the user id carried by *token*, or ``None`` if it is invalid or expired."""
    if not token:
        return None
    parts = token.split(":")
    if len(parts) != 3:
        return None
    user_id, issued_raw, signature = parts
    if not hmac.compare_digest(_signature(secret, f"{user_id}:{issued_raw}"), signature):
        return None
    try:
        issued = int(issued_raw)
    except ValueError:
        return None
    current = time.time() if now is None else now
    if issued > current + 60 or current - issued > ttl_seconds:
        return None
    return user_id
