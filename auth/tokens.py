"""
auth/tokens.py -- Password hashing and session-cookie JWT utilities.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). The _DUMMY_HASH
       constant lets the local backend run bcrypt even when an email is
       unknown, so response time does not reveal which emails are registered.

  JWT: python-jose with HS256. Tokens carry the session uid and email plus
       an expiry. Verification returns None on any failure -- the dependency
       layer treats that as "no session".

  SECRET_KEY: sourced from core.config.get_settings() on every call, so a
       test that clears the settings cache sees the new key immediately.

Layer rule: no imports from api/ or web/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import SessionUser
from core.config import get_settings

_ALGORITHM = "HS256"
COOKIE_NAME = "access_token"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


# bcrypt only reads the first 72 bytes of its input. Newer bcrypt releases
# raise ValueError past that point; older ones silently truncate.
MAX_PASSWORD_BYTES = 72


def password_fits(plain: str) -> bool:
    """Return True if the UTF-8 encoding of plain is within bcrypt's input limit."""
    return len(plain.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError if the password is longer than MAX_PASSWORD_BYTES once
    encoded. The local backend rejects such passwords before hashing.
    """
    if not password_fits(plain):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Over-long passwords never match. Stored hashes only come from passwords
    within the limit, and truncating would let a longer input sharing the
    first 72 bytes through.
    """
    if not password_fits(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at import so the first unknown-email login costs the same as
# later ones.
_DUMMY_HASH: str = hash_password("studentgate_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run a throwaway bcrypt comparison to equalize timing for unknown emails."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user: SessionUser, expire_seconds: int = 0) -> str:
    """Encode a signed JWT for the given session.

    Args:
        user:           Session handle; uid becomes the subject claim.
        expire_seconds: Session duration. 0 means Settings.token_expire_seconds.
    """
    settings = get_settings()
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    payload = {
        "sub": user.uid,
        "email": user.email,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=duration),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> SessionUser | None:
    """Decode and verify a JWT. Returns the session handle or None on any failure."""
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "sub" not in payload or "email" not in payload:
        return None
    return SessionUser(uid=payload["sub"], email=payload["email"])


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT as an httpOnly, SameSite=Lax cookie on the response.

    max_age matches the JWT expiry so both expire together. secure is only
    set when SECURE_COOKIES=true (production behind HTTPS).
    """
    settings = get_settings()
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=duration,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(COOKIE_NAME)
