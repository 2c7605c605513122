"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores, the
gateway and routes do the work; these types own the domain shape.

AuthError replaces string-matching on message text: every failure carries
the form field it belongs to, so the UI routes errors by tag, never by
searching the message for "email".

Layer rule: no imports from api/, web/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional


class ErrorField(str, Enum):
    """Form field an error message is displayed next to."""

    email = "email"
    password = "password"
    form = "form"


class AuthError(Enum):
    """User-facing failure taxonomy for the gateway.

    Each member is (code, message, field). Codes are stable identifiers for
    API clients; messages are display text only.
    """

    INVALID_CREDENTIALS = ("invalid_credentials", "Invalid email or password.", ErrorField.email)
    RATE_LIMITED = ("rate_limited", "Too many failed attempts. Try again later.", ErrorField.email)
    LOGIN_FAILED = ("login_failed", "Login failed. Please check your credentials.", ErrorField.email)
    EMAIL_IN_USE = ("email_in_use", "This email is already registered.", ErrorField.email)
    INVALID_EMAIL = ("invalid_email", "Invalid email address.", ErrorField.email)
    WEAK_PASSWORD = ("weak_password", "Password is too weak. Use at least 6 characters.", ErrorField.password)
    PASSWORD_TOO_LONG = ("password_too_long", "Password is too long. Use at most 72 bytes.", ErrorField.password)
    REGISTRATION_FAILED = ("registration_failed", "Registration failed.", ErrorField.password)
    NO_SESSION = ("no_session", "No authenticated user found.", ErrorField.form)
    PROFILE_SAVE_FAILED = ("profile_save_failed", "Failed to save profile. Please try again.", ErrorField.form)

    def __init__(self, code: str, message: str, field: ErrorField) -> None:
        self.code = code
        self.message = message
        self.field = field


@dataclass(frozen=True)
class Credential:
    """One form submission's email and password. Never persisted."""

    email: str
    password: str


@dataclass(frozen=True)
class PasswordStrengthReport:
    """Outcome of each password rule. Recomputed on every keystroke."""

    length: bool
    lower: bool
    upper: bool
    number: bool
    special: bool

    @property
    def is_strong(self) -> bool:
        return self.length and self.lower and self.upper and self.number and self.special

    def failing(self) -> list[str]:
        """Names of the rules that did not pass, in declaration order."""
        return [f.name for f in fields(self) if not getattr(self, f.name)]


@dataclass(frozen=True)
class SessionUser:
    """Opaque session handle for an authenticated user.

    uid keys the user's profile document; email is copied into the profile
    on save.
    """

    uid: str
    email: str


@dataclass
class Account:
    """A stored account in the local backend.

    email is normalized (trimmed, lowercased) before it reaches the store, so
    the UNIQUE constraint on email is effectively case-insensitive.
    """

    uid: str
    email: str
    hashed_password: str
    created_at: str | None = None
    last_login: str | None = None
    is_active: bool = True

    def to_session(self) -> SessionUser:
        return SessionUser(uid=self.uid, email=self.email)


@dataclass
class AuthResult:
    """Result of login_user() / register_user(). Consumed once by the caller."""

    success: bool
    message: Optional[str] = None
    user: Optional[SessionUser] = None
    error: Optional[AuthError] = None

    @classmethod
    def ok(cls, user: SessionUser) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def fail(cls, error: AuthError) -> "AuthResult":
        return cls(success=False, message=error.message, error=error)


@dataclass
class SaveResult:
    """Result of save_profile()."""

    success: bool
    message: Optional[str] = None
    error: Optional[AuthError] = None

    @classmethod
    def fail(cls, error: AuthError) -> "SaveResult":
        return cls(success=False, message=error.message, error=error)
