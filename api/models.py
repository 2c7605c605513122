"""
API request and response models for StudentGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import PasswordStrengthReport

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Body for POST /api/v1/auth/login and /api/v1/auth/register.

    Only the email is trimmed; passwords are taken verbatim. max_length on
    password bounds request size only. bcrypt's 72-byte limit is enforced by
    the auth backend, which answers auth/password-too-long on registration.
    """

    email: str = Field(max_length=320)
    password: str = Field(max_length=128)

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()


class EmailCheckRequest(BaseModel):
    email: str = Field(default="", max_length=320)


class PasswordCheckRequest(BaseModel):
    password: str = Field(default="", max_length=128)


class ProfileRequest(BaseModel):
    """Body for PUT /api/v1/profile.

    Extra keys are allowed: a profile is an open key/value document. email
    and createdAt are always overwritten by the gateway.
    """

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=200)
    university: str = Field(min_length=1, max_length=200)
    student_id: Optional[str] = Field(default=None, max_length=64)
    department: Optional[str] = Field(default=None, max_length=200)
    year_of_study: Optional[str] = Field(default=None, max_length=32)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Returned by login, register and /me.

    has_profile tells a client whether to show profile setup next.
    """

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str
    has_profile: bool = False


class EmailCheckResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    message: str = ""


class PasswordStrengthResponse(BaseModel):
    """Per-rule outcome for POST /api/v1/validate/password."""

    model_config = ConfigDict(frozen=True)

    length: bool
    lower: bool
    upper: bool
    number: bool
    special: bool
    strong: bool
    failing: list[str]

    @classmethod
    def from_report(cls, report: PasswordStrengthReport) -> "PasswordStrengthResponse":
        return cls(
            length=report.length,
            lower=report.lower,
            upper=report.upper,
            number=report.number,
            special=report.special,
            strong=report.is_strong,
            failing=report.failing(),
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    field names the form input the message belongs to ("email",
    "password" or "form"), when there is one.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    field: Optional[str] = None
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
