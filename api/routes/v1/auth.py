"""
api/routes/v1/auth.py -- Login, registration and session REST endpoints.

Routes:
  POST /api/v1/auth/login     -- student login; sets JWT cookie
  POST /api/v1/auth/register  -- create account; sets JWT cookie; 201
  POST /api/v1/auth/logout    -- clears cookie; 200
  GET  /api/v1/auth/me        -- current session (requires auth)

The same client-side checks the web forms run (student email domain,
password rules) run here first, so a request that fails them never reaches
the backend. Gateway failures arrive as AuthError members and are rendered
with a status code from _STATUS_BY_ERROR.

Security:
  POST /login and POST /register are rate-limited per IP (LOGIN_RATE_LIMIT).
  Cache-Control: no-store on every response that sets a session cookie.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import CredentialsRequest, ErrorDetail, SessionResponse
from auth.dependencies import get_gateway, require_session
from auth.gateway import AuthGateway
from auth.limiter import limiter
from auth.models import AuthError, ErrorField, SessionUser
from auth.tokens import clear_auth_cookie, create_access_token, set_auth_cookie
from auth.validation import (
    LOGIN_EMAIL_ERROR,
    PASSWORD_RULES_ERROR,
    SIGNUP_EMAIL_ERROR,
    check_password_strength,
    is_valid_student_email,
)
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/login:     public
# - POST /api/v1/auth/register:  public
# - POST /api/v1/auth/logout:    public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:        requires auth (require_session)
router = APIRouter()

_STATUS_BY_ERROR: dict[AuthError, int] = {
    AuthError.INVALID_CREDENTIALS: 401,
    AuthError.RATE_LIMITED: 429,
    AuthError.LOGIN_FAILED: 401,
    AuthError.EMAIL_IN_USE: 409,
    AuthError.INVALID_EMAIL: 400,
    AuthError.WEAK_PASSWORD: 400,
    AuthError.PASSWORD_TOO_LONG: 400,
    AuthError.REGISTRATION_FAILED: 400,
    AuthError.NO_SESSION: 401,
    AuthError.PROFILE_SAVE_FAILED: 500,
}


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


def auth_error_exception(error: AuthError) -> HTTPException:
    """Turn a gateway AuthError into an HTTPException with a structured detail."""
    return HTTPException(
        status_code=_STATUS_BY_ERROR.get(error, 400),
        detail=ErrorDetail(code=error.code, message=error.message, field=error.field.value).model_dump(),
    )


def _client_validation_error(code: str, message: str, field: ErrorField, detail: str | None = None) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(code=code, message=message, field=field.value, detail=detail).model_dump(),
    )


def _session_response(user: SessionUser, has_profile: bool, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=SessionResponse(uid=user.uid, email=user.email, has_profile=has_profile).model_dump(),
    )
    set_auth_cookie(resp, create_access_token(user))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_login_rate_limit)  # must be ABOVE @router; SlowAPIMiddleware enforces it
@router.post("/auth/login", response_model=SessionResponse)
async def login(
    request: Request,
    body: CredentialsRequest,
    gateway: AuthGateway = Depends(get_gateway),
) -> JSONResponse:
    """Authenticate with a student email and password; set the JWT cookie."""
    if not is_valid_student_email(body.email):
        raise _client_validation_error("not_student_email", LOGIN_EMAIL_ERROR, ErrorField.email)

    result = await gateway.login_user(body.email, body.password)
    if not result.success or result.user is None:
        raise auth_error_exception(result.error or AuthError.LOGIN_FAILED)

    return _session_response(result.user, await gateway.user_has_profile())


@limiter.limit(_login_rate_limit)
@router.post("/auth/register", response_model=SessionResponse, status_code=201)
async def register(
    request: Request,
    body: CredentialsRequest,
    gateway: AuthGateway = Depends(get_gateway),
) -> JSONResponse:
    """Create an account. New accounts never have a profile yet."""
    if not is_valid_student_email(body.email):
        raise _client_validation_error("not_student_email", SIGNUP_EMAIL_ERROR, ErrorField.email)

    report = check_password_strength(body.password)
    if not report.is_strong:
        raise _client_validation_error(
            "password_rules",
            PASSWORD_RULES_ERROR,
            ErrorField.password,
            detail=",".join(report.failing()),
        )

    result = await gateway.register_user(body.email, body.password)
    if not result.success or result.user is None:
        raise auth_error_exception(result.error or AuthError.REGISTRATION_FAILED)

    return _session_response(result.user, has_profile=False, status_code=201)


@router.post("/auth/logout")
async def logout(gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Clear the JWT cookie and end the session."""
    await gateway.logout_user()
    resp = JSONResponse(content={"message": "Logged out."})
    clear_auth_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=SessionResponse)
async def me(
    current_user: SessionUser = Depends(require_session),
    gateway: AuthGateway = Depends(get_gateway),
) -> SessionResponse:
    """Return identity information for the current session."""
    return SessionResponse(
        uid=current_user.uid,
        email=current_user.email,
        has_profile=await gateway.user_has_profile(),
    )
