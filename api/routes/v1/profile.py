"""
api/routes/v1/profile.py -- Profile document and live-validation endpoints.

Routes:
  GET  /api/v1/profile            -- current user's profile (requires auth)
  PUT  /api/v1/profile            -- replace current user's profile (requires auth)
  POST /api/v1/validate/email     -- student email check (public)
  POST /api/v1/validate/password  -- per-rule password report (public)

The validate endpoints are the JSON counterpart of the per-keystroke
feedback on the web forms. They are pure and unauthenticated.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from api.models import (
    EmailCheckRequest,
    EmailCheckResponse,
    ErrorDetail,
    PasswordCheckRequest,
    PasswordStrengthResponse,
    ProfileRequest,
)
from api.routes.v1.auth import auth_error_exception
from auth.dependencies import get_gateway, require_session
from auth.gateway import AuthGateway
from auth.models import AuthError
from auth.validation import EMAIL_HINT, check_password_strength, is_valid_student_email

# Auth policy:
# - GET/PUT /api/v1/profile:   requires auth (require_session)
# - POST /api/v1/validate/*:   public -- pure checks, no backend access
router = APIRouter()


@router.get("/profile", dependencies=[Depends(require_session)])
async def get_profile(gateway: AuthGateway = Depends(get_gateway)) -> dict[str, Any]:
    profile = await gateway.get_current_user_profile()
    if profile is None:
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(code="not_found", message="No profile has been saved yet.").model_dump(),
        )
    return profile


@router.put("/profile", dependencies=[Depends(require_session)])
async def put_profile(body: ProfileRequest, gateway: AuthGateway = Depends(get_gateway)) -> dict[str, Any]:
    """Replace the profile document. Returns the stored document."""
    result = await gateway.save_profile(body.model_dump(exclude_none=True))
    if not result.success:
        raise auth_error_exception(result.error or AuthError.PROFILE_SAVE_FAILED)
    return await gateway.get_current_user_profile() or {}


@router.post("/validate/email", response_model=EmailCheckResponse)
async def validate_email(body: EmailCheckRequest) -> EmailCheckResponse:
    valid = is_valid_student_email(body.email)
    return EmailCheckResponse(valid=valid, message="" if valid else EMAIL_HINT)


@router.post("/validate/password", response_model=PasswordStrengthResponse)
async def validate_password(body: PasswordCheckRequest) -> PasswordStrengthResponse:
    return PasswordStrengthResponse.from_report(check_password_strength(body.password))
