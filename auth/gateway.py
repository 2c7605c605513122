"""
auth/gateway.py -- The boundary between StudentGate and its auth/document backend.

AuthGateway wraps an AuthBackend and a DocumentStore (auth/backend.py) and
exposes the operations the forms and API need. It is a constructed
dependency: callers build one around whichever backend they hold (the local
AuthClient in production, a fake in tests).

Failure contract: no backend exception escapes a gateway method. Sign-in and
sign-up failures come back as AuthResult with an AuthError; profile writes
come back as SaveResult; profile reads come back as None.

Profile lookup returns None both when there is no session and when the
session has no document. Callers that need to tell those apart check
get_current_user() first.

Layer rule: no imports from api/, web/, or core/.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from auth import backend
from auth.backend import SERVER_TIMESTAMP, AuthBackend, BackendError, DocumentStore
from auth.models import AuthError, AuthResult, SaveResult, SessionUser

logger = logging.getLogger("studentgate.gateway")

PROFILE_COLLECTION = "users"

# Backend code -> user-facing error. Codes missing here fall back to the
# generic error of the operation.
_LOGIN_ERRORS: dict[str, AuthError] = {
    backend.USER_NOT_FOUND: AuthError.INVALID_CREDENTIALS,
    backend.WRONG_PASSWORD: AuthError.INVALID_CREDENTIALS,
    backend.INVALID_CREDENTIAL: AuthError.INVALID_CREDENTIALS,
    backend.TOO_MANY_REQUESTS: AuthError.RATE_LIMITED,
}

_REGISTER_ERRORS: dict[str, AuthError] = {
    backend.EMAIL_ALREADY_IN_USE: AuthError.EMAIL_IN_USE,
    backend.INVALID_EMAIL: AuthError.INVALID_EMAIL,
    backend.WEAK_PASSWORD: AuthError.WEAK_PASSWORD,
    backend.PASSWORD_TOO_LONG: AuthError.PASSWORD_TOO_LONG,
}


def _error_code(exc: Exception) -> str:
    return exc.code if isinstance(exc, BackendError) else ""


class AuthGateway:
    """Sign-in, sign-up and profile operations with error remapping.

    Usage:
        gateway = AuthGateway(auth_client, document_store)
        result = await gateway.login_user("a@uni.edu", "Secret1!")
        if result.success:
            has_profile = await gateway.user_has_profile()
    """

    def __init__(self, auth: AuthBackend, db: DocumentStore) -> None:
        self.auth = auth
        self.db = db

    async def login_user(self, email: str, password: str) -> AuthResult:
        try:
            user = await self.auth.sign_in_with_password(email, password)
        except Exception as exc:
            code = _error_code(exc)
            logger.info("Login failed (code=%s)", code or type(exc).__name__)
            return AuthResult.fail(_LOGIN_ERRORS.get(code, AuthError.LOGIN_FAILED))
        return AuthResult.ok(user)

    async def register_user(self, email: str, password: str) -> AuthResult:
        try:
            user = await self.auth.create_user_with_password(email, password)
        except Exception as exc:
            code = _error_code(exc)
            logger.warning("Registration failed (code=%s): %s", code or type(exc).__name__, exc)
            return AuthResult.fail(_REGISTER_ERRORS.get(code, AuthError.REGISTRATION_FAILED))
        return AuthResult.ok(user)

    async def save_profile(self, profile_data: dict[str, Any]) -> SaveResult:
        """Write the current user's profile document.

        The stored document is profile_data plus the session email and a
        server-assigned createdAt. It replaces any existing document.
        """
        user = self.auth.current_user
        if user is None:
            return SaveResult.fail(AuthError.NO_SESSION)

        document = {
            **profile_data,
            "email": user.email,
            "createdAt": SERVER_TIMESTAMP,
        }
        try:
            await self.db.set(PROFILE_COLLECTION, user.uid, document)
        except Exception:
            logger.exception("Error saving profile for uid=%s", user.uid)
            return SaveResult.fail(AuthError.PROFILE_SAVE_FAILED)
        return SaveResult(success=True)

    async def get_current_user_profile(self) -> Optional[dict[str, Any]]:
        user = self.auth.current_user
        if user is None:
            return None
        try:
            snapshot = await self.db.get(PROFILE_COLLECTION, user.uid)
        except Exception:
            logger.exception("Error fetching profile for uid=%s", user.uid)
            return None
        return snapshot.data if snapshot.exists else None

    async def user_has_profile(self) -> bool:
        return await self.get_current_user_profile() is not None

    def get_current_user(self) -> Optional[SessionUser]:
        return self.auth.current_user

    async def logout_user(self) -> None:
        try:
            await self.auth.sign_out()
        except Exception:
            logger.exception("Sign-out failed")
