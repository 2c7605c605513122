"""
auth/dependencies.py -- FastAPI Depends() helpers for sessions and the gateway.

Session sources, checked in priority order:
  1. JWT cookie ("access_token") -- set by the web forms and the API login.
  2. Authorization: Bearer <token> header -- API clients.

Backend resources (AccountStore, DocumentStore, LoginThrottle) are created
once in the application lifespan and live on app.state. get_gateway() builds
a fresh AuthClient + AuthGateway per request around them. Tests replace the
gateway wholesale with app.dependency_overrides[get_gateway].

try_get_session() is the soft variant (returns None on failure).
require_session() raises HTTP 401 if unauthenticated.

Layer rule: no imports from web/. auth/dependencies.py may import from
fastapi because it is part of the dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.client import AuthClient
from auth.gateway import AuthGateway
from auth.models import SessionUser
from auth.tokens import COOKIE_NAME, decode_access_token
from core.config import get_settings


def try_get_session(request: Request) -> SessionUser | None:
    """Return the session for this request, or None. Never raises.

    A token is only honoured while its account still exists and is active,
    so disabling an account ends its sessions on the next request.
    """
    token: str | None = request.cookies.get(COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    if not token:
        return None

    session = decode_access_token(token)
    if session is None:
        return None
    account = request.app.state.account_store.get_by_uid(session.uid)
    if account is None or not account.is_active:
        return None
    return account.to_session()


def get_gateway(request: Request) -> AuthGateway:
    """Build the per-request gateway, seeded with the request's session."""
    state = request.app.state
    client = AuthClient(
        state.account_store,
        state.login_throttle,
        session=try_get_session(request),
        min_password_length=get_settings().min_backend_password_length,
    )
    return AuthGateway(client, state.documents)


def require_session(gateway: AuthGateway = Depends(get_gateway)) -> SessionUser:
    """Require authentication. Raises HTTP 401 if the request has no session.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: SessionUser = Depends(require_session)): ...
    """
    user = gateway.get_current_user()
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
