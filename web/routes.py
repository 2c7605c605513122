"""
web/routes.py -- Jinja2 template routes for the StudentGate web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same account store, document store, login throttle) and reach the
backend only through the per-request AuthGateway.

Form logic lives in web/controllers.py; handlers here translate a
SubmitOutcome into a template render or a redirect with a session cookie.

Routes:
  GET  /                   -- redirect to /dashboard or /login
  GET  /login              -- login form (#loginForm)
  POST /login              -- submit login; 302 to /dashboard or /profile-setup
  GET  /signup             -- signup form (#signupForm)
  POST /signup             -- submit signup; 302 to /profile-setup
  POST /validate/email     -- HTMX: email domain hint fragment
  POST /validate/password  -- HTMX: password indicators; clears #passwordError (out-of-band)
  GET  /profile-setup      -- profile form (session required)
  POST /profile-setup      -- save profile; 302 to /dashboard
  GET  /dashboard          -- profile summary (session required)
  POST /logout             -- end session, redirect /login
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import get_gateway
from auth.gateway import AuthGateway
from auth.limiter import limiter
from auth.models import ErrorField
from auth.tokens import clear_auth_cookie, create_access_token, set_auth_cookie
from auth.validation import check_password_strength
from core.config import get_settings
from web.controllers import (
    DASHBOARD_PAGE,
    PROFILE_FIELDS,
    LoginController,
    PasswordRequirementsView,
    ProfileSetupController,
    SignupController,
    SubmitOutcome,
)

logger = logging.getLogger("studentgate.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def _safe_next(next_url: Optional[str]) -> Optional[str]:
    """Accept a post-login redirect target only if it is a server-local path.

    Rejects absolute URLs and protocol-relative URLs ("//host"), both of
    which would send the user off-site after login.
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return None


def _require_session(request: Request, gateway: AuthGateway) -> Optional[RedirectResponse]:
    """Return a redirect to /login?next=<path> if there is no session, else None.

    Call at the top of protected route handlers:
        if redirect := _require_session(request, gateway):
            return redirect
    """
    if gateway.get_current_user() is None:
        return RedirectResponse(f"/login?next={request.url.path}", status_code=302)
    return None


def _session_redirect(outcome: SubmitOutcome, location: str) -> RedirectResponse:
    """Redirect after a successful submit and attach the session cookie."""
    resp = RedirectResponse(location, status_code=302)
    if outcome.user is not None:
        set_auth_cookie(resp, create_access_token(outcome.user))
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _form_context(outcome: Optional[SubmitOutcome], email: str = "") -> dict:
    outcome = outcome or SubmitOutcome()
    return {
        "email": email,
        "email_error": outcome.error_for(ErrorField.email),
        "password_error": outcome.error_for(ErrorField.password),
        "form_error": outcome.error_for(ErrorField.form),
    }


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def index(gateway: AuthGateway = Depends(get_gateway)) -> RedirectResponse:
    target = DASHBOARD_PAGE if gateway.get_current_user() is not None else "/login"
    return RedirectResponse(target, status_code=302)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> HTMLResponse:
    """Render the login page. Already-authenticated users go to /."""
    if gateway.get_current_user() is not None:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(request, "login.html", _form_context(None))


@limiter.limit(_login_rate_limit)  # brute-force mitigation; enforced by SlowAPIMiddleware
@router.post("/login", response_class=HTMLResponse)
async def login_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    gateway: AuthGateway = Depends(get_gateway),
) -> HTMLResponse:
    """Handle #loginForm submission.

    With a profile the user lands on /dashboard (or a safe ?next= path);
    without one, on /profile-setup.
    """
    outcome = await LoginController(gateway).submit(email, password)
    if not outcome.success:
        return templates.TemplateResponse(request, "login.html", _form_context(outcome, email=email.strip()))

    location = outcome.redirect
    if location == DASHBOARD_PAGE:
        location = _safe_next(request.query_params.get("next")) or location
    return _session_redirect(outcome, location)


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> HTMLResponse:
    if gateway.get_current_user() is not None:
        return RedirectResponse("/", status_code=302)
    context = _form_context(None)
    context["requirements"] = PasswordRequirementsView.from_report(check_password_strength(""))
    return templates.TemplateResponse(request, "signup.html", context)


@router.post("/signup", response_class=HTMLResponse)
async def signup_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    gateway: AuthGateway = Depends(get_gateway),
) -> HTMLResponse:
    """Handle #signupForm submission. Success always goes to /profile-setup."""
    controller = SignupController(gateway)
    outcome = await controller.submit(email, password)
    if outcome.success:
        return _session_redirect(outcome, outcome.redirect)

    context = _form_context(outcome, email=email.strip())
    context["requirements"] = outcome.requirements or controller.on_password_input(password)
    context["requirements"].show = outcome.requirements is not None
    return templates.TemplateResponse(request, "signup.html", context)


# ---------------------------------------------------------------------------
# Per-keystroke feedback (HTMX fragments)
# ---------------------------------------------------------------------------


@router.post("/validate/email", response_class=HTMLResponse)
def validate_email_htmx(
    request: Request,
    email: str = Form(default=""),
    gateway: AuthGateway = Depends(get_gateway),
) -> HTMLResponse:
    feedback = LoginController(gateway).on_email_input(email)
    return templates.TemplateResponse(request, "partials/email_hint.html", {"feedback": feedback})


@router.post("/validate/password", response_class=HTMLResponse)
def validate_password_htmx(
    request: Request,
    password: str = Form(default=""),
    gateway: AuthGateway = Depends(get_gateway),
) -> HTMLResponse:
    requirements: PasswordRequirementsView = SignupController(gateway).on_password_input(password)
    return templates.TemplateResponse(
        request,
        "partials/password_feedback.html",
        {"requirements": requirements},
    )


# ---------------------------------------------------------------------------
# Profile setup
# ---------------------------------------------------------------------------


@router.get("/profile-setup", response_class=HTMLResponse)
async def profile_setup_form(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> HTMLResponse:
    if redirect := _require_session(request, gateway):
        return redirect
    profile = await gateway.get_current_user_profile() or {}
    return templates.TemplateResponse(
        request,
        "profile_setup.html",
        {"fields": PROFILE_FIELDS, "values": profile, "form_error": ""},
    )


@router.post("/profile-setup", response_class=HTMLResponse)
async def profile_setup_post(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> HTMLResponse:
    if redirect := _require_session(request, gateway):
        return redirect
    form = dict(await request.form())
    outcome = await ProfileSetupController(gateway).submit(form)
    if outcome.success:
        return RedirectResponse(outcome.redirect, status_code=302)
    return templates.TemplateResponse(
        request,
        "profile_setup.html",
        {"fields": PROFILE_FIELDS, "values": form, "form_error": outcome.error_for(ErrorField.form)},
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> HTMLResponse:
    if redirect := _require_session(request, gateway):
        return redirect
    profile = await gateway.get_current_user_profile()
    if profile is None:
        return RedirectResponse("/profile-setup", status_code=302)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"user": gateway.get_current_user(), "profile": profile, "fields": PROFILE_FIELDS},
    )


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------


@router.post("/logout")
async def logout(gateway: AuthGateway = Depends(get_gateway)) -> RedirectResponse:
    """End the session and clear the cookie."""
    await gateway.logout_user()
    resp = RedirectResponse("/login", status_code=302)
    clear_auth_cookie(resp)
    return resp
