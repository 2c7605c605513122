"""
web/controllers.py -- Form controllers for the login, signup and profile-setup pages.

Each controller is a two-state machine:
  editing     -- on_*_input() handlers return feedback; nothing is submitted.
  submitting  -- submit() re-runs client-side validation, then awaits one
                 gateway call. Success ends in navigation; failure returns
                 the form to editing with an inline error.

Controllers return plain data (FieldFeedback, PasswordRequirementsView,
SubmitOutcome). web/routes.py turns that into templates, redirects and
cookies, so the workflow is testable without HTTP.

Error placement comes from AuthError.field, never from the message text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from auth.gateway import AuthGateway
from auth.models import Credential, ErrorField, PasswordStrengthReport, SessionUser
from auth.validation import (
    EMAIL_HINT,
    LOGIN_EMAIL_ERROR,
    PASSWORD_RULES_ERROR,
    SIGNUP_EMAIL_ERROR,
    check_password_strength,
    is_valid_student_email,
)

logger = logging.getLogger("studentgate.web")

DASHBOARD_PAGE = "/dashboard"
PROFILE_SETUP_PAGE = "/profile-setup"
LOGIN_FALLBACK_ERROR = "Login failed."

# (element id, report attribute, label) in display order.
_REQUIREMENTS: list[tuple[str, str, str]] = [
    ("reqLength", "length", "At least 8 characters"),
    ("reqLower", "lower", "One lowercase letter"),
    ("reqUpper", "upper", "One uppercase letter"),
    ("reqNumber", "number", "One number"),
    ("reqSpecial", "special", "One special character"),
]


class FormState(str, Enum):
    editing = "editing"
    submitting = "submitting"
    navigated = "navigated"


@dataclass
class FieldFeedback:
    message: str = ""

    @property
    def has_error(self) -> bool:
        return bool(self.message)


@dataclass
class RequirementIndicator:
    element_id: str
    label: str
    valid: bool


@dataclass
class PasswordRequirementsView:
    """Per-rule indicators for the signup password box."""

    indicators: list[RequirementIndicator]
    show: bool = False

    @classmethod
    def from_report(cls, report: PasswordStrengthReport, show: bool = False) -> "PasswordRequirementsView":
        return cls(
            indicators=[
                RequirementIndicator(element_id=el, label=label, valid=getattr(report, attr))
                for el, attr, label in _REQUIREMENTS
            ],
            show=show,
        )

    def failing_ids(self) -> list[str]:
        return [i.element_id for i in self.indicators if not i.valid]


@dataclass
class SubmitOutcome:
    """What the page should do after a submit.

    redirect is set on success; errors maps a field to its inline message
    on failure. gateway_called records whether validation let the
    submission reach the backend.
    """

    redirect: Optional[str] = None
    errors: dict[ErrorField, str] = field(default_factory=dict)
    user: Optional[SessionUser] = None
    requirements: Optional[PasswordRequirementsView] = None
    gateway_called: bool = False

    @property
    def success(self) -> bool:
        return self.redirect is not None

    def error_for(self, target: ErrorField) -> str:
        return self.errors.get(target, "")


class _FormController:
    def __init__(self, gateway: AuthGateway) -> None:
        self.gateway = gateway
        self.state = FormState.editing

    def _begin_submit(self) -> None:
        if self.state is FormState.submitting:
            raise RuntimeError("A submission is already in flight for this form.")
        self.state = FormState.submitting

    def _fail(self, outcome: SubmitOutcome) -> SubmitOutcome:
        self.state = FormState.editing
        return outcome

    def _navigate(self, outcome: SubmitOutcome) -> SubmitOutcome:
        self.state = FormState.navigated
        return outcome

    def on_email_input(self, email: str) -> FieldFeedback:
        """Live domain hint while typing. Empty input shows nothing."""
        email = (email or "").strip()
        if email and not is_valid_student_email(email):
            return FieldFeedback(EMAIL_HINT)
        return FieldFeedback()


class LoginController(_FormController):
    """Controller for the page holding #loginForm."""

    async def submit(self, email: str, password: str) -> SubmitOutcome:
        self._begin_submit()
        credential = Credential(email=(email or "").strip(), password=password or "")

        if not is_valid_student_email(credential.email):
            return self._fail(SubmitOutcome(errors={ErrorField.email: LOGIN_EMAIL_ERROR}))

        result = await self.gateway.login_user(credential.email, credential.password)
        if not result.success:
            target = result.error.field if result.error else ErrorField.email
            message = result.message or LOGIN_FALLBACK_ERROR
            return self._fail(SubmitOutcome(errors={target: message}, gateway_called=True))

        has_profile = await self.gateway.user_has_profile()
        destination = DASHBOARD_PAGE if has_profile else PROFILE_SETUP_PAGE
        logger.info("Login ok uid=%s -> %s", result.user.uid if result.user else "?", destination)
        return self._navigate(SubmitOutcome(redirect=destination, user=result.user, gateway_called=True))


class SignupController(_FormController):
    """Controller for the page holding #signupForm."""

    def on_password_input(self, password: str) -> PasswordRequirementsView:
        """Recompute every indicator.

        The /validate/password fragment pairs this with an empty #passwordError,
        so typing also clears any password error.
        """
        return PasswordRequirementsView.from_report(check_password_strength(password), show=True)

    async def submit(self, email: str, password: str) -> SubmitOutcome:
        self._begin_submit()
        credential = Credential(email=(email or "").strip(), password=password or "")

        if not is_valid_student_email(credential.email):
            return self._fail(SubmitOutcome(errors={ErrorField.email: SIGNUP_EMAIL_ERROR}))

        report = check_password_strength(credential.password)
        if not report.is_strong:
            return self._fail(
                SubmitOutcome(
                    errors={ErrorField.password: PASSWORD_RULES_ERROR},
                    requirements=PasswordRequirementsView.from_report(report, show=True),
                )
            )

        result = await self.gateway.register_user(credential.email, credential.password)
        if not result.success:
            target = result.error.field if result.error else ErrorField.password
            return self._fail(SubmitOutcome(errors={target: result.message or ""}, gateway_called=True))

        return self._navigate(SubmitOutcome(redirect=PROFILE_SETUP_PAGE, user=result.user, gateway_called=True))


# Profile form fields. Required ones must be non-blank after trimming.
PROFILE_FIELDS: list[tuple[str, str, bool]] = [
    ("full_name", "Full name", True),
    ("student_id", "Student ID", False),
    ("university", "University", True),
    ("department", "Department", False),
    ("year_of_study", "Year of study", False),
]


class ProfileSetupController(_FormController):
    """Controller for the profile-setup page shown after signup."""

    async def submit(self, form: dict[str, Any]) -> SubmitOutcome:
        self._begin_submit()
        profile: dict[str, str] = {}
        for name, label, required in PROFILE_FIELDS:
            value = str(form.get(name) or "").strip()
            if required and not value:
                return self._fail(SubmitOutcome(errors={ErrorField.form: f"{label} is required."}))
            if value:
                profile[name] = value

        result = await self.gateway.save_profile(profile)
        if not result.success:
            return self._fail(SubmitOutcome(errors={ErrorField.form: result.message or ""}, gateway_called=True))
        return self._navigate(
            SubmitOutcome(redirect=DASHBOARD_PAGE, user=self.gateway.get_current_user(), gateway_called=True)
        )
