"""
auth/validation.py -- Pure credential checks for the student signup/login forms.

Everything here is deterministic and side-effect free, so the web layer can
call it on every keystroke and the API layer can call it on every request.

Email rule: the domain part must contain ".edu" anywhere, not only as a
suffix. That admits country subdomains such as ".edu.bd" and ".edu.au".

Password rules: five independent predicates. is_password_strong() is derived
from check_password_strength() so the two can never disagree.

Layer rule: stdlib and auth.models only. No imports from api/, web/, or core/.
"""

from __future__ import annotations

import re

from auth.models import PasswordStrengthReport

ALLOWED_DOMAIN = ".edu"
MIN_PASSWORD_LENGTH = 8

# Client-side messages shared by the web forms and the JSON API.
EMAIL_HINT = "Must end with .edu"
LOGIN_EMAIL_ERROR = "Please use a student email (.edu)."
SIGNUP_EMAIL_ERROR = "Please use a valid student email (must contain .edu in the domain)."
PASSWORD_RULES_ERROR = "Password does not meet the requirements."

_LOWER_RE = re.compile(r"[a-z]")
_UPPER_RE = re.compile(r"[A-Z]")
_NUMBER_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


def is_valid_student_email(email: str) -> bool:
    """Return True if the address has exactly one '@' and a '.edu' domain.

    The address is trimmed and lowercased first. Anything that does not split
    into exactly a local part and a domain (no '@', or several) fails closed.
    """
    parts = (email or "").strip().lower().split("@")
    if len(parts) != 2:
        return False
    domain = parts[1]
    return ALLOWED_DOMAIN in domain


def check_password_strength(password: str) -> PasswordStrengthReport:
    """Evaluate each password rule independently."""
    password = password or ""
    return PasswordStrengthReport(
        length=len(password) >= MIN_PASSWORD_LENGTH,
        lower=bool(_LOWER_RE.search(password)),
        upper=bool(_UPPER_RE.search(password)),
        number=bool(_NUMBER_RE.search(password)),
        special=bool(_SPECIAL_RE.search(password)),
    )


def is_password_strong(password: str) -> bool:
    """Return True if all five password rules pass."""
    return check_password_strength(password).is_strong
