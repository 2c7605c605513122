"""
auth/client.py -- Local implementation of the AuthBackend capability set.

AuthClient plays the role a hosted auth SDK plays in a browser: it signs
users in and up against AccountStore and remembers the current session.
One AuthClient is built per HTTP request, seeded with the session decoded
from the request cookie (auth/dependencies.py).

Failures are raised as BackendError with Firebase-style codes:
  auth/invalid-email          malformed address
  auth/weak-password          shorter than Settings.min_backend_password_length
  auth/password-too-long      longer than bcrypt's 72-byte input limit
  auth/email-already-in-use   duplicate email on sign-up
  auth/user-not-found         unknown email on sign-in
  auth/wrong-password         bad password
  auth/user-disabled          account deactivated
  auth/too-many-requests      LoginThrottle tripped for this email

bcrypt work runs in a worker thread so the event loop keeps serving other
requests while a hash is computed.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from collections import deque
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth import backend
from auth.backend import BackendError
from auth.models import SessionUser
from auth.store import AccountStore
from auth.tokens import burn_password_check, hash_password, password_fits, verify_password

logger = logging.getLogger("studentgate.auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LoginThrottle:
    """Sliding-window counter of failed sign-ins per email.

    Shared by every AuthClient in the process (held on app.state), so the
    window spans requests. Thread-safe because sync routes run in a pool.
    Only emails with failures inside the window hold an entry.
    """

    def __init__(self, max_failures: int = 5, window_seconds: int = 300) -> None:
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self._failures: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, email: str, now: float) -> int:
        """Drop expired failures for email and return how many remain."""
        hits = self._failures.get(email)
        if hits is None:
            return 0
        while hits and now - hits[0] > self.window_seconds:
            hits.popleft()
        if not hits:
            del self._failures[email]
        return len(hits)

    def is_locked(self, email: str) -> bool:
        with self._lock:
            return self._prune(email, time.monotonic()) >= self.max_failures

    def record_failure(self, email: str) -> None:
        with self._lock:
            now = time.monotonic()
            for tracked in list(self._failures):
                self._prune(tracked, now)
            self._failures.setdefault(email, deque()).append(now)

    def tracked_count(self) -> int:
        """Number of emails currently holding failures."""
        with self._lock:
            return len(self._failures)

    def reset(self, email: str) -> None:
        with self._lock:
            self._failures.pop(email, None)


class AuthClient:
    """Sign-in / sign-up / session holder over AccountStore."""

    def __init__(
        self,
        store: AccountStore,
        throttle: LoginThrottle,
        session: Optional[SessionUser] = None,
        min_password_length: int = 6,
    ) -> None:
        self._store = store
        self._throttle = throttle
        self._session = session
        self._min_password_length = min_password_length

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> SessionUser:
        email = normalize_email(email)
        if not _EMAIL_RE.match(email):
            raise BackendError(backend.INVALID_EMAIL)
        if self._throttle.is_locked(email):
            raise BackendError(backend.TOO_MANY_REQUESTS)

        account = self._store.get_by_email(email)
        if account is None:
            await asyncio.to_thread(burn_password_check, password)
            self._throttle.record_failure(email)
            raise BackendError(backend.USER_NOT_FOUND)
        if not await asyncio.to_thread(verify_password, password, account.hashed_password):
            self._throttle.record_failure(email)
            raise BackendError(backend.WRONG_PASSWORD)
        if not account.is_active:
            raise BackendError(backend.USER_DISABLED)

        self._throttle.reset(email)
        self._store.update_last_login(account.uid)
        self._session = account.to_session()
        logger.info("Signed in uid=%s", account.uid)
        return self._session

    async def create_user_with_password(self, email: str, password: str) -> SessionUser:
        email = normalize_email(email)
        if not _EMAIL_RE.match(email):
            raise BackendError(backend.INVALID_EMAIL)
        if len(password or "") < self._min_password_length:
            raise BackendError(backend.WEAK_PASSWORD)
        if not password_fits(password):
            raise BackendError(backend.PASSWORD_TOO_LONG)

        hashed = await asyncio.to_thread(hash_password, password)
        try:
            account = self._store.create_account(email, hashed)
        except IntegrityError as exc:
            raise BackendError(backend.EMAIL_ALREADY_IN_USE) from exc

        self._session = account.to_session()
        logger.info("Created account uid=%s", account.uid)
        return self._session

    async def sign_out(self) -> None:
        self._session = None
