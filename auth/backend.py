"""
auth/backend.py -- Capability set the gateway needs from an auth/document service.

The gateway (auth/gateway.py) depends only on these two protocols, never on
a concrete vendor. auth/client.py and auth/store.py provide the local
SQL-backed implementation; tests substitute fakes.

Error vocabulary: backends raise BackendError with a Firebase-style code
(e.g. "auth/wrong-password"). The gateway maps codes to AuthError members.

Layer rule: no imports from api/, web/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from auth.models import SessionUser

# Error codes understood by the gateway.
USER_NOT_FOUND = "auth/user-not-found"
WRONG_PASSWORD = "auth/wrong-password"
INVALID_CREDENTIAL = "auth/invalid-credential"
TOO_MANY_REQUESTS = "auth/too-many-requests"
EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
INVALID_EMAIL = "auth/invalid-email"
WEAK_PASSWORD = "auth/weak-password"
PASSWORD_TOO_LONG = "auth/password-too-long"
USER_DISABLED = "auth/user-disabled"


class BackendError(Exception):
    """Failure reported by the auth/document backend."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code


class _ServerTimestamp:
    """Sentinel replaced by the document store's clock at write time."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass
class DocumentSnapshot:
    """A read of one document. exists=False means no document at that key."""

    doc_id: str
    exists: bool
    data: dict[str, Any] = field(default_factory=dict)


class AuthBackend(Protocol):
    """Account and session half of the backend."""

    @property
    def current_user(self) -> Optional[SessionUser]: ...

    async def sign_in_with_password(self, email: str, password: str) -> SessionUser: ...

    async def create_user_with_password(self, email: str, password: str) -> SessionUser: ...

    async def sign_out(self) -> None: ...


class DocumentStore(Protocol):
    """Keyed document half of the backend.

    set() replaces the document unless merge=True, in which case the given
    keys are merged over the stored ones. SERVER_TIMESTAMP values are
    resolved by the store.
    """

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot: ...

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None: ...
