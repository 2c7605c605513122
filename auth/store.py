"""
auth/store.py -- SQLAlchemy Core persistence for the local auth backend.

Pattern: Repository + Data Mapper.
AccountStore and DocumentStore are the repositories; _row_to_account is the
mapper. Route, gateway and client code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Documents are stored as JSON text keyed by (collection, doc_id). The
SERVER_TIMESTAMP sentinel is resolved here, so every timestamp in a
document comes from this process's UTC clock, never from the caller.

Layer rule: no imports from api/, web/, or core/.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, Integer, MetaData, PrimaryKeyConstraint, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.backend import SERVER_TIMESTAMP, DocumentSnapshot
from auth.models import Account

logger = logging.getLogger("studentgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("uid", String(64), primary_key=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("last_login", Text),
    Column("is_active", Integer, nullable=False, server_default="1"),
)

_documents = Table(
    "documents",
    _metadata,
    Column("collection", String(100), nullable=False),
    Column("doc_id", String(64), nullable=False),
    Column("data", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    PrimaryKeyConstraint("collection", "doc_id"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine and ensure both tables exist.

    One engine is shared by AccountStore and DocumentStore so both see the
    same in-memory database in tests.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    _metadata.create_all(engine)
    return engine


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account records.

    Usage:
        store = AccountStore(make_engine("sqlite:///:memory:"))
        account = store.create_account("a@uni.edu", hash_password("Secret1!"))
        store.get_by_email("a@uni.edu")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_account(self, email: str, hashed_password: str) -> Account:
        """Insert a new account with a fresh uid and return it.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The client turns that into auth/email-already-in-use.
        """
        account = Account(
            uid=uuid.uuid4().hex,
            email=email,
            hashed_password=hashed_password,
            created_at=_now_iso(),
        )
        with self.engine.connect() as conn:
            conn.execute(
                _accounts.insert().values(
                    uid=account.uid,
                    email=account.email,
                    hashed_password=account.hashed_password,
                    created_at=account.created_at,
                    is_active=1,
                )
            )
            conn.commit()
        return account

    def get_by_email(self, email: str) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_uid(self, uid: str) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.uid == uid)).fetchone()
        return _row_to_account(row) if row is not None else None

    def set_active(self, uid: str, is_active: bool) -> bool:
        """Enable or disable an account. Returns False if uid was not found.

        Driven by the `studentgate disable/enable` commands in main.py.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where(_accounts.c.uid == uid).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, uid: str) -> None:
        with self.engine.connect() as conn:
            conn.execute(_accounts.update().where(_accounts.c.uid == uid).values(last_login=_now_iso()))
            conn.commit()


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentStore:
    """Keyed JSON document repository with get / set(merge) semantics.

    Methods are coroutines so this class satisfies auth.backend.DocumentStore.
    The SQL itself is synchronous and short.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        with self.engine.connect() as conn:
            row = conn.execute(
                _documents.select().where((_documents.c.collection == collection) & (_documents.c.doc_id == doc_id))
            ).fetchone()
        if row is None:
            return DocumentSnapshot(doc_id=doc_id, exists=False)
        return DocumentSnapshot(doc_id=doc_id, exists=True, data=json.loads(row.data))

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        """Write a document. Replaces it unless merge=True.

        Raises TypeError if data holds values that cannot be stored as JSON.
        """
        now = _now_iso()
        resolved = {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

        with self.engine.connect() as conn:
            key = (_documents.c.collection == collection) & (_documents.c.doc_id == doc_id)
            row = conn.execute(_documents.select().where(key)).fetchone()
            if row is not None and merge:
                resolved = {**json.loads(row.data), **resolved}
            payload = json.dumps(resolved)
            if row is None:
                conn.execute(
                    _documents.insert().values(collection=collection, doc_id=doc_id, data=payload, updated_at=now)
                )
            else:
                conn.execute(_documents.update().where(key).values(data=payload, updated_at=now))
            conn.commit()
        logger.debug("Wrote %s/%s (merge=%s)", collection, doc_id, merge)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        uid=row.uid,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        last_login=row.last_login,
        is_active=bool(row.is_active),
    )
