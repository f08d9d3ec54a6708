"""
PawCare Backend — Server-Side Session Store
=============================================

What:  Per-browser session state holding up to two identities at once:
       an admin (is_admin, admin_username) and a customer (is_customer,
       customer_id, customer_email).
Why:   The browser only ever holds an opaque, signed token; identity data
       stays on the server and is destroyed on logout.
How:   SessionStore is the contract. DatabaseSessionStore (default) keeps
       rows in the `sessions` table; MemorySessionStore keeps a dict on the
       store instance for development and tests. The store instance is owned
       by the app (app.state.session_store), never by the module.
"""

import json
import logging
import secrets
import time
from abc import ABC, abstractmethod
from datetime import timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from pawcare.config import Settings
from pawcare.database import utcnow
from pawcare.exceptions import StorageError
from pawcare.models import SessionRecord
from pawcare.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

SessionData = Dict[str, Any]


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class Session(dict):
    """
    Mutable session state for one request.

    The middleware persists it after the response when `modified` is set,
    and drops it (store row and cookie) when `destroyed` is set.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        data: Optional[SessionData] = None,
        max_age: int = 86_400,
    ):
        data = dict(data or {})
        self.max_age = int(data.pop("_max_age", max_age))
        super().__init__(data)
        self.token = token
        self.modified = False
        self.destroyed = False
        self.rotated = False

    def __setitem__(self, key, value):
        super().__setitem__(key, value)
        self.modified = True

    def __delitem__(self, key):
        super().__delitem__(key)
        self.modified = True

    def update(self, *args, **kwargs):
        super().update(*args, **kwargs)
        self.modified = True

    def pop(self, key, *default):
        self.modified = True
        return super().pop(key, *default)

    @property
    def is_admin(self) -> bool:
        return bool(self.get("is_admin"))

    @property
    def is_customer(self) -> bool:
        return bool(self.get("is_customer"))

    def login_admin(self, username: str, max_age: Optional[int] = None) -> None:
        # New token on privilege change so a pre-login token cannot be reused
        self.rotated = True
        self.update(is_admin=True, admin_username=username)
        if max_age:
            self.max_age = max_age

    def login_customer(self, customer_id: int, email: str, max_age: Optional[int] = None) -> None:
        self.rotated = True
        self.update(is_customer=True, customer_id=customer_id, customer_email=email)
        if max_age:
            self.max_age = max_age

    def destroy(self) -> None:
        """Logout: both identities go, and the cookie is cleared."""
        super().clear()
        self.destroyed = True

    def to_record(self) -> SessionData:
        data = dict(self)
        data["_max_age"] = self.max_age
        return data


class SessionStore(ABC):
    """Contract: tokens map to JSON-serializable dicts until they expire."""

    @abstractmethod
    async def get(self, token: str) -> Optional[SessionData]:
        ...

    @abstractmethod
    async def set(self, token: str, data: SessionData, max_age: int) -> None:
        ...

    @abstractmethod
    async def destroy(self, token: str) -> None:
        ...


class MemorySessionStore(SessionStore):
    """Process-local store. Sessions vanish on restart and are not shared between workers."""

    def __init__(self):
        self._sessions: Dict[str, Tuple[float, SessionData]] = {}

    async def get(self, token):
        entry = self._sessions.get(token)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= time.time():
            self._sessions.pop(token, None)
            return None
        return dict(data)

    async def set(self, token, data, max_age):
        self._sessions[token] = (time.time() + max_age, dict(data))

    async def destroy(self, token):
        self._sessions.pop(token, None)

    def __len__(self) -> int:
        return len(self._sessions)


class DatabaseSessionStore(SessionStore):
    """
    Sessions in the `sessions` table of the active storage backend.

    Uses its own short transactions, independent of the request's session,
    so a rolled-back request does not lose a logout or a login.
    """

    def __init__(self, storage: StorageAdapter):
        self.storage = storage

    async def get(self, token):
        await self.storage.ensure_initialized()
        try:
            async with self.storage.session_factory() as db:
                record = await db.get(SessionRecord, token)
                if record is None:
                    return None
                expires_at = record.expires_at
                # SQLite hands back naive datetimes; stored values are UTC
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=timezone.utc)
                if expires_at <= utcnow():
                    await db.delete(record)
                    await db.commit()
                    return None
                return json.loads(record.data)
        except SQLAlchemyError as e:
            raise StorageError(context={"operation": "session_get", "error": str(e)}) from e

    async def set(self, token, data, max_age):
        await self.storage.ensure_initialized()
        expires_at = utcnow() + timedelta(seconds=max_age)
        try:
            async with self.storage.session_factory() as db:
                record = await db.get(SessionRecord, token)
                if record is None:
                    db.add(SessionRecord(token=token, data=json.dumps(data), expires_at=expires_at))
                else:
                    record.data = json.dumps(data)
                    record.expires_at = expires_at
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(context={"operation": "session_set", "error": str(e)}) from e

    async def destroy(self, token):
        await self.storage.ensure_initialized()
        try:
            async with self.storage.session_factory() as db:
                await db.execute(delete(SessionRecord).where(SessionRecord.token == token))
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(context={"operation": "session_destroy", "error": str(e)}) from e

    async def purge_expired(self) -> int:
        """Delete every expired row; returns how many were removed."""
        await self.storage.ensure_initialized()
        async with self.storage.session_factory() as db:
            result = await db.execute(
                delete(SessionRecord).where(SessionRecord.expires_at <= utcnow())
            )
            await db.commit()
            return result.rowcount or 0


def create_session_store(settings: Settings, storage: StorageAdapter) -> SessionStore:
    if settings.session_backend == "memory":
        logger.info("Using in-memory session store")
        return MemorySessionStore()
    logger.info("Using database session store (backend=%s)", storage.backend_name)
    return DatabaseSessionStore(storage)
