# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from itsdangerous import BadData, BadSignature, BadTimeSignature, URLSafeTimedSerializer
from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine

from portal.core.logging_config import get_logger
from portal.core.settings import Settings
from portal.infra.db import sessions_table

log = get_logger(__name__)

# Canonical session schema, used by every handler.
KEY_USER_ID = "user_id"
KEY_USER_NAME = "user_name"
KEY_PROFILE = "profile"


class SessionStore(Protocol):
    def get(self, token: str) -> Optional[Dict[str, Any]]: ...

    def set(self, token: str, data: Dict[str, Any]) -> None: ...

    def destroy(self, token: str) -> None: ...


class MemorySessionStore:
    """Process-local store. Fine for a single worker."""

    def __init__(self, *, max_age: int):
        self.max_age = max_age
        self._lock = threading.Lock()
        self._items: Dict[str, tuple[float, Dict[str, Any]]] = {}

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get(token)
            if item is None:
                return None
            expires_at, data = item
            if expires_at < time.time():
                del self._items[token]
                return None
            return dict(data)

    def set(self, token: str, data: Dict[str, Any]) -> None:
        now = time.time()
        with self._lock:
            # Abandoned tokens are never read again; drop them here.
            for stale in [k for k, (expires_at, _) in self._items.items() if expires_at < now]:
                del self._items[stale]
            self._items[token] = (now + self.max_age, dict(data))

    def destroy(self, token: str) -> None:
        with self._lock:
            self._items.pop(token, None)


class SqlSessionStore:
    """Sessions kept in the ``sesiones`` table so several workers can share them."""

    def __init__(self, engine: Engine, *, max_age: int):
        self.engine = engine
        self.max_age = max_age

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        t = sessions_table
        with self.engine.connect() as conn:
            row = conn.execute(select(t.c.datos, t.c.expira_en).where(t.c.token == token)).first()
        if row is None:
            return None
        if row.expira_en < time.time():
            self.destroy(token)
            return None
        return json.loads(row.datos)

    def set(self, token: str, data: Dict[str, Any]) -> None:
        t = sessions_table
        now = time.time()
        with self.engine.begin() as conn:
            conn.execute(delete(t).where((t.c.token == token) | (t.c.expira_en < now)))
            conn.execute(insert(t).values(token=token, datos=json.dumps(data), expira_en=now + self.max_age))

    def destroy(self, token: str) -> None:
        t = sessions_table
        with self.engine.begin() as conn:
            conn.execute(delete(t).where(t.c.token == token))


@dataclass
class SessionContext:
    """The caller's session for one request.

    ``data`` is None when the request carries no valid session.
    """

    store: SessionStore
    token: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    destroyed: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.data) and self.data.get(KEY_USER_ID) is not None

    @property
    def user_id(self) -> Optional[int]:
        return (self.data or {}).get(KEY_USER_ID)

    @property
    def user_name(self) -> str:
        return (self.data or {}).get(KEY_USER_NAME) or ""

    @property
    def profile(self) -> Optional[str]:
        return (self.data or {}).get(KEY_PROFILE)

    def update(self, **values: Any) -> None:
        if not self.token or self.data is None:
            return
        self.data.update(values)
        self.store.set(self.token, self.data)

    def destroy(self) -> None:
        if self.token:
            self.store.destroy(self.token)
        self.data = None
        self.destroyed = True


class SessionManager:
    """Issues signed opaque tokens and resolves them against a ``SessionStore``."""

    def __init__(self, store: SessionStore, settings: Settings):
        self.store = store
        self.settings = settings
        self._serializer = URLSafeTimedSerializer(secret_key=settings.secret_key, salt=settings.session_salt)

    def _token_from_cookie(self, cookie: str) -> Optional[str]:
        if not cookie:
            return None
        try:
            data = self._serializer.loads(cookie, max_age=self.settings.session_max_age)
        except (BadSignature, BadTimeSignature, BadData):
            return None
        if not isinstance(data, dict):
            return None
        t = str(data.get("t") or "").strip()
        return t or None

    def load(self, cookie: str) -> SessionContext:
        token = self._token_from_cookie(cookie)
        if not token:
            return SessionContext(store=self.store)
        data = self.store.get(token)
        return SessionContext(store=self.store, token=token, data=data)

    def start(self, ctx: SessionContext, data: Dict[str, Any]) -> str:
        """Replace any current session with a fresh one; returns the signed cookie value."""
        if ctx.token:
            self.store.destroy(ctx.token)
        token = secrets.token_urlsafe(32)
        self.store.set(token, data)
        ctx.token = token
        ctx.data = dict(data)
        ctx.destroyed = False
        log.debug("Sesión iniciada para user_id=%s", data.get(KEY_USER_ID))
        return self._serializer.dumps({"t": token})


def build_store(settings: Settings, engine: Engine) -> SessionStore:
    if settings.session_backend == "sql":
        return SqlSessionStore(engine, max_age=settings.session_max_age)
    return MemorySessionStore(max_age=settings.session_max_age)
