# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime configuration read from ``PORTAL_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DIRECTORY_READ_POLICIES = ("public", "authenticated", "non_guest")
UPDATE_MISSING_POLICIES = ("success", "not_found")
SESSION_BACKENDS = ("memory", "sql")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "y"}


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = (os.getenv(name) or default).strip().lower()
    if value not in allowed:
        raise ValueError(f"{name}={value!r} no es válido (opciones: {', '.join(allowed)})")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str
    secret_key: str
    session_salt: str = "portal.session.v1"
    cookie_name: str = "portal_session"
    session_max_age: int = 28800  # 8 hours
    cookie_secure: bool = False
    session_backend: str = "memory"
    directory_read: str = "authenticated"
    directory_update_missing: str = "success"
    log_level: str = "INFO"

    def cookie_settings(self) -> dict:
        return {"httponly": True, "samesite": "lax", "secure": self.cookie_secure}


def load_settings() -> Settings:
    secret = os.getenv("SECRET_KEY") or os.getenv("PORTAL_SECRET_KEY")
    if not secret:
        raise RuntimeError("Falta SECRET_KEY (o PORTAL_SECRET_KEY) en entorno")
    return Settings(
        database_url=os.getenv("PORTAL_DATABASE_URL", "sqlite:///data/portal.db"),
        secret_key=secret,
        session_salt=os.getenv("PORTAL_SESSION_SALT", "portal.session.v1"),
        cookie_name=os.getenv("PORTAL_COOKIE_NAME", "portal_session"),
        session_max_age=int(os.getenv("PORTAL_SESSION_MAX_AGE", "28800")),
        cookie_secure=_flag("PORTAL_COOKIE_SECURE"),
        session_backend=_choice("PORTAL_SESSION_BACKEND", "memory", SESSION_BACKENDS),
        directory_read=_choice("PORTAL_DIRECTORY_READ", "authenticated", DIRECTORY_READ_POLICIES),
        directory_update_missing=_choice("PORTAL_DIRECTORY_UPDATE_MISSING", "success", UPDATE_MISSING_POLICIES),
        log_level=os.getenv("PORTAL_LOG_LEVEL", "INFO").upper(),
    )
