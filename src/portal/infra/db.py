# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Engine creation and table definitions.

Physical names follow the portal's existing schema (Spanish); the JSON API
maps them to English field names in the repositories.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from portal.core.errors import Conflict, StoreFailure
from portal.core.logging_config import get_logger

log = get_logger(__name__)

metadata = MetaData()

users_table = Table(
    "usuarios",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(120), nullable=False),
    Column("email", String(190), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("perfil", String(40), nullable=False, server_default="guest"),
    Column("foto_url", String(500), nullable=True),
)

employees_table = Table(
    "empleados",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(120), nullable=False),
    Column("puesto", String(120), nullable=False),
    Column("departamento", String(120), nullable=False, index=True),
    Column("email", String(190), nullable=False, unique=True),
    Column("telefono", String(40), nullable=True),
    Column("ubicacion", String(120), nullable=True),
    Column("foto_url", String(500), nullable=True),
)

slides_table = Table(
    "slideshow",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("titulo", String(200), nullable=False),
    Column("descripcion", Text, nullable=False),
    Column("imagen_url", String(500), nullable=False),
    Column("fecha_creacion", DateTime, nullable=False, server_default=func.now()),
)

sessions_table = Table(
    "sesiones",
    metadata,
    Column("token", String(64), primary_key=True),
    Column("datos", Text, nullable=False),
    Column("expira_en", Float, nullable=False, index=True),
)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    kwargs = {"pool_pre_ping": True}
    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite:
        # FastAPI runs sync endpoints in a threadpool.
        kwargs = {"connect_args": {"check_same_thread": False}}
        if not url.database or url.database == ":memory:":
            # One shared connection, otherwise every thread gets its own empty database.
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).resolve().parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, **kwargs)

    if is_sqlite:
        # SQLite's built-in lower() only folds ASCII; "Álvaro" must match "álvaro".
        @event.listens_for(engine, "connect")
        def _register_lower(dbapi_conn, _record):
            dbapi_conn.create_function("lower", 1, _unicode_lower)

    return engine


def init_db(engine: Engine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    metadata.create_all(engine)


def driver_message(exc: Exception) -> str:
    """Driver error text without the statement or its bound parameters."""
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc).strip()


def is_unique_violation(exc: Exception) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ()) or ()
    if args and args[0] == 1062:  # MySQL ER_DUP_ENTRY
        return True
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    msg = driver_message(exc).lower()
    return "unique" in msg or "duplicate" in msg


@contextmanager
def store_errors(what: str, *, conflict: Optional[str] = None) -> Iterator[None]:
    """Translate store exceptions raised inside the block into portal errors.

    ``what`` prefixes the driver text in the 500 message; ``conflict`` is the
    409 message used when a unique constraint is violated.
    """
    try:
        yield
    except SQLAlchemyError as e:
        if conflict and is_unique_violation(e):
            raise Conflict(conflict) from e
        log.error("%s: %s", what, driver_message(e))
        raise StoreFailure(f"{what}: {driver_message(e)}") from e
