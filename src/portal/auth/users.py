# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from portal.auth.passwords import burn_verification, hash_password, needs_rehash, verify_password
from portal.infra.db import users_table
from portal.permissions import parse_role


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str
    email: str
    profile: str
    photo_url: Optional[str]
    password_hash: str

    def public(self) -> dict:
        """Profile fields safe to send to the client (no hash)."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "profile": self.profile,
            "photo_url": self.photo_url,
        }


def _from_row(row) -> UserRecord:
    return UserRecord(
        id=int(row.id),
        name=row.nombre,
        email=row.email,
        profile=parse_role(row.perfil).value,
        photo_url=row.foto_url,
        password_hash=row.password_hash or "",
    )


def get_user_by_email(engine: Engine, email: str) -> Optional[UserRecord]:
    e = (email or "").strip()
    if not e:
        return None
    with engine.connect() as conn:
        row = conn.execute(select(users_table).where(users_table.c.email == e)).first()
    return _from_row(row) if row is not None else None


def get_user(engine: Engine, user_id: int) -> Optional[UserRecord]:
    with engine.connect() as conn:
        row = conn.execute(select(users_table).where(users_table.c.id == user_id)).first()
    return _from_row(row) if row is not None else None


def authenticate(engine: Engine, email: str, password: str) -> Optional[UserRecord]:
    u = get_user_by_email(engine, email)
    if not u:
        burn_verification(password)
        return None
    if not verify_password(u.password_hash, password):
        return None
    if needs_rehash(u.password_hash):
        set_password_hash(engine, u.id, hash_password(password))
    return u


def update_profile(engine: Engine, user_id: int, *, name: str, photo_url: Optional[str]) -> int:
    """Returns affected rows (0 when nothing changed or the user is gone)."""
    with engine.begin() as conn:
        res = conn.execute(
            update(users_table).where(users_table.c.id == user_id).values(nombre=name, foto_url=photo_url)
        )
    return res.rowcount


def set_password_hash(engine: Engine, user_id: int, password_hash: str) -> int:
    with engine.begin() as conn:
        res = conn.execute(
            update(users_table).where(users_table.c.id == user_id).values(password_hash=password_hash)
        )
    return res.rowcount


def upsert_user(
    engine: Engine, *, name: str, email: str, profile: str, password_hash: str, photo_url: Optional[str] = None
) -> int:
    """Create or replace a login account by email. Used by provisioning, not by the API."""
    values = {
        "nombre": name,
        "perfil": parse_role(profile).value,
        "password_hash": password_hash,
        "foto_url": photo_url,
    }
    with engine.begin() as conn:
        existing = conn.execute(select(users_table.c.id).where(users_table.c.email == email)).first()
        if existing is not None:
            conn.execute(update(users_table).where(users_table.c.id == existing.id).values(**values))
            return int(existing.id)
        res = conn.execute(insert(users_table).values(email=email, **values))
        return int(res.inserted_primary_key[0])
