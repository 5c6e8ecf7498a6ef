# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.engine import Engine

from portal.infra.db import employees_table

ALL_DEPARTMENTS = "Todos"

_t = employees_table

# JSON field -> column
COLUMNS = {
    "id": _t.c.id,
    "name": _t.c.nombre,
    "position": _t.c.puesto,
    "department": _t.c.departamento,
    "email": _t.c.email,
    "phone": _t.c.telefono,
    "location": _t.c.ubicacion,
    "photo_url": _t.c.foto_url,
}

_SELECT = select(*(col.label(key) for key, col in COLUMNS.items()))


def _values(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map JSON field names to column names, ignoring unknown keys and ``id``."""
    return {COLUMNS[k].name: v for k, v in fields.items() if k in COLUMNS and k != "id"}


def list_employees(engine: Engine, *, search: Optional[str] = None, department: Optional[str] = None) -> List[dict]:
    """Employees ordered by name.

    - search: case-insensitive substring over name, position or email
    - department: exact match; ``Todos`` (or empty) means every department
    """
    conditions = []
    term = (search or "").strip()
    if term:
        conditions.append(
            or_(
                _t.c.nombre.icontains(term, autoescape=True),
                _t.c.puesto.icontains(term, autoescape=True),
                _t.c.email.icontains(term, autoescape=True),
            )
        )
    dept = (department or "").strip()
    if dept and dept != ALL_DEPARTMENTS:
        conditions.append(_t.c.departamento == dept)

    stmt = _SELECT
    if conditions:
        stmt = stmt.where(and_(*conditions))
    stmt = stmt.order_by(_t.c.nombre.asc(), _t.c.id.asc())

    with engine.connect() as conn:
        return [dict(r._mapping) for r in conn.execute(stmt)]


def get_employee(engine: Engine, employee_id: int) -> Optional[dict]:
    with engine.connect() as conn:
        row = conn.execute(_SELECT.where(_t.c.id == employee_id)).first()
    return dict(row._mapping) if row is not None else None


def list_departments(engine: Engine) -> List[str]:
    stmt = select(_t.c.departamento).distinct().order_by(_t.c.departamento.asc())
    with engine.connect() as conn:
        return [r[0] for r in conn.execute(stmt)]


def create_employee(engine: Engine, fields: Dict[str, Any]) -> int:
    with engine.begin() as conn:
        res = conn.execute(insert(_t).values(**_values(fields)))
    return int(res.inserted_primary_key[0])


def update_employee(engine: Engine, employee_id: int, fields: Dict[str, Any]) -> int:
    with engine.begin() as conn:
        res = conn.execute(update(_t).where(_t.c.id == employee_id).values(**_values(fields)))
    return res.rowcount


def delete_employee(engine: Engine, employee_id: int) -> int:
    with engine.begin() as conn:
        res = conn.execute(delete(_t).where(_t.c.id == employee_id))
    return res.rowcount
