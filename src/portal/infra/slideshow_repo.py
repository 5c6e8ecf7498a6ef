# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine

from portal.infra.db import slides_table

_t = slides_table

_SELECT = select(
    _t.c.id.label("id"),
    _t.c.titulo.label("title"),
    _t.c.descripcion.label("description"),
    _t.c.imagen_url.label("image_url"),
    _t.c.fecha_creacion.label("created_at"),
)


def _row(r) -> dict:
    d = dict(r._mapping)
    created = d.get("created_at")
    if isinstance(created, datetime):
        d["created_at"] = created.strftime("%Y-%m-%d %H:%M:%S")
    return d


def list_slides(engine: Engine) -> List[dict]:
    """Newest first."""
    with engine.connect() as conn:
        return [_row(r) for r in conn.execute(_SELECT.order_by(_t.c.id.desc()))]


def create_slide(engine: Engine, *, title: str, description: str, image_url: str) -> int:
    with engine.begin() as conn:
        res = conn.execute(insert(_t).values(titulo=title, descripcion=description, imagen_url=image_url))
    return int(res.inserted_primary_key[0])


def update_slide(engine: Engine, slide_id: int, *, title: str, description: str, image_url: str) -> int:
    # fecha_creacion is never written after insert.
    with engine.begin() as conn:
        res = conn.execute(
            update(_t)
            .where(_t.c.id == slide_id)
            .values(titulo=title, descripcion=description, imagen_url=image_url)
        )
    return res.rowcount


def delete_slide(engine: Engine, slide_id: int) -> int:
    with engine.begin() as conn:
        res = conn.execute(delete(_t).where(_t.c.id == slide_id))
    return res.rowcount
