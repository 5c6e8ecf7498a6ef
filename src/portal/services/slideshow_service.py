# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import asdict

from sqlalchemy.engine import Engine

from portal.core.actions import CreateSlide, DeleteSlide, ListSlides, SlideshowAction, UpdateSlide
from portal.core.envelope import Reply
from portal.core.errors import NotFound, UnrecognizedAction
from portal.core.logging_config import get_logger
from portal.infra import slideshow_repo
from portal.infra.db import store_errors

log = get_logger(__name__)


def handle(action: SlideshowAction, *, engine: Engine) -> Reply:
    match action:
        case ListSlides():
            with store_errors("Error al ejecutar la consulta de slides"):
                slides = slideshow_repo.list_slides(engine)
            return Reply("Slides obtenidos exitosamente.", slides)

        case CreateSlide(slide=slide):
            with store_errors("Error al crear el slide"):
                new_id = slideshow_repo.create_slide(engine, **asdict(slide))
            log.info("Slide creado: id=%s", new_id)
            return Reply("Slide creado exitosamente.", {"id": new_id})

        case UpdateSlide(id=slide_id, slide=slide):
            with store_errors("Error al actualizar el slide"):
                affected = slideshow_repo.update_slide(engine, slide_id, **asdict(slide))
            if affected == 0:
                return Reply("Slide actualizado exitosamente (o no se encontraron cambios).", {"id": slide_id})
            log.info("Slide actualizado: id=%s", slide_id)
            return Reply("Slide actualizado exitosamente.", {"id": slide_id})

        case DeleteSlide(id=slide_id):
            with store_errors("Error al eliminar el slide"):
                affected = slideshow_repo.delete_slide(engine, slide_id)
            if affected == 0:
                raise NotFound("No se encontró el slide con el ID proporcionado.")
            log.info("Slide eliminado: id=%s", slide_id)
            return Reply("Slide eliminado exitosamente.", {"id": slide_id})

        case _:
            raise UnrecognizedAction("Petición no válida o acción no reconocida.")
