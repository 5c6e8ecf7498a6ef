# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import asdict

from sqlalchemy.engine import Engine

from portal.core.actions import (
    CreateEmployee,
    DeleteEmployee,
    DirectoryAction,
    GetEmployee,
    ListDepartments,
    ListEmployees,
    UpdateEmployee,
)
from portal.core.envelope import Reply
from portal.core.errors import NotFound, UnrecognizedAction
from portal.core.logging_config import get_logger
from portal.infra import directory_repo
from portal.infra.db import store_errors

log = get_logger(__name__)

DUPLICATE_EMAIL = "Error: El correo electrónico ya está registrado."


def create_employee(action: CreateEmployee, *, engine: Engine) -> Reply:
    with store_errors("Error al crear el empleado", conflict=DUPLICATE_EMAIL):
        new_id = directory_repo.create_employee(engine, asdict(action.employee))
    log.info("Empleado creado: id=%s email=%s", new_id, action.employee.email)
    return Reply("Empleado creado exitosamente.", {"id": new_id})


def update_employee(action: UpdateEmployee, *, engine: Engine, update_missing: str = "success") -> Reply:
    """Update every field of an employee.

    ``update_missing`` decides what an unknown id reports: ``success`` (no
    effect, same message) or ``not_found`` (404, like delete).
    """
    with store_errors("Error al actualizar el empleado", conflict=DUPLICATE_EMAIL):
        # Matched rows, not changed rows (MySQL is connected with FOUND_ROWS).
        matched = directory_repo.update_employee(engine, action.id, asdict(action.employee))
    if matched == 0 and update_missing == "not_found":
        raise NotFound("No se encontró el empleado con el ID proporcionado.")
    log.info("Empleado actualizado: id=%s", action.id)
    return Reply("Empleado actualizado exitosamente.", {"id": action.id})


def delete_employee(action: DeleteEmployee, *, engine: Engine) -> Reply:
    with store_errors("Error al eliminar el empleado"):
        affected = directory_repo.delete_employee(engine, action.id)
    if affected == 0:
        raise NotFound("No se encontró el empleado con el ID proporcionado.")
    log.info("Empleado eliminado: id=%s", action.id)
    return Reply("Empleado eliminado exitosamente.", {"id": action.id})


def handle(action: DirectoryAction, *, engine: Engine, update_missing: str = "success") -> Reply:
    match action:
        case ListEmployees(search=search, department=department):
            with store_errors("Error al ejecutar la consulta de empleados"):
                rows = directory_repo.list_employees(engine, search=search, department=department)
            return Reply("Empleados obtenidos exitosamente.", rows)
        case GetEmployee(id=employee_id):
            with store_errors("Error al obtener el empleado"):
                row = directory_repo.get_employee(engine, employee_id)
            if row is None:
                raise NotFound("Empleado no encontrado.")
            return Reply("Empleado obtenido exitosamente.", row)
        case ListDepartments():
            with store_errors("Error al obtener departamentos"):
                departments = directory_repo.list_departments(engine)
            return Reply("Departamentos obtenidos exitosamente.", departments)
        case CreateEmployee():
            return create_employee(action, engine=engine)
        case UpdateEmployee():
            return update_employee(action, engine=engine, update_missing=update_missing)
        case DeleteEmployee():
            return delete_employee(action, engine=engine)
        case _:
            raise UnrecognizedAction("Petición no válida o acción no reconocida.")
