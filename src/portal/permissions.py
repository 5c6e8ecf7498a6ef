# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Role-based access policy shared by every endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

from portal.core.actions import Resource
from portal.core.logging_config import get_logger

log = get_logger(__name__)


class Role(str, Enum):
    ADMIN_GLOBAL = "admin_global"
    DISENO = "diseno"
    RRHH = "rrhh"
    EMPLEADO = "empleado"
    GUEST = "guest"


LEGACY_ROLES = {"invitado": Role.GUEST}


def parse_role(value: Optional[str]) -> Role:
    """Map a stored role string onto the closed set. Unknown values get least privilege."""
    v = (value or "").strip().lower()
    if v in LEGACY_ROLES:
        return LEGACY_ROLES[v]
    try:
        return Role(v)
    except ValueError:
        log.warning("Perfil desconocido %r; se trata como '%s'", value, Role.GUEST.value)
        return Role.GUEST


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Deny:
    reason: str
    http_code: int


Decision = Union[Allow, Deny]

Key = Tuple[Resource, str]

PUBLIC_ACTIONS: FrozenSet[Key] = frozenset(
    {
        (Resource.AUTH, "login"),
        (Resource.AUTH, "logout"),
        (Resource.AUTH, "check_session"),
        (Resource.SLIDESHOW, "list"),
    }
)

SELF_SERVICE_ACTIONS: FrozenSet[Key] = frozenset(
    {
        (Resource.AUTH, "get_profile"),
        (Resource.AUTH, "update_profile"),
        (Resource.AUTH, "change_password"),
    }
)

DIRECTORY_READS = frozenset({"list", "get_employee", "list_departments"})

WRITE_ROLES = {
    Resource.DIRECTORY: frozenset({Role.ADMIN_GLOBAL}),
    Resource.SLIDESHOW: frozenset({Role.ADMIN_GLOBAL, Role.DISENO}),
}
WRITE_ACTIONS = frozenset({"create", "update", "delete"})

DENY_MESSAGES = {
    Resource.DIRECTORY: "Permiso denegado. Se requiere perfil de Administrador Global para modificar el Directorio.",
    Resource.SLIDESHOW: "Acceso denegado. Se requiere el perfil de Administrador Global o Diseño para modificar slides.",
}


class AccessPolicy:
    """Decides whether a session may run an action on a resource.

    ``directory_read`` controls who may read the employee directory:
    ``public`` (anyone), ``authenticated`` (any session) or ``non_guest``
    (any session whose profile is not ``guest``).
    """

    def __init__(self, *, directory_read: str = "authenticated"):
        self.directory_read = directory_read

    def authorize(self, session, action: str, resource: Resource) -> Decision:
        key = (resource, action)
        is_directory_read = resource is Resource.DIRECTORY and action in DIRECTORY_READS

        if not session.is_authenticated:
            if key in PUBLIC_ACTIONS:
                return Allow()
            if is_directory_read and self.directory_read == "public":
                return Allow()
            return Deny("Se requiere autenticación para realizar esta acción.", 401)

        if key in PUBLIC_ACTIONS or key in SELF_SERVICE_ACTIONS:
            return Allow()

        role = parse_role(session.profile)

        if is_directory_read:
            if self.directory_read == "non_guest" and role is Role.GUEST:
                return Deny("Acceso denegado. Se requiere un perfil de usuario para ver el directorio completo.", 403)
            return Allow()

        if resource in WRITE_ROLES and action in WRITE_ACTIONS:
            if role in WRITE_ROLES[resource]:
                return Allow()
            return Deny(DENY_MESSAGES[resource], 403)

        return Deny("Petición no válida o acción no reconocida.", 405)
