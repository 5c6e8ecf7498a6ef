# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed actions, one dataclass per operation and resource.

An :class:`~portal.core.envelope.ActionRequest` is resolved to an action name
(``action_name``), gated by the access policy, and then parsed into one of the
variants below (``parse_action``). Handlers ``match`` on the variant type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from portal.core.envelope import ActionRequest
from portal.core.errors import MalformedInput, UnrecognizedAction


class Resource(str, Enum):
    AUTH = "auth"
    DIRECTORY = "directory"
    SLIDESHOW = "slideshow"


# --- field helpers ---


def _raw(fields: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in fields and fields[k] is not None:
            return fields[k]
    return None


def _text(fields: Mapping[str, Any], *keys: str, strip: bool = True) -> Optional[str]:
    """First non-empty value among ``keys`` as text, else None."""
    v = _raw(fields, *keys)
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        v = str(v)
    if not isinstance(v, str):
        raise MalformedInput(f"El campo '{keys[0]}' tiene un formato inválido.")
    if strip:
        v = v.strip()
    return v or None


def _id(fields: Mapping[str, Any], missing_message: str) -> int:
    v = _raw(fields, "id")
    if v is None or v == "" or isinstance(v, bool):
        raise MalformedInput(missing_message)
    try:
        out = int(str(v).strip())
    except ValueError:
        raise MalformedInput("El ID debe ser un número entero.")
    if out <= 0:
        raise MalformedInput(missing_message)
    return out


# --- auth ---


@dataclass(frozen=True)
class Login:
    email: str
    password: str

    @classmethod
    def parse(cls, fields):
        email = _text(fields, "email")
        password = _text(fields, "password", strip=False)
        if not email or not password:
            raise MalformedInput("Faltan credenciales.")
        return cls(email=email, password=password)


@dataclass(frozen=True)
class Logout:
    @classmethod
    def parse(cls, fields):
        return cls()


@dataclass(frozen=True)
class CheckSession:
    @classmethod
    def parse(cls, fields):
        return cls()


@dataclass(frozen=True)
class GetProfile:
    @classmethod
    def parse(cls, fields):
        return cls()


@dataclass(frozen=True)
class UpdateProfile:
    name: str
    photo_url: Optional[str]

    @classmethod
    def parse(cls, fields):
        name = _text(fields, "name", "nombre")
        if not name:
            raise MalformedInput("El nombre es obligatorio.")
        return cls(name=name, photo_url=_text(fields, "photo_url", "foto_url"))


MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class ChangePassword:
    current_password: str
    new_password: str

    @classmethod
    def parse(cls, fields):
        current = _text(fields, "current_password", strip=False)
        new = _text(fields, "new_password", strip=False)
        if not current or not new or len(new) < MIN_PASSWORD_LENGTH:
            raise MalformedInput(
                "Contraseña actual y nueva son obligatorias. "
                f"La nueva debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."
            )
        return cls(current_password=current, new_password=new)


# --- directory ---


@dataclass(frozen=True)
class EmployeeFields:
    name: str
    position: str
    department: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def parse(cls, fields, missing_message: str) -> "EmployeeFields":
        name = _text(fields, "name", "nombre")
        position = _text(fields, "position", "puesto")
        department = _text(fields, "department", "departamento")
        email = _text(fields, "email")
        if not name or not position or not department or not email:
            raise MalformedInput(missing_message)
        return cls(
            name=name,
            position=position,
            department=department,
            email=email,
            phone=_text(fields, "phone", "telefono"),
            location=_text(fields, "location", "ubicacion"),
            photo_url=_text(fields, "photo_url", "foto_url"),
        )


@dataclass(frozen=True)
class ListEmployees:
    search: Optional[str] = None
    department: Optional[str] = None

    @classmethod
    def parse(cls, fields):
        return cls(search=_text(fields, "search"), department=_text(fields, "department"))


@dataclass(frozen=True)
class GetEmployee:
    id: int

    @classmethod
    def parse(cls, fields):
        return cls(id=_id(fields, "ID del empleado es requerido."))


@dataclass(frozen=True)
class ListDepartments:
    @classmethod
    def parse(cls, fields):
        return cls()


@dataclass(frozen=True)
class CreateEmployee:
    employee: EmployeeFields

    @classmethod
    def parse(cls, fields):
        return cls(employee=EmployeeFields.parse(fields, "Faltan campos obligatorios para crear el empleado."))


@dataclass(frozen=True)
class UpdateEmployee:
    id: int
    employee: EmployeeFields

    @classmethod
    def parse(cls, fields):
        missing = "Faltan campos obligatorios para la actualización."
        return cls(id=_id(fields, missing), employee=EmployeeFields.parse(fields, missing))


@dataclass(frozen=True)
class DeleteEmployee:
    id: int

    @classmethod
    def parse(cls, fields):
        return cls(id=_id(fields, "ID del empleado es requerido para eliminar."))


# --- slideshow ---


@dataclass(frozen=True)
class SlideFields:
    title: str
    description: str
    image_url: str

    @classmethod
    def parse(cls, fields, missing_message: str) -> "SlideFields":
        title = _text(fields, "title", "titulo")
        description = _text(fields, "description", "descripcion")
        image_url = _text(fields, "image_url", "image-url", "imagen_url")
        if not title or not description or not image_url:
            raise MalformedInput(missing_message)
        return cls(title=title, description=description, image_url=image_url)


@dataclass(frozen=True)
class ListSlides:
    @classmethod
    def parse(cls, fields):
        return cls()


@dataclass(frozen=True)
class CreateSlide:
    slide: SlideFields

    @classmethod
    def parse(cls, fields):
        return cls(slide=SlideFields.parse(fields, "Faltan campos requeridos (título, descripción o URL de imagen)."))


@dataclass(frozen=True)
class UpdateSlide:
    id: int
    slide: SlideFields

    @classmethod
    def parse(cls, fields):
        missing = "Faltan campos requeridos para la actualización."
        return cls(id=_id(fields, missing), slide=SlideFields.parse(fields, missing))


@dataclass(frozen=True)
class DeleteSlide:
    id: int

    @classmethod
    def parse(cls, fields):
        return cls(id=_id(fields, "ID del slide es requerido para eliminar."))


AuthAction = Union[Login, Logout, CheckSession, GetProfile, UpdateProfile, ChangePassword]
DirectoryAction = Union[ListEmployees, GetEmployee, ListDepartments, CreateEmployee, UpdateEmployee, DeleteEmployee]
SlideshowAction = Union[ListSlides, CreateSlide, UpdateSlide, DeleteSlide]


# (resource -> method -> action name -> variant)
ACTIONS: Dict[Resource, Dict[str, Dict[str, Callable[[Mapping[str, Any]], Any]]]] = {
    Resource.AUTH: {
        "GET": {
            "get_profile": GetProfile.parse,
            "check_session": CheckSession.parse,
        },
        "POST": {
            "login": Login.parse,
            "logout": Logout.parse,
            "check_session": CheckSession.parse,
            "update_profile": UpdateProfile.parse,
            "change_password": ChangePassword.parse,
        },
    },
    Resource.DIRECTORY: {
        "GET": {
            "list": ListEmployees.parse,
            "get_employee": GetEmployee.parse,
            "list_departments": ListDepartments.parse,
        },
        "POST": {
            "create": CreateEmployee.parse,
            "update": UpdateEmployee.parse,
            "delete": DeleteEmployee.parse,
        },
    },
    Resource.SLIDESHOW: {
        "GET": {"list": ListSlides.parse},
        "POST": {
            "create": CreateSlide.parse,
            "update": UpdateSlide.parse,
            "delete": DeleteSlide.parse,
        },
    },
}

ALIASES: Dict[Resource, Dict[str, str]] = {
    Resource.DIRECTORY: {"departments": "list_departments"},
}

# GET without a recognized action falls back to listing on these resources.
DEFAULT_GET_ACTION: Dict[Resource, str] = {
    Resource.DIRECTORY: "list",
    Resource.SLIDESHOW: "list",
}


def action_name(resource: Resource, request: ActionRequest) -> str:
    """Canonical action name for ``request`` (may be unrecognized)."""
    name = ALIASES.get(resource, {}).get(request.action, request.action)
    table = ACTIONS[resource].get(request.method, {})
    if name in table:
        return name
    if request.method == "GET" and resource in DEFAULT_GET_ACTION:
        return DEFAULT_GET_ACTION[resource]
    return name


def parse_action(resource: Resource, request: ActionRequest):
    name = action_name(resource, request)
    parser = ACTIONS[resource].get(request.method, {}).get(name)
    if parser is None:
        raise UnrecognizedAction("Petición no válida o acción no reconocida.")
    return parser(request.fields)
