# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request/response envelope shared by all endpoints.

Requests carry an ``action`` (JSON body for POST, query string for GET) plus
free-form fields. Responses are always ``{"status", "message", "data"?}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from fastapi.responses import JSONResponse

from portal.core.errors import MalformedInput, UnrecognizedAction

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class ActionRequest:
    method: str
    action: str
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Reply:
    """Successful handler outcome, encoded by the endpoint wrapper."""

    message: str
    data: Any = None
    http_code: int = 200
    set_token: Optional[str] = None


def decode(raw_body: bytes, method: str, query_params: Mapping[str, str]) -> ActionRequest:
    m = (method or "").upper()

    if m == "GET":
        fields = {str(k): v for k, v in query_params.items()}
        action = str(fields.pop("action", "") or "").strip()
        return ActionRequest(method=m, action=action, fields=fields)

    if m != "POST":
        raise UnrecognizedAction("Método o petición no soportada.")

    raw = (raw_body or b"").strip()
    if not raw:
        payload: Any = {}
    else:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise MalformedInput("Formato JSON inválido o acción no especificada.")

    if not isinstance(payload, dict):
        raise MalformedInput("Formato JSON inválido o acción no especificada.")

    action = payload.pop("action", None)
    if not isinstance(action, str) or not action.strip():
        raise MalformedInput("Formato JSON inválido o acción no especificada.")

    return ActionRequest(method=m, action=action.strip(), fields=payload)


def encode(status: str, message: str, data: Any = None, http_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"status": status, "message": message}
    if data is not None:
        body["data"] = data
    return JSONResponse(body, status_code=http_code)
