# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error kinds shared by every endpoint.

Handlers raise these; the endpoint wrapper turns them into a single
``{"status": "error", "message": ...}`` envelope with ``http_code``.
"""

from __future__ import annotations


class PortalError(Exception):
    http_code = 500

    def __init__(self, message: str, *, http_code: int | None = None):
        super().__init__(message)
        self.message = message
        if http_code is not None:
            self.http_code = http_code


class MalformedInput(PortalError):
    http_code = 400


class Unauthenticated(PortalError):
    http_code = 401


class Forbidden(PortalError):
    http_code = 403


class NotFound(PortalError):
    http_code = 404


class UnrecognizedAction(PortalError):
    http_code = 405


class Conflict(PortalError):
    http_code = 409


class StoreFailure(PortalError):
    http_code = 500

