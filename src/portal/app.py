# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from portal import __version__
from portal.auth.session import SessionContext, SessionManager, build_store
from portal.core.actions import Resource, action_name, parse_action
from portal.core.envelope import ERROR, SUCCESS, Reply, decode, encode
from portal.core.errors import Forbidden, PortalError, Unauthenticated, UnrecognizedAction
from portal.core.logging_config import get_logger, setup_logging
from portal.core.settings import Settings, load_settings
from portal.infra.db import build_engine, init_db, store_errors
from portal.permissions import AccessPolicy, Deny
from portal.services import auth_service, directory_service, slideshow_service

log = get_logger(__name__)

# Current paths plus the legacy handler names the frontend still calls.
ROUTES = {
    Resource.AUTH: ("/api/auth", "/api/auth_handler.php"),
    Resource.DIRECTORY: ("/api/directorio", "/api/directorio_handler.php"),
    Resource.SLIDESHOW: ("/api/slideshow", "/api/slideshow_handler.php"),
}

METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

DENY_ERRORS = {401: Unauthenticated, 403: Forbidden, 405: UnrecognizedAction}


class Portal:
    """Everything one request needs: store, sessions, policy and settings."""

    def __init__(self, settings: Settings, engine: Engine):
        self.settings = settings
        self.engine = engine
        self.sessions = SessionManager(build_store(settings, engine), settings)
        self.policy = AccessPolicy(directory_read=settings.directory_read)

    def _execute(self, resource: Resource, action, session: SessionContext) -> Reply:
        match resource:
            case Resource.AUTH:
                return auth_service.handle(action, session=session, engine=self.engine, sessions=self.sessions)
            case Resource.DIRECTORY:
                return directory_service.handle(
                    action, engine=self.engine, update_missing=self.settings.directory_update_missing
                )
            case Resource.SLIDESHOW:
                return slideshow_service.handle(action, engine=self.engine)

    def dispatch(
        self, resource: Resource, raw_body: bytes, method: str, query: Mapping[str, str], cookie: str
    ) -> JSONResponse:
        """Run one request end to end. Always returns exactly one envelope."""
        session: Optional[SessionContext] = None
        reply: Optional[Reply] = None
        try:
            with store_errors("Error al leer la sesión"):
                session = self.sessions.load(cookie)
            request = decode(raw_body, method, query)
            name = action_name(resource, request)

            decision = self.policy.authorize(session, name, resource)
            if isinstance(decision, Deny):
                log.debug("Denegado %s/%s (%s): %s", resource.value, name, decision.http_code, decision.reason)
                raise DENY_ERRORS.get(decision.http_code, PortalError)(decision.reason, http_code=decision.http_code)

            action = parse_action(resource, request)
            reply = self._execute(resource, action, session)
            response = encode(SUCCESS, reply.message, reply.data, reply.http_code)
        except PortalError as e:
            response = encode(ERROR, e.message, None, e.http_code)
        except Exception:
            log.exception("Error no controlado en %s %s", method, resource.value)
            response = encode(ERROR, "Error interno del servidor.", None, 500)

        s = self.settings
        if reply is not None and reply.set_token:
            response.set_cookie(s.cookie_name, reply.set_token, max_age=s.session_max_age, **s.cookie_settings())
        elif session is not None and session.destroyed:
            response.delete_cookie(s.cookie_name)
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    engine = build_engine(settings.database_url)
    init_db(engine)
    portal = Portal(settings, engine)

    app = FastAPI(title="Portal de empleados", version=__version__)
    app.state.portal = portal

    def _endpoint(resource: Resource):
        async def endpoint(request: Request):
            raw = await request.body()
            cookie = request.cookies.get(settings.cookie_name, "")
            # Store calls are blocking; keep them off the event loop.
            return await run_in_threadpool(
                portal.dispatch, resource, raw, request.method, request.query_params, cookie
            )

        return endpoint

    for resource, paths in ROUTES.items():
        for path in paths:
            app.add_api_route(
                path,
                _endpoint(resource),
                methods=METHODS,
                name=f"{resource.value}:{path}",
                include_in_schema=not path.endswith(".php"),
            )

    log.info("Portal listo (%s, sesiones=%s, directorio=%s)", __version__, settings.session_backend, settings.directory_read)
    return app
