# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Login, logout, session check and self-service profile actions."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from portal.auth import users
from portal.auth.passwords import hash_password, verify_password
from portal.auth.session import KEY_PROFILE, KEY_USER_ID, KEY_USER_NAME, SessionContext, SessionManager
from portal.core.actions import (
    AuthAction,
    ChangePassword,
    CheckSession,
    GetProfile,
    Login,
    Logout,
    UpdateProfile,
)
from portal.core.envelope import Reply
from portal.core.errors import Unauthenticated, UnrecognizedAction
from portal.core.logging_config import get_logger
from portal.infra.db import store_errors

log = get_logger(__name__)

# Same text for unknown email and wrong password.
INVALID_CREDENTIALS = "Email o contraseña incorrectos."


def _require_user(session: SessionContext, engine: Engine) -> users.UserRecord:
    """Current user row; discards the session when the user no longer exists."""
    if not session.is_authenticated:
        raise Unauthenticated("No hay sesión activa.")
    with store_errors("Error al obtener el usuario"):
        u = users.get_user(engine, session.user_id)
    if u is None:
        log.warning("Sesión descartada: el usuario %s ya no existe", session.user_id)
        with store_errors("Error al cerrar la sesión"):
            session.destroy()
        raise Unauthenticated("La sesión ya no es válida. Inicia sesión de nuevo.")
    return u


def login(action: Login, *, session: SessionContext, engine: Engine, sessions: SessionManager) -> Reply:
    with store_errors("Error al iniciar sesión"):
        u = users.authenticate(engine, action.email, action.password)
    if not u:
        log.info("Login fallido para %s", action.email)
        raise Unauthenticated(INVALID_CREDENTIALS)

    with store_errors("Error al iniciar sesión"):
        token = sessions.start(session, {KEY_USER_ID: u.id, KEY_USER_NAME: u.name, KEY_PROFILE: u.profile})
    log.info("Login correcto: %s (%s)", u.email, u.profile)
    return Reply("Login exitoso.", {"id": u.id, "name": u.name, "profile": u.profile}, set_token=token)


def logout(session: SessionContext) -> Reply:
    if session.is_authenticated:
        log.info("Logout de user_id=%s", session.user_id)
    with store_errors("Error al cerrar la sesión"):
        session.destroy()
    return Reply("Sesión cerrada correctamente.")


def check_session(session: SessionContext, engine: Engine) -> Reply:
    _require_user(session, engine)
    return Reply(
        "Sesión activa.",
        {"id": session.user_id, "name": session.user_name, "profile": session.profile},
    )


def update_profile(action: UpdateProfile, *, session: SessionContext, engine: Engine) -> Reply:
    u = _require_user(session, engine)
    with store_errors("Error al actualizar el perfil"):
        # 0 affected rows just means nothing changed.
        users.update_profile(engine, u.id, name=action.name, photo_url=action.photo_url)
    with store_errors("Error al actualizar la sesión"):
        session.update(**{KEY_USER_NAME: action.name})
    return Reply("Perfil actualizado correctamente.")


def change_password(action: ChangePassword, *, session: SessionContext, engine: Engine) -> Reply:
    u = _require_user(session, engine)
    if not verify_password(u.password_hash, action.current_password):
        raise Unauthenticated("La contraseña actual es incorrecta.")

    new_hash = hash_password(action.new_password)
    with store_errors("Error al cambiar la contraseña"):
        users.set_password_hash(engine, u.id, new_hash)

    # Force a fresh login with the new password.
    with store_errors("Error al cerrar la sesión"):
        session.destroy()
    log.info("Contraseña cambiada para user_id=%s; sesión cerrada", u.id)
    return Reply("Contraseña actualizada correctamente. Necesitarás iniciar sesión de nuevo.")


def handle(action: AuthAction, *, session: SessionContext, engine: Engine, sessions: SessionManager) -> Reply:
    match action:
        case Login():
            return login(action, session=session, engine=engine, sessions=sessions)
        case Logout():
            return logout(session)
        case CheckSession():
            return check_session(session, engine)
        case GetProfile():
            return Reply("Datos de perfil obtenidos.", _require_user(session, engine).public())
        case UpdateProfile():
            return update_profile(action, session=session, engine=engine)
        case ChangePassword():
            return change_password(action, session=session, engine=engine)
        case _:
            raise UnrecognizedAction("Acción no reconocida.")
