from sqlalchemy import delete, select

from portal.infra.db import users_table

from conftest import PASSWORD, USERS

COOKIE = "portal_session"


def _post(client, **payload):
    return client.post("/api/auth", json=payload)


def _check_with(client, token):
    """check_session sending an explicit cookie value."""
    return client.post("/api/auth", json={"action": "check_session"}, headers={"Cookie": f"{COOKIE}={token}"})


def test_login_returns_profile_and_sets_cookie(client):
    r = _post(client, action="login", email="diseno@portal.test", password=PASSWORD)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["data"]["name"] == "Diego Diseño"
    assert body["data"]["profile"] == "diseno"
    assert isinstance(body["data"]["id"], int)
    assert client.cookies.get(COOKIE)


def test_login_failures_are_indistinguishable(client):
    wrong_pw = _post(client, action="login", email="admin@portal.test", password="nope-nope")
    no_user = _post(client, action="login", email="nadie@portal.test", password="nope-nope")
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.json() == no_user.json()
    assert "data" not in wrong_pw.json()


def test_login_requires_both_fields(client):
    r = _post(client, action="login", email="admin@portal.test")
    assert r.status_code == 400
    assert r.json() == {"status": "error", "message": "Faltan credenciales."}


def test_legacy_role_is_reported_canonically(client, login):
    assert login(client, "guest")["profile"] == "guest"


def test_check_session_without_login(client):
    r = _post(client, action="check_session")
    assert r.status_code == 401
    assert r.json()["message"] == "No hay sesión activa."


def test_logout_then_check_session_is_unauthenticated(client, login):
    login(client, "empleado")
    assert _post(client, action="check_session").status_code == 200
    token = client.cookies.get(COOKIE)

    r = _post(client, action="logout")
    assert r.status_code == 200
    assert r.json()["status"] == "success"
    assert _post(client, action="check_session").status_code == 401

    # The old cookie is dead server-side too.
    assert _check_with(client, token).status_code == 401


def test_logout_is_idempotent(client):
    assert _post(client, action="logout").status_code == 200
    assert _post(client, action="logout").status_code == 200


def test_check_session_via_get(client, login):
    user = login(client, "admin")
    r = client.get("/api/auth", params={"action": "check_session"})
    assert r.status_code == 200
    assert r.json()["data"] == {"id": user["id"], "name": "Ana Admin", "profile": "admin_global"}


def test_get_profile_never_returns_hash(client, login):
    login(client, "empleado")
    r = client.get("/api/auth", params={"action": "get_profile"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert set(data) == {"id", "name", "email", "profile", "photo_url"}
    assert data["email"] == "eva@portal.test"


def test_get_profile_requires_session(client):
    r = client.get("/api/auth", params={"action": "get_profile"})
    assert r.status_code == 401


def test_update_profile(client, login):
    login(client, "empleado")
    r = _post(client, action="update_profile", name="Eva María", photo_url="https://img/eva.png")
    assert r.status_code == 200
    assert r.json()["message"] == "Perfil actualizado correctamente."

    profile = client.get("/api/auth", params={"action": "get_profile"}).json()["data"]
    assert profile["name"] == "Eva María"
    assert profile["photo_url"] == "https://img/eva.png"
    # Session snapshot follows the new name.
    assert _post(client, action="check_session").json()["data"]["name"] == "Eva María"


def test_update_profile_without_changes_still_succeeds(client, login):
    login(client, "empleado")
    r1 = _post(client, action="update_profile", name="Eva Empleada")
    r2 = _post(client, action="update_profile", name="Eva Empleada")
    assert r1.status_code == r2.status_code == 200


def test_update_profile_requires_name(client, login):
    login(client, "empleado")
    r = _post(client, action="update_profile", name="  ")
    assert r.status_code == 400
    assert r.json()["message"] == "El nombre es obligatorio."


def test_change_password_ends_session(client, login):
    login(client, "diseno")
    token = client.cookies.get(COOKIE)

    r = _post(client, action="change_password", current_password=PASSWORD, new_password="nueva-clave")
    assert r.status_code == 200
    assert r.json()["status"] == "success"

    assert _post(client, action="check_session").status_code == 401
    assert _check_with(client, token).status_code == 401

    email = USERS["diseno"][1]
    assert _post(client, action="login", email=email, password=PASSWORD).status_code == 401
    assert _post(client, action="login", email=email, password="nueva-clave").status_code == 200


def test_change_password_rejects_short_password(client, login):
    login(client, "diseno")
    r = _post(client, action="change_password", current_password=PASSWORD, new_password="12345")
    assert r.status_code == 400
    assert _post(client, action="check_session").status_code == 200


def test_change_password_rejects_wrong_current(client, login):
    login(client, "diseno")
    r = _post(client, action="change_password", current_password="otra-cosa", new_password="nueva-clave")
    assert r.status_code == 401
    assert r.json()["message"] == "La contraseña actual es incorrecta."
    # Still logged in.
    assert _post(client, action="check_session").status_code == 200


def test_change_password_requires_session(client):
    r = _post(client, action="change_password", current_password=PASSWORD, new_password="nueva-clave")
    assert r.status_code == 401


def test_orphaned_session_is_discarded(client, login):
    user = login(client, "empleado")
    token = client.cookies.get(COOKIE)
    engine = client.app.state.portal.engine
    with engine.begin() as conn:
        conn.execute(delete(users_table).where(users_table.c.id == user["id"]))

    assert _post(client, action="check_session").status_code == 401
    # Discarded from the store, not just rejected once.
    assert client.app.state.portal.sessions.load(client.cookies.get(COOKIE) or token).data is None


def test_relogin_replaces_session(client, login):
    login(client, "empleado")
    first = client.cookies.get(COOKIE)
    login(client, "admin")
    assert client.cookies.get(COOKIE) != first
    assert _post(client, action="check_session").json()["data"]["profile"] == "admin_global"


def test_unknown_action_and_methods(client, login):
    assert _post(client, action="explode").status_code == 401
    login(client, "admin")
    r = _post(client, action="explode")
    assert r.status_code == 405
    assert client.put("/api/auth", json={"action": "login"}).status_code == 405


def test_invalid_json_body(client):
    r = client.post("/api/auth", content=b"{oops", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["status"] == "error"


def test_legacy_path_is_served(client):
    r = client.post("/api/auth_handler.php", json={"action": "logout"})
    assert r.status_code == 200


def test_password_hash_is_stored_hashed(client):
    engine = client.app.state.portal.engine
    with engine.connect() as conn:
        stored = conn.execute(select(users_table.c.password_hash).where(users_table.c.email == "admin@portal.test")).scalar_one()
    assert stored.startswith("$argon2")
    assert PASSWORD not in stored
