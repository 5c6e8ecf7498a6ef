import pytest
from sqlalchemy.exc import OperationalError

from portal.infra import directory_repo

URL = "/api/directorio"


def _employee(**kw):
    data = {
        "name": "Ana Pérez",
        "position": "Desarrolladora",
        "department": "Tecnología",
        "email": "ana@x.com",
        "phone": "600111222",
        "location": "Madrid",
        "photo_url": None,
    }
    data.update(kw)
    return data


def _create(client, **kw):
    return client.post(URL, json={"action": "create", **_employee(**kw)})


@pytest.fixture()
def admin(client, login):
    login(client, "admin")
    return client


@pytest.fixture()
def staff(admin):
    """Admin client with a small directory already loaded."""
    _create(admin, name="Carlos Ruiz", position="Contable", department="Finanzas", email="carlos@x.com")
    _create(admin, name="Beatriz Gómez", position="Diseñadora", department="Marketing", email="bea@x.com")
    _create(admin, name="Ana Pérez", position="Desarrolladora", department="Tecnología", email="ana@x.com")
    _create(admin, name="Daniel Sanz", position="Analista", department="Tecnología", email="dani@corp.com")
    return admin


def _names(r):
    assert r.status_code == 200, r.text
    return [e["name"] for e in r.json()["data"]]


def test_create_returns_new_id(admin):
    r = _create(admin)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert isinstance(body["data"]["id"], int)


def test_duplicate_email_is_conflict(admin):
    assert _create(admin, email="a@x.com").status_code == 200
    r = _create(admin, name="Otra Persona", email="a@x.com")
    assert r.status_code == 409
    assert r.json() == {"status": "error", "message": "Error: El correo electrónico ya está registrado."}


def test_create_requires_mandatory_fields(admin):
    r = admin.post(URL, json={"action": "create", "name": "Sin Email", "position": "X", "department": "Y"})
    assert r.status_code == 400
    assert r.json()["message"] == "Faltan campos obligatorios para crear el empleado."


def test_create_accepts_legacy_field_names(admin):
    r = admin.post(
        URL,
        json={
            "action": "create",
            "nombre": "Luis Vidal",
            "puesto": "Soporte",
            "departamento": "Tecnología",
            "email": "luis@x.com",
            "ubicacion": "Sevilla",
        },
    )
    assert r.status_code == 200
    emp = admin.get(URL, params={"action": "get_employee", "id": r.json()["data"]["id"]}).json()["data"]
    assert emp["name"] == "Luis Vidal"
    assert emp["location"] == "Sevilla"


def test_list_is_ordered_by_name(staff):
    assert _names(staff.get(URL)) == ["Ana Pérez", "Beatriz Gómez", "Carlos Ruiz", "Daniel Sanz"]


def test_todos_means_no_department_filter(staff):
    assert staff.get(URL, params={"department": "Todos"}).json() == staff.get(URL).json()


def test_department_filter_is_exact(staff):
    assert _names(staff.get(URL, params={"department": "Tecnología"})) == ["Ana Pérez", "Daniel Sanz"]
    assert _names(staff.get(URL, params={"department": "Tecno"})) == []


def test_search_is_case_insensitive_over_name_position_email(staff):
    assert _names(staff.get(URL, params={"search": "CARLOS"})) == ["Carlos Ruiz"]
    assert _names(staff.get(URL, params={"search": "diseñ"})) == ["Beatriz Gómez"]
    assert _names(staff.get(URL, params={"search": "corp.com"})) == ["Daniel Sanz"]


def test_search_and_department_compose(staff):
    r = staff.get(URL, params={"search": "a", "department": "Tecnología"})
    assert _names(r) == ["Ana Pérez", "Daniel Sanz"]
    r = staff.get(URL, params={"search": "analista", "department": "Finanzas"})
    assert _names(r) == []


def test_search_wildcards_are_literal(staff):
    assert _names(staff.get(URL, params={"search": "%"})) == []


def test_unknown_get_action_lists(staff):
    assert len(staff.get(URL, params={"action": "whatever"}).json()["data"]) == 4


def test_departments(staff):
    for action in ("departments", "list_departments"):
        r = staff.get(URL, params={"action": action})
        assert r.status_code == 200
        assert r.json()["data"] == ["Finanzas", "Marketing", "Tecnología"]


def test_get_employee(staff):
    first = staff.get(URL).json()["data"][0]
    r = staff.get(URL, params={"action": "get_employee", "id": first["id"]})
    assert r.status_code == 200
    assert r.json()["data"] == first
    assert set(first) == {"id", "name", "position", "department", "email", "phone", "location", "photo_url"}


def test_get_employee_not_found(admin):
    r = admin.get(URL, params={"action": "get_employee", "id": 999})
    assert r.status_code == 404


def test_update_employee(staff):
    emp = staff.get(URL, params={"search": "carlos"}).json()["data"][0]
    r = staff.post(URL, json={"action": "update", **_employee(id=emp["id"], name="Carlos Ruiz", email="carlos@x.com", department="Dirección")})
    assert r.status_code == 200
    assert r.json()["data"] == {"id": emp["id"]}
    assert _names(staff.get(URL, params={"department": "Dirección"})) == ["Carlos Ruiz"]


def test_update_to_taken_email_is_conflict(staff):
    emp = staff.get(URL, params={"search": "carlos"}).json()["data"][0]
    r = staff.post(URL, json={"action": "update", **_employee(id=emp["id"], email="bea@x.com")})
    assert r.status_code == 409


def test_update_missing_id_succeeds_by_default(admin):
    r = admin.post(URL, json={"action": "update", **_employee(id=999)})
    assert r.status_code == 200
    assert r.json()["status"] == "success"
    assert admin.get(URL).json()["data"] == []


def test_update_missing_id_can_report_not_found(make_client, login):
    client = make_client(directory_update_missing="not_found")
    login(client, "admin")
    r = client.post(URL, json={"action": "update", **_employee(id=999)})
    assert r.status_code == 404


def test_delete_employee(staff):
    emp = staff.get(URL, params={"search": "bea"}).json()["data"][0]
    r = staff.post(URL, json={"action": "delete", "id": emp["id"]})
    assert r.status_code == 200
    assert "Beatriz Gómez" not in _names(staff.get(URL))


def test_delete_missing_employee_is_not_found(admin):
    r = admin.post(URL, json={"action": "delete", "id": 12345})
    assert r.status_code == 404
    assert r.json()["message"] == "No se encontró el empleado con el ID proporcionado."


def test_delete_requires_id(admin):
    assert admin.post(URL, json={"action": "delete"}).status_code == 400


@pytest.mark.parametrize("who", ["diseno", "empleado", "guest"])
def test_only_admin_can_write(client, login, who):
    login(client, who)
    r = _create(client)
    assert r.status_code == 403
    assert r.json()["status"] == "error"
    assert client.get(URL).status_code == 200


def test_anonymous_read_needs_session_by_default(client):
    r = client.get(URL)
    assert r.status_code == 401
    assert _create(client).status_code == 401


def test_public_read_policy(make_client):
    client = make_client(directory_read="public")
    assert client.get(URL).status_code == 200
    assert client.get(URL, params={"action": "departments"}).status_code == 200
    assert _create(client).status_code == 401


def test_non_guest_read_policy(make_client, login):
    client = make_client(directory_read="non_guest")
    login(client, "guest")
    assert client.get(URL).status_code == 403
    login(client, "empleado")
    assert client.get(URL).status_code == 200


def test_unrecognized_write_action(admin):
    r = admin.post(URL, json={"action": "archive", "id": 1})
    assert r.status_code == 405


def test_store_failure_is_reported(admin, monkeypatch):
    def boom(*a, **kw):
        raise OperationalError("SELECT ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(directory_repo, "list_employees", boom)
    r = admin.get(URL)
    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Error al ejecutar la consulta de empleados: disk I/O error"}


def test_search_folds_accented_letters(admin):
    _create(admin, name="Álvaro Núñez", position="Jefe de Ventas", department="Ventas", email="alvaro@x.com")
    assert _names(admin.get(URL, params={"search": "álvaro"})) == ["Álvaro Núñez"]
    assert _names(admin.get(URL, params={"search": "ÁLVARO"})) == ["Álvaro Núñez"]
    assert _names(admin.get(URL, params={"search": "NÚÑEZ"})) == ["Álvaro Núñez"]


def test_unchanged_update_is_not_reported_missing(make_client, login):
    client = make_client(directory_update_missing="not_found")
    login(client, "admin")
    emp_id = _create(client).json()["data"]["id"]
    r = client.post(URL, json={"action": "update", **_employee(id=emp_id)})
    assert r.status_code == 200
    assert r.json()["data"] == {"id": emp_id}
