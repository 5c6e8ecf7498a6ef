import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from portal.app import create_app
from portal.auth.passwords import hash_password
from portal.auth.users import upsert_user
from portal.core.settings import Settings

PASSWORD = "secreto123"

USERS = {
    "admin": ("Ana Admin", "admin@portal.test", "admin_global"),
    "diseno": ("Diego Diseño", "diseno@portal.test", "diseno"),
    "empleado": ("Eva Empleada", "eva@portal.test", "empleado"),
    "guest": ("Gil Invitado", "guest@portal.test", "invitado"),
}


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'portal.db'}",
        secret_key="test-secret",
    )


@pytest.fixture()
def make_client(settings):
    """Build a client over a fresh app; keyword overrides are applied to the settings."""

    def _make(**overrides) -> TestClient:
        app = create_app(replace(settings, **overrides))
        engine = app.state.portal.engine
        pw_hash = hash_password(PASSWORD)
        for name, email, profile in USERS.values():
            upsert_user(engine, name=name, email=email, profile=profile, password_hash=pw_hash)
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture()
def login():
    def _login(client: TestClient, who: str, password: str = PASSWORD):
        email = USERS[who][1]
        r = client.post("/api/auth", json={"action": "login", "email": email, "password": password})
        assert r.status_code == 200, r.text
        return r.json()["data"]

    return _login
