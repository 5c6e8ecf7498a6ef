#!/usr/bin/env python3
from __future__ import annotations

import os
from getpass import getpass

from portal.auth.passwords import hash_password
from portal.auth.users import upsert_user
from portal.infra.db import build_engine, init_db
from portal.permissions import Role

DATABASE_URL = os.getenv("PORTAL_DATABASE_URL", "sqlite:///data/portal.db")


def main() -> None:
    engine = build_engine(DATABASE_URL)
    init_db(engine)

    name = input("Nombre: ").strip()
    email = input("Email: ").strip()
    if not name or not email:
        raise SystemExit("Nombre y email son obligatorios")

    roles = "/".join(r.value for r in Role)
    role = (input(f"Perfil [{roles}]: ").strip().lower() or Role.GUEST.value)
    if role not in {r.value for r in Role}:
        raise SystemExit(f"Perfil no válido: {role}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords no coinciden")
    if len(pw1) < 6:
        raise SystemExit("La contraseña debe tener al menos 6 caracteres")

    user_id = upsert_user(engine, name=name, email=email, profile=role, password_hash=hash_password(pw1))
    print(f"OK -> usuario {user_id} ({email}, {role}) en {DATABASE_URL}")


if __name__ == "__main__":
    main()
