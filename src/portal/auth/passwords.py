# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""argon2id password hashes for the ``usuarios`` table."""

from __future__ import annotations

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()

# Nobody knows the secret behind this hash; it only exists to be verified against.
_DECOY_HASH = _hasher.hash(secrets.token_urlsafe(24))


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password vacío")
    return _hasher.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """False on mismatch and on hashes argon2 cannot read (e.g. old bcrypt ones)."""
    if not hash_value or not plain:
        return False
    try:
        return _hasher.verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False


def burn_verification(plain: str) -> None:
    """Spend the same work as a real check when there is no account to check.

    Keeps a login for an unknown email as slow as one with a wrong password.
    """
    verify_password(_DECOY_HASH, plain or "-")


def needs_rehash(hash_value: str) -> bool:
    """True when the hash was made with weaker parameters than the current ones."""
    try:
        return _hasher.check_needs_rehash(hash_value)
    except InvalidHashError:
        return False
