# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hashlib
import hmac
import secrets
import string

SALT_LENGTH = 16
SALT_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_salt() -> str:
    """16 characters from [A-Za-z0-9], each picked by a CSPRNG byte modulo 62."""
    return "".join(SALT_ALPHABET[b % len(SALT_ALPHABET)] for b in secrets.token_bytes(SALT_LENGTH))


def derive_hash(password: str, salt: str) -> str:
    """Hex SHA-256 of password + salt."""
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


def verify_password(password: str, stored_hash: str, salt: str) -> bool:
    if not password or not stored_hash:
        return False
    computed = derive_hash(password, salt or "")
    return hmac.compare_digest(computed.encode("utf-8"), stored_hash.encode("utf-8"))
