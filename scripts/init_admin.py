#!/usr/bin/env python3
"""Create the administrative identity before the first login.

Without this, the first person to log in with a password of 6+ characters
becomes the administrator.
"""
from __future__ import annotations

from getpass import getpass

from tablekv.auth.credentials import CredentialStore
from tablekv.core.errors import ConflictError
from tablekv.infra.kv_store import open_store
from tablekv.services.auth_service import MIN_PASSWORD_LENGTH
from tablekv.settings import load_settings


def main() -> None:
    settings = load_settings()
    if settings.store_backend != "yaml":
        raise SystemExit(f"TABLEKV_STORE={settings.store_backend}: nothing persistent to initialise")
    store = open_store(settings)

    creds = CredentialStore(store)
    if creds.get() is not None:
        raise SystemExit("Administrator already exists")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if len(pw1) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    try:
        creds.create(pw1)
    except ConflictError as e:
        raise SystemExit(e.message)
    print(f"OK -> {settings.store_path}")


if __name__ == "__main__":
    main()
