# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""The single administrative identity.

Lifecycle: absent until created once (normally by the first login), then
read-only. There is no update or delete path.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tablekv.auth.passwords import derive_hash, generate_salt, verify_password
from tablekv.core.errors import ConflictError, StoreError
from tablekv.core.keys import identity_key
from tablekv.infra.kv_store import KVStore

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    password_hash: str
    salt: str
    created_at: str
    role: str = ADMIN_ROLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passwordHash": self.password_hash,
            "salt": self.salt,
            "createdAt": self.created_at,
            "role": self.role,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        ph = str(data.get("passwordHash") or "").strip()
        salt = str(data.get("salt") or "")
        if not ph or not salt:
            raise StoreError("管理员记录已损坏")
        return cls(
            password_hash=ph,
            salt=salt,
            created_at=str(data.get("createdAt") or ""),
            role=str(data.get("role") or ADMIN_ROLE),
        )

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash, self.salt)


class CredentialStore:
    def __init__(self, store: KVStore):
        self.store = store

    def get(self) -> Optional[Identity]:
        raw = self.store.get(identity_key())
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StoreError("管理员记录已损坏") from e
        if not isinstance(data, dict):
            raise StoreError("管理员记录已损坏")
        return Identity.from_dict(data)

    def create(self, password: str) -> Identity:
        if self.get() is not None:
            raise ConflictError("管理员用户已存在")

        salt = generate_salt()
        identity = Identity(
            password_hash=derive_hash(password, salt),
            salt=salt,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.store.put(identity_key(), json.dumps(identity.to_dict()))
        logger.info("Administrative identity created")
        return identity
