# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from tablekv.auth.credentials import CredentialStore
from tablekv.auth.tokens import TokenService
from tablekv.core.errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_in: int
    created: bool = False

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, "token": self.token, "expiresIn": self.expires_in}


class AuthService:
    """Login flow over the single administrative identity.

    The first login on an empty store registers its password as the
    administrator's; every later login must match it.
    """

    def __init__(self, credentials: CredentialStore, tokens: TokenService):
        self.credentials = credentials
        self.tokens = tokens

    def login(self, username: str, password: str) -> LoginResult:
        if not username or not password:
            raise ValidationError("用户名和密码必填")
        if not isinstance(username, str) or not isinstance(password, str):
            raise ValidationError("用户名和密码必须是字符串")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"密码至少 {MIN_PASSWORD_LENGTH} 个字符")

        created = False
        identity = self.credentials.get()
        if identity is None:
            logger.warning("No administrative identity yet; registering it from this login")
            try:
                identity = self.credentials.create(password)
                created = True
            except ConflictError:
                # A concurrent first login registered it; check against that one.
                identity = self.credentials.get()
        if not created and not identity.check_password(password):
            logger.info("Login rejected: wrong password")
            raise AuthError("用户名或密码错误")

        return LoginResult(token=self.tokens.issue(), expires_in=self.tokens.lifetime, created=created)
