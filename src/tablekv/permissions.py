# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request-scoped dependencies: the store, the token service and the caller.

Everything here reads from ``app.state``, which ``create_app`` fills once at
startup and never mutates afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request

from tablekv.auth.credentials import CredentialStore
from tablekv.auth.tokens import INVALID_TOKEN_MESSAGE, TokenService
from tablekv.core.errors import AuthError, ConfigurationError, StoreError
from tablekv.infra.kv_store import KVStore
from tablekv.services.auth_service import AuthService
from tablekv.services.config_service import ConfigService
from tablekv.services.record_service import RecordService

BEARER = "bearer"


@dataclass(frozen=True)
class CurrentUser:
    username: str


def get_store(request: Request) -> KVStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreError("KV 存储未绑定", hint="检查 TABLEKV_STORE / TABLEKV_STORE_PATH 配置")
    return store


def get_token_service(request: Request) -> TokenService:
    tokens = getattr(request.app.state, "tokens", None)
    if tokens is None:
        raise ConfigurationError("JWT_SECRET 未定义", hint="设置 TABLEKV_JWT_SECRET 环境变量后重启服务")
    return tokens


def bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise AuthError("未提供认证信息")
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER or not token:
        raise AuthError(INVALID_TOKEN_MESSAGE)
    return token


def require_user(request: Request, tokens: TokenService = Depends(get_token_service)) -> CurrentUser:
    payload = tokens.verify(bearer_token(request))
    user = CurrentUser(username=payload["username"])
    request.state.user = user
    return user


def get_auth_service(
    store: KVStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(CredentialStore(store), tokens)


def get_config_service(store: KVStore = Depends(get_store)) -> ConfigService:
    return ConfigService(store)


def get_record_service(store: KVStore = Depends(get_store)) -> RecordService:
    return RecordService(store)
