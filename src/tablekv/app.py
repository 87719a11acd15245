# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from tablekv.auth.tokens import TokenService
from tablekv.core.errors import AuthError, ConfigurationError, TableKVError, ValidationError
from tablekv.core.observability import setup_logging
from tablekv.infra.kv_store import KVStore, open_store
from tablekv.permissions import (
    CurrentUser,
    get_auth_service,
    get_config_service,
    get_record_service,
    require_user,
)
from tablekv.services.auth_service import AuthService
from tablekv.services.config_service import ConfigService
from tablekv.services.record_service import RecordService
from tablekv.settings import Settings, load_settings

logger = logging.getLogger(__name__)

CORS_METHODS = "GET, POST, OPTIONS"
CORS_HEADERS = "Content-Type, Authorization"
CORS_MAX_AGE = "86400"

STATUS_MESSAGES = {
    404: "路由未找到",
    405: "方法不允许",
}


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


router = APIRouter(prefix="/api")


# ------------------ Auth ------------------


@router.post("/auth/login")
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.login(body.username or "", body.password or "")
    return result.to_response()


@router.get("/auth/verify")
def verify(user: CurrentUser = Depends(require_user)):
    return {"valid": True, "user": user.username}


# ------------------ Config ------------------


@router.get("/config")
@router.get("/config/", include_in_schema=False)
def get_config(
    user: CurrentUser = Depends(require_user),
    configs: ConfigService = Depends(get_config_service),
):
    return configs.get()


@router.post("/config")
@router.post("/config/", include_in_schema=False)
def update_config(
    config: Any = Body(...),
    user: CurrentUser = Depends(require_user),
    configs: ConfigService = Depends(get_config_service),
):
    configs.put(config)
    return {"success": True, "message": "配置已更新"}


# ------------------ Records ------------------


@router.get("/records/{page_id}")
def get_records(
    page_id: str,
    user: CurrentUser = Depends(require_user),
    records: RecordService = Depends(get_record_service),
):
    return {"success": True, "rows": records.get(user.username, page_id)}


@router.post("/records/{page_id}")
def save_records(
    page_id: str,
    payload: Any = Body(...),
    user: CurrentUser = Depends(require_user),
    records: RecordService = Depends(get_record_service),
):
    if not isinstance(payload, dict):
        raise ValidationError("数据格式无效")
    records.put(user.username, page_id, payload.get("rows"))
    return {"success": True, "message": "数据已保存"}


# ------------------ App wiring ------------------


def cors_headers(settings: Settings, origin: Optional[str]) -> Dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Allow-Headers": CORS_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }
    if "*" in settings.allowed_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in settings.allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TableKVError)
    async def _service_error(request: Request, exc: TableKVError):
        log = logger.error if exc.http_status >= 500 else logger.info
        log(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
            extra={"error_code": exc.code, "path": request.url.path},
        )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.http_status, content=exc.to_response(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(loc) for loc in e.get("loc", ())), "message": e.get("msg", "")}
            for e in exc.errors()
        ]
        logger.info("Invalid request body on %s: %s", request.url.path, details)
        return JSONResponse(status_code=400, content={"error": "请求数据无效", "details": details})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        message = STATUS_MESSAGES.get(exc.status_code) or str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )


def create_app(settings: Optional[Settings] = None, store: Optional[KVStore] = None) -> FastAPI:
    """Build the application. This is the only place the secret and store are bound."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        logger.info("tablekv started (store=%s)", settings.store_backend)
        yield
        logger.info("tablekv shutting down")

    app = FastAPI(title="tablekv", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else open_store(settings)
    try:
        app.state.tokens = TokenService(settings.jwt_secret, lifetime=settings.token_ttl)
    except ConfigurationError:
        # Login and every protected route answer 500 until an operator sets the secret.
        logger.error("No signing secret configured; set TABLEKV_JWT_SECRET")
        app.state.tokens = None

    @app.middleware("http")
    async def _cors_and_boundary(request: Request, call_next):
        headers = cors_headers(settings, request.headers.get("Origin"))
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("Unhandled exception on %s: %s", request.url.path, e, exc_info=True)
            response = JSONResponse(status_code=500, content={"error": "服务器错误", "message": str(e)})
        response.headers.update(headers)
        return response

    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
