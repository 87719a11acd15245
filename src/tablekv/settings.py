# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process settings, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

# Anchor the default store path to the project root rather than the cwd.
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_STORE_PATH = BASE_DIR / "data" / "store.yml"

TOKEN_TTL_SECONDS = 86400
STORE_BACKENDS = ("yaml", "memory", "none")


def _flag(value: str) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = ""
    store_backend: str = "yaml"
    store_path: Path = DEFAULT_STORE_PATH
    allowed_origins: Tuple[str, ...] = ("*",)
    token_ttl: int = TOKEN_TTL_SECONDS
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


def load_settings() -> Settings:
    secret = os.getenv("TABLEKV_JWT_SECRET") or os.getenv("JWT_SECRET") or ""

    backend = (os.getenv("TABLEKV_STORE", "yaml") or "yaml").strip().lower()
    if backend not in STORE_BACKENDS:
        raise ValueError(f"TABLEKV_STORE must be one of {', '.join(STORE_BACKENDS)}, got '{backend}'")

    origins_raw = os.getenv("TABLEKV_ALLOWED_ORIGINS", "*")
    origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) or ("*",)

    return Settings(
        jwt_secret=secret,
        store_backend=backend,
        store_path=Path(os.getenv("TABLEKV_STORE_PATH", str(DEFAULT_STORE_PATH))).resolve(),
        allowed_origins=origins,
        token_ttl=int(os.getenv("TABLEKV_TOKEN_TTL", str(TOKEN_TTL_SECONDS))),
        log_level=os.getenv("TABLEKV_LOG_LEVEL", "INFO"),
        log_format=os.getenv("TABLEKV_LOG_FORMAT", "text"),
        host=os.getenv("TABLEKV_HOST", "0.0.0.0"),
        port=int(os.getenv("TABLEKV_PORT", "8000")),
        reload=_flag(os.getenv("TABLEKV_RELOAD", "false")),
    )
