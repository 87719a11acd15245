# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Self-issued HMAC-SHA256 bearer tokens.

Wire format::

    b64(header_json) "." b64(payload_json) "." b64(raw_hmac_sha256)

using the *standard* base64 alphabet with padding (not URL-safe), which is
what existing browser clients expect. Tokens are stateless: a validly signed,
unexpired token is enough to authorise a request.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from tablekv.auth.credentials import ADMIN_USERNAME
from tablekv.core.errors import AuthError, ConfigurationError
from tablekv.settings import TOKEN_TTL_SECONDS

logger = logging.getLogger(__name__)

HEADER = {"alg": "HS256", "typ": "JWT"}

# One message for every failure: clients must not learn whether a token was
# malformed, forged or expired.
INVALID_TOKEN_MESSAGE = "Token 无效或已过期，请重新登录"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64_json(obj: Dict[str, Any]) -> str:
    return _b64(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _invalid(reason: str) -> AuthError:
    logger.debug("Token rejected: %s", reason)
    return AuthError(INVALID_TOKEN_MESSAGE)


class TokenService:
    def __init__(
        self,
        secret: str,
        *,
        lifetime: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ConfigurationError("JWT_SECRET 未定义", hint="设置 TABLEKV_JWT_SECRET 环境变量后重启服务")
        self._key = secret.encode("utf-8")
        self.lifetime = int(lifetime)
        self._clock = clock

    def _sign(self, message: str) -> bytes:
        return hmac.new(self._key, message.encode("utf-8"), hashlib.sha256).digest()

    def issue(self, now: Optional[float] = None) -> str:
        iat = int(self._clock() if now is None else now)
        payload = {"username": ADMIN_USERNAME, "iat": iat, "exp": iat + self.lifetime}
        message = f"{_b64_json(HEADER)}.{_b64_json(payload)}"
        return f"{message}.{_b64(self._sign(message))}"

    def verify(self, token: str) -> Dict[str, Any]:
        """Check structure, signature and expiry; return the payload.

        Raises AuthError (always with the same message) on any failure.
        """
        parts = str(token or "").split(".")
        if len(parts) != 3:
            raise _invalid("expected 3 parts")
        header_b64, payload_b64, signature_b64 = parts

        try:
            signature = base64.b64decode(signature_b64, validate=True)
        except (binascii.Error, ValueError):
            raise _invalid("signature is not base64") from None

        expected = self._sign(f"{header_b64}.{payload_b64}")
        if not hmac.compare_digest(signature, expected):
            raise _invalid("signature mismatch")

        try:
            payload = json.loads(base64.b64decode(payload_b64, validate=True))
        except (binascii.Error, ValueError):
            raise _invalid("payload is not base64 JSON") from None
        if not isinstance(payload, dict):
            raise _invalid("payload is not an object")

        username = payload.get("username")
        exp = payload.get("exp")
        if not isinstance(username, str) or not username:
            raise _invalid("missing username")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise _invalid("missing exp")
        if exp < self._clock():
            raise _invalid("expired")
        return payload
