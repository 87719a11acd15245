# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed errors raised by services and converted to JSON at the app layer.

Every error carries a stable ``code`` and the HTTP status it maps to. The
user-facing ``message`` never includes internal details; extra context goes
into ``details`` or ``hint``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TableKVError(Exception):
    """Base exception for all service errors."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.hint = hint

    def to_response(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            out["details"] = self.details
        if self.hint:
            out["hint"] = self.hint
        return out


# --- 4xx ---


class ValidationError(TableKVError):
    """Malformed or out-of-range input."""

    code = "VALIDATION_ERROR"
    http_status = 400


class AuthError(TableKVError):
    """Missing, invalid or expired credentials or token."""

    code = "AUTH_ERROR"
    http_status = 401


class NotFoundError(TableKVError):
    code = "NOT_FOUND"
    http_status = 404


class MethodError(TableKVError):
    code = "METHOD_NOT_ALLOWED"
    http_status = 405


class ConflictError(TableKVError):
    """The resource already exists and may only be created once."""

    code = "CONFLICT"
    http_status = 409


# --- 5xx ---


class StoreError(TableKVError):
    """The key-value store is unbound, unreadable or rejected a write."""

    code = "STORE_ERROR"
    http_status = 500


class ConfigurationError(TableKVError):
    """Process configuration is incomplete (e.g. no signing secret).

    Not retryable: an operator has to fix the environment and restart.
    """

    code = "CONFIGURATION_ERROR"
    http_status = 500
