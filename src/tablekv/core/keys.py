# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Key layout of the key-value store.

Centralising this keeps the three key spaces (identity, configuration and
per-user-per-page records) from colliding:

- identity:  ``admin``                      (no separator)
- config:    ``app:config``                 (one separator)
- records:   ``records:<user>:<page_id>``   (two separators, fixed prefix)

The literal values match the layout of stores written by earlier versions of
the service.
"""

from __future__ import annotations

from tablekv.core.errors import ValidationError

SEP = ":"

IDENTITY_KEY = "admin"
CONFIG_KEY = "app" + SEP + "config"
RECORDS_PREFIX = "records"


def identity_key() -> str:
    return IDENTITY_KEY


def config_key() -> str:
    return CONFIG_KEY


def _part(name: str, value: str) -> str:
    v = str(value or "")
    if not v:
        raise ValidationError(f"{name} 不能为空")
    if SEP in v:
        raise ValidationError(f"{name} 不能包含 '{SEP}'")
    return v


def records_key(username: str, page_id: str) -> str:
    """Composite key for one user's table on one page."""
    return SEP.join([RECORDS_PREFIX, _part("username", username), _part("pageId", page_id)])
