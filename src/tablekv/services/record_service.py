# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
import logging
from typing import Any, List

from tablekv.core.errors import StoreError, ValidationError
from tablekv.core.keys import records_key
from tablekv.infra.kv_store import KVStore, encode_value

logger = logging.getLogger(__name__)


class RecordService:
    """Per-user, per-page tables of rows.

    Rows are stored as an opaque JSON list. Their width is not checked
    against the page's column count; the editor owns that.
    """

    def __init__(self, store: KVStore):
        self.store = store

    def get(self, username: str, page_id: str) -> List[Any]:
        raw = self.store.get(records_key(username, page_id))
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
        except ValueError as e:
            raise StoreError("数据已损坏") from e
        if not isinstance(rows, list):
            raise StoreError("数据已损坏")
        return rows

    def put(self, username: str, page_id: str, rows: Any) -> None:
        if not isinstance(rows, list):
            raise ValidationError("数据格式无效")
        key = records_key(username, page_id)
        self.store.put(key, encode_value(rows))
        logger.info("Saved %d rows", len(rows), extra={"page_id": page_id})
