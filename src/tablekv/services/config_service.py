# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Page configuration: the ordered list of pages, stored as one value.

There is no partial update. Every change (including the page helpers below)
reads the whole configuration, modifies it, validates it and writes it back.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from typing import Any, Dict, List, Optional

from tablekv.core.errors import NotFoundError, StoreError, ValidationError
from tablekv.core.keys import SEP, config_key
from tablekv.infra.kv_store import KVStore, encode_value

logger = logging.getLogger(__name__)

MIN_COLUMNS = 1
MAX_COLUMNS = 20

DEFAULT_CONFIG: Dict[str, Any] = {
    "pages": [
        {"id": "1", "title": "默认页面", "columns": 3},
    ]
}


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)


def new_page_id() -> str:
    """Page ids are the creation time in epoch milliseconds."""
    return str(int(time.time() * 1000))


def _nonempty_str(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


def validate_page(page: Any, index: int) -> None:
    if not isinstance(page, dict):
        raise ValidationError("页面信息不完整", details=f"pages[{index}] 不是对象")
    if not _nonempty_str(page.get("id")) or not _nonempty_str(page.get("title")):
        raise ValidationError("页面信息不完整", details=f"pages[{index}] 缺少 id 或 title")
    if SEP in page["id"]:
        raise ValidationError(f"页面 id 不能包含 '{SEP}'", details=f"pages[{index}].id = {page['id']!r}")
    cols = page.get("columns")
    # bool is an int subclass; True must not pass as 1 column.
    if isinstance(cols, bool) or not isinstance(cols, int) or not (MIN_COLUMNS <= cols <= MAX_COLUMNS):
        raise ValidationError(
            f"列数必须在 {MIN_COLUMNS}-{MAX_COLUMNS} 之间",
            details=f"pages[{index}].columns = {cols!r}",
        )


def validate_configuration(config: Any) -> None:
    if not isinstance(config, dict) or not isinstance(config.get("pages"), list):
        raise ValidationError("配置格式无效")
    for i, page in enumerate(config["pages"]):
        validate_page(page, i)


class ConfigService:
    def __init__(self, store: KVStore):
        self.store = store

    def get(self) -> Dict[str, Any]:
        raw = self.store.get(config_key())
        if raw is None:
            logger.debug("No saved configuration; returning default")
            return default_config()
        try:
            config = json.loads(raw)
        except ValueError as e:
            raise StoreError("配置数据已损坏") from e
        if not isinstance(config, dict):
            raise StoreError("配置数据已损坏")
        return config

    def put(self, config: Any) -> None:
        validate_configuration(config)
        self.store.put(config_key(), encode_value(config))
        logger.info("Configuration saved (%d pages)", len(config["pages"]))

    # --- page helpers (read-modify-write) ---

    def _find(self, pages: List[Dict[str, Any]], page_id: str) -> int:
        for i, p in enumerate(pages):
            if isinstance(p, dict) and p.get("id") == page_id:
                return i
        raise NotFoundError(f"页面 '{page_id}' 不存在")

    def add_page(self, title: str, columns: int, page_id: Optional[str] = None) -> Dict[str, Any]:
        config = self.get()
        pages = config.setdefault("pages", [])
        pid = page_id or new_page_id()
        if any(isinstance(p, dict) and p.get("id") == pid for p in pages):
            raise ValidationError(f"页面 '{pid}' 已存在")
        pages.append({"id": pid, "title": title, "columns": columns})
        self.put(config)
        return config

    def update_page(
        self,
        page_id: str,
        *,
        title: Optional[str] = None,
        columns: Optional[int] = None,
    ) -> Dict[str, Any]:
        config = self.get()
        pages = config.get("pages") or []
        page = pages[self._find(pages, page_id)]
        if title is not None:
            page["title"] = title
        if columns is not None:
            page["columns"] = columns
        self.put(config)
        return config

    def delete_page(self, page_id: str) -> Dict[str, Any]:
        """Remove a page. Its stored records are left in place."""
        config = self.get()
        pages = config.get("pages") or []
        del pages[self._find(pages, page_id)]
        self.put(config)
        return config
