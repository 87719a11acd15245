# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""String-to-string key-value stores.

Every operation is a single-key read or a single-key whole-value overwrite.
There are no transactions: two writers to the same key race and the last
write wins. Backend failures surface as StoreError; nothing is retried here.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tablekv.core.errors import StoreError, ValidationError
from tablekv.settings import Settings

logger = logging.getLogger(__name__)

STORE_FILE_VERSION = 1


def encode_value(value: Any) -> str:
    """JSON-encode a value for storage, refusing NaN and Infinity.

    Stored values are served back through strict JSON responses, so anything
    that cannot be rendered there is rejected before it is written.
    """
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except ValueError as e:
        raise ValidationError("数据包含无效数值 (NaN/Infinity)") from e


class KVStore:
    """Interface shared by the backends."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryKVStore(KVStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StoreError("存储值必须是字符串")
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class YamlFileKVStore(KVStore):
    """All entries in one YAML document on disk.

    Layout::

        version: 1
        entries:
          admin: '{"passwordHash": ...}'
          app:config: '{"pages": [...]}'

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so readers never see a half-written file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Cannot read store file %s: %s", self.path, e)
            raise StoreError("读取存储失败", details=str(e)) from e
        if not isinstance(raw, dict):
            raise StoreError("存储文件格式无效")
        entries = raw.get("entries") or {}
        if not isinstance(entries, dict):
            raise StoreError("存储文件格式无效")
        return {str(k): str(v) for k, v in entries.items()}

    def _save(self, entries: Dict[str, str]) -> None:
        doc = {"version": STORE_FILE_VERSION, "entries": entries}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".store-", suffix=".yml")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(doc, fh, sort_keys=True, allow_unicode=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            logger.error("Cannot write store file %s: %s", self.path, e)
            raise StoreError("写入存储失败", details=str(e)) from e

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def put(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StoreError("存储值必须是字符串")
        with self._lock:
            entries = self._load()
            entries[key] = value
            self._save(entries)

    def delete(self, key: str) -> None:
        with self._lock:
            entries = self._load()
            if entries.pop(key, None) is not None:
                self._save(entries)


def open_store(settings: Settings) -> Optional[KVStore]:
    """Build the backend selected by settings; None means the store is unbound."""
    if settings.store_backend == "memory":
        return MemoryKVStore()
    if settings.store_backend == "yaml":
        return YamlFileKVStore(settings.store_path)
    return None
