import json
import logging

import pytest
from fastapi.testclient import TestClient

from tablekv.app import create_app
from tablekv.core.observability import JSONFormatter, setup_logging
from tablekv.settings import Settings, load_settings


def test_load_settings_from_env(tmp_path, monkeypatch):
    monkeypatch.delenv("TABLEKV_JWT_SECRET", raising=False)
    monkeypatch.setenv("JWT_SECRET", "fallback-secret")
    monkeypatch.setenv("TABLEKV_STORE", "Memory")
    monkeypatch.setenv("TABLEKV_STORE_PATH", str(tmp_path / "s.yml"))
    monkeypatch.setenv("TABLEKV_ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("TABLEKV_TOKEN_TTL", "600")
    monkeypatch.setenv("TABLEKV_RELOAD", "yes")

    s = load_settings()
    assert s.jwt_secret == "fallback-secret"
    assert s.store_backend == "memory"
    assert s.store_path == (tmp_path / "s.yml").resolve()
    assert s.allowed_origins == ("https://a.example", "https://b.example")
    assert s.token_ttl == 600
    assert s.reload is True

    monkeypatch.setenv("TABLEKV_JWT_SECRET", "primary-secret")
    assert load_settings().jwt_secret == "primary-secret"


def test_load_settings_rejects_unknown_backend(monkeypatch):
    monkeypatch.setenv("TABLEKV_STORE", "redis")
    with pytest.raises(ValueError):
        load_settings()


def test_token_ttl_setting_is_used(memory_store):
    c = TestClient(create_app(Settings(jwt_secret="s", token_ttl=60), store=memory_store))
    body = c.post("/api/auth/login", json={"username": "admin", "password": "secret1"}).json()
    assert body["expiresIn"] == 60


def test_json_formatter_includes_extras():
    record = logging.LogRecord("tablekv.test", logging.INFO, __file__, 1, "saved %d rows", (3,), None)
    record.page_id = "42"
    out = json.loads(JSONFormatter().format(record))
    assert out["message"] == "saved 3 rows"
    assert out["level"] == "INFO"
    assert out["page_id"] == "42"


def test_setup_logging_replaces_its_own_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("WARNING", "text")
        ours = [h for h in root.handlers if h.get_name() == "tablekv"]
        assert len(ours) == 1
        assert root.level == logging.WARNING
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)


def test_lifespan_configures_logging(memory_store):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        with TestClient(create_app(Settings(jwt_secret="s", log_format="json"), store=memory_store)) as c:
            assert c.options("/api/config").status_code == 200
            assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers if h.get_name() == "tablekv")
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)
