import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tablekv.app import create_app
from tablekv.infra.kv_store import MemoryKVStore, YamlFileKVStore
from tablekv.settings import Settings

SECRET = "test-signing-secret"


@pytest.fixture()
def memory_store() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture()
def yaml_store(tmp_path: Path) -> YamlFileKVStore:
    return YamlFileKVStore(tmp_path / "data" / "store.yml")


@pytest.fixture()
def settings() -> Settings:
    return Settings(jwt_secret=SECRET, store_backend="memory")


@pytest.fixture()
def client(settings, memory_store) -> TestClient:
    return TestClient(create_app(settings, store=memory_store))


@pytest.fixture()
def token(client) -> str:
    """Log in once on the empty store (which registers the admin) and return the token."""
    r = client.post("/api/auth/login", json={"username": "admin", "password": "secret1"})
    assert r.status_code == 200
    return r.json()["token"]


@pytest.fixture()
def auth_headers(token) -> dict:
    return {"Authorization": f"Bearer {token}"}
