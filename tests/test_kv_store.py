import pytest

from tablekv.core.errors import StoreError, ValidationError
from tablekv.core.keys import config_key, identity_key, records_key
from tablekv.infra.kv_store import MemoryKVStore, YamlFileKVStore, open_store
from tablekv.settings import Settings


def test_key_layout():
    assert identity_key() == "admin"
    assert config_key() == "app:config"
    assert records_key("admin", "1700000000000") == "records:admin:1700000000000"


def test_key_spaces_do_not_collide():
    keys = {identity_key(), config_key(), records_key("admin", "config"), records_key("app", "config")}
    assert len(keys) == 4


@pytest.mark.parametrize("username,page_id", [("", "1"), ("admin", ""), ("ad:min", "1"), ("admin", "a:b")])
def test_records_key_rejects_bad_parts(username, page_id):
    with pytest.raises(ValidationError):
        records_key(username, page_id)


def test_memory_store_basic_ops():
    s = MemoryKVStore()
    assert s.get("k") is None
    s.put("k", "v1")
    s.put("k", "v2")
    assert s.get("k") == "v2"
    s.delete("k")
    assert s.get("k") is None


def test_yaml_store_persists_across_instances(tmp_path):
    path = tmp_path / "data" / "store.yml"
    YamlFileKVStore(path).put("app:config", '{"pages": []}')
    YamlFileKVStore(path).put("records:admin:1", '[["中文", "b"]]')

    reopened = YamlFileKVStore(path)
    assert reopened.get("app:config") == '{"pages": []}'
    assert reopened.get("records:admin:1") == '[["中文", "b"]]'
    assert reopened.get("missing") is None
    # no temp files left behind
    assert [p.name for p in path.parent.iterdir()] == ["store.yml"]


def test_yaml_store_delete(yaml_store):
    yaml_store.put("a", "1")
    yaml_store.delete("a")
    yaml_store.delete("never-there")
    assert yaml_store.get("a") is None


def test_yaml_store_unreadable_file_is_store_error(tmp_path):
    path = tmp_path / "store.yml"
    path.write_text("entries: [unclosed", encoding="utf-8")
    with pytest.raises(StoreError):
        YamlFileKVStore(path).get("admin")

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(StoreError):
        YamlFileKVStore(path).get("admin")


def test_open_store_by_backend(tmp_path):
    assert isinstance(open_store(Settings(store_backend="memory")), MemoryKVStore)
    yaml_backed = open_store(Settings(store_backend="yaml", store_path=tmp_path / "s.yml"))
    assert isinstance(yaml_backed, YamlFileKVStore)
    assert open_store(Settings(store_backend="none")) is None
