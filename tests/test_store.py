import json

import pytest

from localdb import InvalidTableName, TableStore
from localdb.store import CORRUPT, LOADED, MISSING


def test_resolve_path_maps_name_to_json_file(store):
    assert store.resolve_path("users") == store.data_dir / "users.json"
    assert store.resolve_path("group-stats_2") == store.data_dir / "group-stats_2.json"


@pytest.mark.parametrize(
    "name", ["", "../users", "a/b", "a\\b", "users.json", "..", "sp ace", "users\n", "Users"]
)
def test_resolve_path_rejects_unsafe_names(store, name):
    with pytest.raises(InvalidTableName):
        store.resolve_path(name)


def test_trailing_newline_name_creates_no_file(store):
    with pytest.raises(InvalidTableName):
        store.set("users\n", "u1", {"a": 1})
    assert list(store.data_dir.iterdir()) == []


def test_mixed_case_name_cannot_shadow_lowercase_table(store):
    store.set("users", "u1", {"a": 1})
    with pytest.raises(InvalidTableName):
        store.set("Users", "u1", {"a": 2})
    assert store.tables() == ["users"]
    assert store.get("users", "u1") == {"a": 1}


def test_invalid_table_name_is_value_error(store):
    with pytest.raises(ValueError):
        store.get("../etc", "k")


def test_data_dir_is_created(tmp_path):
    target = tmp_path / "nested" / "data"
    TableStore(target)
    assert target.is_dir()


def test_data_dir_failure_propagates(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        TableStore(blocker / "data")


def test_read_table_missing(store):
    result = store.read_table("users")
    assert result.status == MISSING
    assert result.data == {}
    assert not result.ok


def test_read_table_loaded(store):
    store.resolve_path("users").write_text(json.dumps({"u1": {"balance": 3}}), encoding="utf-8")
    result = store.read_table("users")
    assert result.ok
    assert result.status == LOADED
    assert result.data == {"u1": {"balance": 3}}


def test_read_table_corrupt(store):
    store.resolve_path("users").write_text("{not json", encoding="utf-8")
    result = store.read_table("users")
    assert result.status == CORRUPT
    assert result.data == {}
    assert result.error is not None


def test_read_table_non_object_is_corrupt(store):
    store.resolve_path("users").write_text("[1, 2, 3]", encoding="utf-8")
    assert store.read_table("users").status == CORRUPT


def test_corrupt_table_loads_empty(store):
    store.resolve_path("users").write_text("garbage", encoding="utf-8")
    assert store.load_table("users") == {}
    assert store.get("users", "u1") is None


def test_load_table_is_cached(store):
    path = store.resolve_path("users")
    path.write_text(json.dumps({"u1": 1}), encoding="utf-8")
    first = store.load_table("users")
    path.write_text(json.dumps({"u1": 2}), encoding="utf-8")
    assert store.load_table("users") is first
    assert store.get("users", "u1") == 1


def test_tables_lists_loaded_tables(store):
    assert store.tables() == []
    store.get("users", "u1")
    store.get_all("warns")
    assert sorted(store.tables()) == ["users", "warns"]


def test_flush_writes_pretty_json(slow_store):
    store = slow_store
    store.set("users", "u1", {"name": "Zoë", "balance": 10})
    assert store.is_dirty("users")
    assert store.flush("users") is True
    assert not store.is_dirty("users")

    text = store.resolve_path("users").read_text(encoding="utf-8")
    assert "Zoë" in text
    assert '\n  "u1": {' in text
    assert json.loads(text) == {"u1": {"name": "Zoë", "balance": 10}}


def test_flush_leaves_no_temp_files(store):
    store.set("users", "u1", {"a": 1})
    store.flush("users")
    assert [p.name for p in store.data_dir.iterdir()] == ["users.json"]


def test_flush_of_unknown_table_is_noop(store):
    assert store.flush("users") is True
    assert not store.resolve_path("users").exists()


def test_flush_failure_is_swallowed_and_reported(tmp_path):
    errors = []
    store = TableStore(tmp_path, write_delay=60, on_error=lambda name, exc: errors.append((name, exc)))
    store.set("users", "u1", {"bad": object()})

    assert store.flush("users") is False
    assert store.is_dirty("users")
    assert len(errors) == 1
    assert errors[0][0] == "users"
    assert isinstance(errors[0][1], TypeError)
    assert not store.resolve_path("users").exists()
    store.scheduler.cancel("users")


def test_failed_table_is_retried_by_flush_all(tmp_path):
    store = TableStore(tmp_path, write_delay=60)
    store.set("users", "u1", {"bad": object()})
    store.flush("users")
    store.scheduler.cancel("users")

    store.set("users", "u1", {"bad": 1})
    store.scheduler.cancel("users")
    assert store.flush_all() == ["users"]
    assert json.loads(store.resolve_path("users").read_text(encoding="utf-8")) == {"u1": {"bad": 1}}


def test_error_hook_failure_does_not_escape(tmp_path):
    def hook(name, exc):
        raise RuntimeError("hook broke")

    store = TableStore(tmp_path, write_delay=60, on_error=hook)
    store.set("users", "u1", {"bad": object()})
    assert store.flush("users") is False
    store.scheduler.cancel("users")


def test_context_manager_flushes(tmp_path):
    with TableStore(tmp_path, write_delay=60) as store:
        store.set("users", "u1", {"a": 1})
    assert json.loads((tmp_path / "users.json").read_text(encoding="utf-8")) == {"u1": {"a": 1}}
