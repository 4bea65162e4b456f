import pytest

from embedded_json_db_engine.errors import (
    CollectionNotFoundError,
    KeyNotFoundError,
    ValidationError,
)
from embedded_json_db_engine.query import compare
from embedded_json_db_engine.store import RecordStore, merge_defaults


def test_ensure_collection_is_idempotent():
    store = RecordStore()
    assert store.ensure_collection("users") is True
    store.insert("users", {"name": "Alice"})
    assert store.ensure_collection("users") is False
    assert store.collections == {"users": [{"name": "Alice"}]}
    with pytest.raises(ValidationError):
        store.ensure_collection("")


def test_find_indices():
    store = RecordStore()
    with pytest.raises(CollectionNotFoundError):
        store.find_indices("posts", "id", 1)

    store.bulk_insert("posts", [{"id": 1}, {"title": "no id"}, {"id": 1.0}, {"id": "1"}, {"id": 2}])
    assert store.find_indices("posts", "id", 1) == [0, 2, 3]
    assert store.find_indices("posts", "id", 3) == []
    with pytest.raises(KeyNotFoundError):
        store.find_indices("posts", "author", "x")


def test_insert_stores_a_copy():
    store = RecordStore()
    rec = {"tags": ["a"]}
    store.insert("posts", rec)
    rec["tags"].append("b")
    assert store.collections["posts"] == [{"tags": ["a"]}]


def test_snapshot_is_deep():
    store = RecordStore()
    store.insert("posts", {"tags": ["a"]})
    snap = store.snapshot()
    store.update("posts", "tags", ["a"], {"tags": ["b"]})
    assert snap == {"posts": [{"tags": ["a"]}]}
    store.load(snap)
    assert store.collections["posts"] == [{"tags": ["a"]}]


def test_merge_defaults():
    assert merge_defaults({"active": True, "role": "guest"}, {"role": "admin"}) == {"active": True, "role": "admin"}
    assert list(merge_defaults({"active": True}, {"id": 1})) == ["active", "id"]


def test_compare_semantics():
    assert compare("==", 1, 1.0)
    assert compare("==", "2", 2)
    assert compare("!=", "a", "b")
    assert compare("==", True, True)
    assert not compare("==", True, 1)
    assert compare("==", None, None)
    assert compare("==", [1, 2], [1, 2])
    assert compare(">", "b", "a")
    with pytest.raises(TypeError):
        compare(">", None, 1)
