import json
import os

import pytest
from rich.console import Console

from embedded_json_db_engine import (
    BackupNotFoundError,
    Database,
    DatabaseConfig,
    IOCorruptionError,
    InvalidFileTypeError,
)

_console = Console(force_terminal=True, color_system="standard")


def progress_printer(evt):
    phase = evt.get("phase", "")
    msg = evt.get("msg", "")
    parts = [phase]
    if msg:
        parts.append(f"- {msg}")
    _console.print(f"[progress] {' '.join(parts)}", highlight=False, markup=False)


def read_file(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def test_rejects_non_json_path(tmp_path):
    with pytest.raises(InvalidFileTypeError, match="is not of JSON format"):
        Database(str(tmp_path / "db.csv"))


def test_missing_file_starts_empty_and_is_created_lazily(tmp_path):
    db_path = tmp_path / "db.json"
    db = Database(str(db_path), on_progress=progress_printer)
    assert db.get_data() == {}
    assert not db_path.exists()

    db.insert("posts", {"id": 1, "title": "LowDB", "views": 100})
    assert db_path.exists()
    assert read_file(db_path) == {"posts": [{"id": 1, "title": "LowDB", "views": 100}]}


def test_reopen_loads_existing_state(tmp_path):
    db_path = tmp_path / "db.json"
    db = Database(str(db_path))
    db.insert("posts", {"id": 1, "title": "A"})
    db.insert("posts", {"id": 2, "title": "B"})
    db.ensure_collection("empty")

    db2 = Database(str(db_path))
    assert db2.list_collections() == ["posts", "empty"]
    assert db2.count("posts") == 2
    assert db2.count("empty") == 0
    assert db2.get_data_collection("posts")[1] == {"id": 2, "title": "B"}


def test_empty_file_is_empty_database(tmp_path):
    db_path = tmp_path / "db.json"
    db_path.write_text("")
    db = Database(str(db_path))
    assert db.list_collections() == []


def test_malformed_file_raises(tmp_path):
    db_path = tmp_path / "db.json"
    db_path.write_text("[1, 2, 3]")
    with pytest.raises(IOCorruptionError):
        Database(str(db_path))

    db_path.write_text("{not json")
    with pytest.raises(IOCorruptionError):
        Database(str(db_path))


def test_pretty_output(tmp_path):
    db_path = tmp_path / "db.json"
    db = Database(str(db_path), pretty=True)
    db.insert("users", {"name": "Alice"})
    text = db_path.read_text(encoding="utf-8")
    assert "\n" in text
    assert json.loads(text) == {"users": [{"name": "Alice"}]}


def test_from_config(tmp_path):
    cfg = DatabaseConfig(file_path=str(tmp_path / "db.json"), auto_commit=False,
                         default_values={"users": {"active": True}})
    db = Database.from_config(cfg)
    assert db.auto_commit is False
    db.insert("users", {"name": "Alice"})
    assert db.get_data_collection("users") == [{"active": True, "name": "Alice"}]
    assert not os.path.exists(cfg.file_path)


def test_manual_commit_defers_writes(tmp_path):
    db_path = tmp_path / "db.json"
    db = Database(str(db_path))
    db.insert("posts", {"id": 1, "title": "A"})
    db.insert("posts", {"id": 2, "title": "B"})

    db.set_auto_commit(False)
    db.insert("posts", {"id": 55, "title": "C"})
    assert db.count("posts") == 3
    assert db.pending

    # The file still holds the last committed state
    db.restore(str(db_path))
    assert db.count("posts") == 2

    db.insert("posts", {"id": 55, "title": "C"})
    db.commit()
    assert not db.pending
    db.restore(str(db_path))
    assert db.count("posts") == 3

    db.set_auto_commit(True)
    db.delete("posts", "id", 55)
    assert len(read_file(db_path)["posts"]) == 2


def test_backup_and_restore_round_trip(tmp_path):
    db_path = tmp_path / "db.json"
    backup_path = tmp_path / "backup" / "snapshot.json"
    db = Database(str(db_path))
    db.bulk_insert("users", [{"name": "Alice", "age": 30}, {"name": "Bob"}])
    db.insert("posts", {"id": 1, "tags": ["a", "b"], "meta": {"draft": False}})

    db.backup(str(backup_path))
    saved = db.get_data()
    assert db.path == str(db_path)

    db.drop_all()
    assert db.get_data() == {}
    assert read_file(db_path) == {}

    db.restore(str(backup_path))
    assert db.get_data() == saved
    # Auto-commit persists the restored state to the backing file
    assert read_file(db_path) == saved


def test_restore_missing_backup(tmp_path):
    db = Database(str(tmp_path / "db.json"))
    with pytest.raises(BackupNotFoundError):
        db.restore(str(tmp_path / "nope.json"))


def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        events.append(evt.get("phase"))

    db = Database(str(tmp_path / "events.json"), on_progress=collect)
    assert "open.done" in events

    events.clear()
    db.insert("users", {"name": "U0"})
    db.update("users", "name", "U0", {"age": 1})
    db.delete("users", "name", "U0")
    assert events == ["insert.done", "update.done", "delete.done"]

    events.clear()
    db.transaction(lambda: db.insert("users", {"name": "U1"}))
    assert events[0] == "transaction.start"
    assert events[-1] == "transaction.commit"


def test_verbose_prints_notices(tmp_path, capsys):
    db = Database(str(tmp_path / "db.json"), verbose=True)
    db.insert("users", {"name": "Alice"})
    assert "Record inserted into 'users'" in capsys.readouterr().err

    db.set_verbose(False)
    db.insert("users", {"name": "Bob"})
    assert capsys.readouterr().err == ""
