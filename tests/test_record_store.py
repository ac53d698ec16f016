import hashlib
import json
import os

import pytest

from labelizer.errors import FileWriteError, RecordParseError
from labelizer.record_store import DEFAULT_RECORD_PATH, RecordStore


def _h(data: bytes) -> str:
    return hashlib.sha512(data).hexdigest()


def test_missing_record_file_loads_empty(tmp_path):
    store = RecordStore(str(tmp_path / "labeled.json"))
    assert not store.loaded
    assert len(store) == 0
    assert store.loaded
    assert not (tmp_path / "labeled.json").exists()


def test_add_then_contains_and_idempotent(tmp_path):
    store = RecordStore(str(tmp_path / "labeled.json"))
    h = _h(b"alpha")
    store.add(h)
    assert store.contains(h)
    assert h in store
    store.add(h)
    assert len(store) == 1
    assert not store.contains(_h(b"beta"))


def test_persist_then_fresh_load_round_trips(tmp_path):
    path = str(tmp_path / "labeled.json")
    store = RecordStore(path)
    for data in (b"one", b"two", b"three"):
        store.add(_h(data))
    store.persist()

    reloaded = RecordStore(path)
    assert set(reloaded.hashes()) == set(store.hashes())


def test_persist_is_indented_array_in_insertion_order(tmp_path):
    path = tmp_path / "labeled.json"
    path.write_text(json.dumps(["b", "a"]), encoding="utf-8")
    store = RecordStore(str(path))
    store.add("c")
    store.add("a")
    store.persist()
    assert path.read_text(encoding="utf-8") == json.dumps(["b", "a", "c"], indent=2)


def test_load_happens_once(tmp_path):
    path = tmp_path / "labeled.json"
    path.write_text('["x"]', encoding="utf-8")
    store = RecordStore(str(path))
    assert store.contains("x")
    path.write_text('["y"]', encoding="utf-8")
    store.load()
    assert store.contains("x")
    assert not store.contains("y")


def test_invalid_json_raises_parse_error(tmp_path):
    path = tmp_path / "labeled.json"
    path.write_text("[not json", encoding="utf-8")
    store = RecordStore(str(path))
    with pytest.raises(RecordParseError) as exc:
        store.contains("anything")
    assert exc.value.path == str(path)
    assert isinstance(exc.value.__cause__, json.JSONDecodeError)


def test_non_array_record_raises_parse_error(tmp_path):
    path = tmp_path / "labeled.json"
    path.write_text('{"seen": []}', encoding="utf-8")
    with pytest.raises(RecordParseError):
        RecordStore(str(path)).load()


def test_write_failure_raises_file_write_error(tmp_path):
    path = tmp_path / "labeled.json"
    store = RecordStore(str(path))
    store.add("x")
    os.mkdir(path)
    with pytest.raises(FileWriteError) as exc:
        store.persist()
    assert isinstance(exc.value.__cause__, OSError)


def test_default_record_lives_next_to_package():
    assert DEFAULT_RECORD_PATH.endswith(os.path.join("labelizer", "labeled.json"))


def test_invalid_utf8_raises_parse_error(tmp_path):
    path = tmp_path / "labeled.json"
    path.write_bytes(b'["\xff\xfe"]')
    with pytest.raises(RecordParseError) as exc:
        RecordStore(str(path)).load()
    assert isinstance(exc.value.__cause__, UnicodeDecodeError)
