# backend/tests/test_storage.py
"""
Tests for the file and SQL storage backends.
"""

import json

import pytest

from magicsell.config import Settings
from magicsell.services.storage import (
    COLLECTIONS,
    FileStorage,
    SqlStorage,
    StorageError,
    build_storage,
)


@pytest.fixture
def sql_storage():
    storage = SqlStorage("sqlite:///:memory:")
    storage.connect()
    return storage


@pytest.fixture(params=["file", "sql"])
def any_storage(request, storage, sql_storage):
    return storage if request.param == "file" else sql_storage


def test_empty_collections(any_storage):
    assert any_storage.load_all() == {name: [] for name in COLLECTIONS}


def test_replace_all_keeps_record_order(any_storage):
    records = [{"id": 3, "shopName": "C"}, {"id": 1, "shopName": "A"}, {"id": 2, "shopName": "B"}]

    any_storage.replace_all("orders", records)

    assert any_storage.get_all("orders") == records


def test_replace_many_replaces_wholesale(any_storage):
    any_storage.replace_many({"orders": [{"id": 1}, {"id": 2}], "customers": [{"id": 1}]})
    any_storage.replace_many({"orders": [{"id": 9}]})

    assert any_storage.get_all("orders") == [{"id": 9}]
    assert any_storage.get_all("customers") == [{"id": 1}]
    assert any_storage.stats()["orders"] == 1


def test_unknown_collection_rejected(any_storage):
    with pytest.raises(ValueError):
        any_storage.get_all("invoices")
    with pytest.raises(ValueError):
        any_storage.replace_many({"invoices": []})


def test_next_id_respects_floor(any_storage):
    assert any_storage.next_id("notifications", floor=1) == 2
    assert any_storage.next_id("notifications", floor=1) == 3
    assert any_storage.next_id("other") == 1


def test_raise_counter_never_lowers(any_storage):
    any_storage.raise_counter("notifications", 5)
    any_storage.raise_counter("notifications", 2)

    assert any_storage.counters() == {"notifications": 5}
    assert any_storage.next_id("notifications", floor=1) == 6


def test_file_storage_writes_dated_backup(storage, tmp_path):
    storage.replace_all("orders", [{"id": 1}])
    storage.replace_all("orders", [{"id": 2}])

    backups = list(tmp_path.glob("data_backup_*.json"))
    assert len(backups) == 1
    assert json.loads(backups[0].read_text())["orders"] == [{"id": 1}]


def test_file_storage_prunes_old_backups(storage, tmp_path):
    for day in range(1, 6):
        (tmp_path / f"data_backup_2023-01-0{day}.json").write_text("{}")
    storage.replace_all("orders", [{"id": 1}])
    storage.replace_all("orders", [{"id": 2}])

    backups = sorted(p.name for p in tmp_path.glob("data_backup_*.json"))
    assert len(backups) == 3
    assert "data_backup_2023-01-01.json" not in backups
    assert "data_backup_2023-01-05.json" in backups


def test_file_storage_unreadable_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{not json")

    with pytest.raises(StorageError):
        FileStorage(path).get_all("orders")


def test_build_storage_falls_back_to_file(tmp_path):
    unreachable = f"sqlite:///{tmp_path}/missing/dir/magicsell.db"
    settings = Settings(data_dir=str(tmp_path), database_url=unreachable)

    storage = build_storage(settings)

    assert storage.name == "file"
    assert storage.path == tmp_path / "data.json"


def test_build_storage_uses_sql_when_reachable(tmp_path):
    settings = Settings(data_dir=str(tmp_path), database_url="sqlite:///:memory:")
    assert build_storage(settings).name == "sql"


def test_production_data_file_name(tmp_path):
    settings = Settings(data_dir=str(tmp_path), environment="production")
    assert settings.data_file.name == "data_production.json"
