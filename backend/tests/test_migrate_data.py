# backend/tests/test_migrate_data.py
"""
Tests for copying the JSON data file into SQL storage.
"""

import pytest

from magicsell.scripts.migrate_data import migrate
from magicsell.services.storage import SqlStorage


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'magicsell.db'}"


def test_migrate_copies_collections_and_counters(storage, database_url):
    storage.replace_many({
        "orders": [{"id": 1, "shopName": "A"}],
        "notifications": [{"id": 3, "message": "b"}, {"id": 2, "message": "a"}],
    })
    storage.next_id("notifications", floor=2)

    migrated = migrate(storage.path, database_url)

    target = SqlStorage(database_url)
    assert migrated["orders"] == 1
    assert migrated["notifications"] == 2
    assert target.get_all("notifications")[0] == {"id": 3, "message": "b"}
    assert target.next_id("notifications", floor=1) == 4


def test_migrate_backs_up_existing_sql_data(storage, database_url, tmp_path):
    storage.replace_many({"orders": [{"id": 1, "shopName": "A"}]})
    existing = SqlStorage(database_url)
    existing.connect()
    existing.replace_many({"orders": [{"id": 9, "shopName": "Old"}]})

    migrate(storage.path, database_url)

    assert list(tmp_path.glob("sql_backup_*.json"))
    assert [o["id"] for o in existing.get_all("orders")] == [1]


def test_migrate_requires_source(tmp_path, database_url):
    with pytest.raises(FileNotFoundError):
        migrate(tmp_path / "missing.json", database_url)
