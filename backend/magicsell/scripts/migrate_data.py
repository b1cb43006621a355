"""
Data Migration

Copies every collection and id counter from a JSON data file into the SQL
store configured by DATABASE_URL, then verifies the record counts. The SQL contents are backed up
to a dated JSON file first when it already holds data.

Run with: python -m magicsell.scripts.migrate_data [--source data.json]
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from magicsell.config import get_settings
from magicsell.core.log_config import configure_logging
from magicsell.services.storage import COLLECTIONS, FileStorage, SqlStorage, StorageError


def counts(data):
    return {name: len(data.get(name) or []) for name in COLLECTIONS}


def migrate(source: Path, database_url: str) -> dict:
    """Copy the file store into SQL storage; returns the migrated counts."""
    if not source.exists():
        raise FileNotFoundError(f"Source data file not found: {source}")

    source_store = FileStorage(source)
    data = source_store.load_all()
    source_counters = source_store.counters()
    print(f"Source data loaded: {counts(data)}")

    target = SqlStorage(database_url)
    target.connect()

    existing = target.load_all()
    if any(existing.values()):
        backup = source.with_name(f"sql_backup_{date.today().isoformat()}.json")
        with backup.open("w", encoding="utf-8") as f:
            json.dump(existing, f, indent=2)
        print(f"Existing SQL data backed up to: {backup}")

    target.replace_many(data)
    for name, value in source_counters.items():
        target.raise_counter(name, value)

    migrated = counts(target.load_all())
    if migrated != counts(data):
        raise StorageError(f"Verification failed: expected {counts(data)}, found {migrated}")
    target_counters = target.counters()
    behind = {name: value for name, value in source_counters.items() if target_counters.get(name, 0) < value}
    if behind:
        raise StorageError(f"Verification failed: counters not migrated: {behind}")
    print(f"Migration verification: {migrated}, counters: {source_counters}")
    return migrated


def main():
    """Main entry point."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Copy the JSON data file into SQL storage")
    parser.add_argument("--source", type=Path, default=settings.data_file)
    parser.add_argument("--database-url", default=settings.database_url)
    args = parser.parse_args()

    configure_logging(settings)
    if not args.database_url:
        print("DATABASE_URL is not set; nothing to migrate to")
        sys.exit(1)

    try:
        migrate(args.source, args.database_url)
    except (FileNotFoundError, StorageError) as e:
        print(f"Migration failed: {e}")
        sys.exit(1)
    print("Data migration completed successfully")


if __name__ == "__main__":
    main()
