"""
Storage backends.

Every logical collection is read whole and replaced whole. Two backends:
- SqlStorage: SQLAlchemy tables, one transaction per replacement batch
- FileStorage: a single JSON document with dated backups, used when no
  database is configured or reachable
"""

from typing import Any, Dict, List, Optional, Sequence
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
import json
import logging
import os
import shutil

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from magicsell.config import Settings
from magicsell.core.database import Base, make_engine, make_session_factory
from magicsell.models.record import CollectionRecord, Counter

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "orders",
    "customers",
    "dailySales",
    "weeklySales",
    "predictions",
    "reports",
    "notifications",
)

Record = Dict[str, Any]


class StorageError(Exception):
    """Storage unreachable or a write was rejected."""


def check_collection(name: str) -> None:
    if name not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {name}")


class StorageBackend(ABC):
    name = "abstract"

    @abstractmethod
    def connect(self) -> None:
        """Prepare the backend; raises StorageError when unusable."""

    @abstractmethod
    def get_all(self, collection: str) -> List[Record]:
        ...

    @abstractmethod
    def replace_many(self, collections: Dict[str, Sequence[Record]]) -> None:
        """Replace several collections, in the given order, as one write."""

    @abstractmethod
    def next_id(self, name: str, floor: int = 0) -> int:
        """Increment and return the counter ``name``, never below floor + 1."""

    @abstractmethod
    def counters(self) -> Dict[str, int]:
        ...

    def raise_counter(self, name: str, value: int) -> None:
        """Move counter ``name`` up to at least value; never lowers it."""
        current = self.counters().get(name, 0)
        if value > current:
            self.next_id(name, floor=value - 1)

    def replace_all(self, collection: str, records: Sequence[Record]) -> None:
        self.replace_many({collection: records})

    def load_all(self) -> Dict[str, List[Record]]:
        return {name: self.get_all(name) for name in COLLECTIONS}

    def stats(self) -> Dict[str, int]:
        return {name: len(self.get_all(name)) for name in COLLECTIONS}


class SqlStorage(StorageBackend):
    name = "sql"

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = make_engine(database_url, echo=echo)
        self.SessionLocal = make_session_factory(self.engine)

    def connect(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageError(f"Database unreachable: {e}") from e

    def get_all(self, collection: str) -> List[Record]:
        check_collection(collection)
        try:
            with self.SessionLocal() as db:
                rows = db.query(CollectionRecord).filter(
                    CollectionRecord.collection == collection
                ).order_by(CollectionRecord.position).all()
                return [dict(row.payload) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Error reading {collection}: {e}") from e

    def replace_many(self, collections: Dict[str, Sequence[Record]]) -> None:
        for name in collections:
            check_collection(name)

        db = self.SessionLocal()
        try:
            for name, records in collections.items():
                db.query(CollectionRecord).filter(
                    CollectionRecord.collection == name
                ).delete()
                db.add_all([
                    CollectionRecord(collection=name, position=position, payload=record)
                    for position, record in enumerate(records)
                ])
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Error saving {', '.join(collections)}: {e}") from e
        finally:
            db.close()

    def next_id(self, name: str, floor: int = 0) -> int:
        db = self.SessionLocal()
        try:
            counter = db.query(Counter).filter(Counter.name == name).first()
            if not counter:
                counter = Counter(name=name, value=0)
                db.add(counter)
            counter.value = max(counter.value or 0, floor) + 1
            value = counter.value
            db.commit()
            return value
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Error incrementing counter {name}: {e}") from e
        finally:
            db.close()

    def counters(self) -> Dict[str, int]:
        try:
            with self.SessionLocal() as db:
                return {c.name: c.value or 0 for c in db.query(Counter).all()}
        except SQLAlchemyError as e:
            raise StorageError(f"Error reading counters: {e}") from e


class FileStorage(StorageBackend):
    name = "file"

    COUNTERS_KEY = "counters"

    def __init__(self, path: Path, backup_retention: int = 5):
        self.path = Path(path)
        self.backup_retention = backup_retention

    def connect(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Data directory unusable: {e}") from e

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Error reading {self.path}: {e}") from e

    def _backup_name(self, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self.path.with_name(f"{self.path.stem}_backup_{day.isoformat()}{self.path.suffix}")

    def _prune_backups(self) -> None:
        backups = sorted(
            self.path.parent.glob(f"{self.path.stem}_backup_*{self.path.suffix}"),
            reverse=True,
        )
        for old in backups[self.backup_retention:]:
            old.unlink()
            logger.info(f"Old backup removed: {old.name}")

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            if self.path.exists():
                shutil.copyfile(self.path, self._backup_name())

            tmp = self.path.with_name(self.path.name + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)

            self._prune_backups()
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Error saving {self.path}: {e}") from e

    def get_all(self, collection: str) -> List[Record]:
        check_collection(collection)
        return list(self._read().get(collection) or [])

    def replace_many(self, collections: Dict[str, Sequence[Record]]) -> None:
        for name in collections:
            check_collection(name)
        data = self._read()
        for name, records in collections.items():
            data[name] = list(records)
        self._write(data)

    def next_id(self, name: str, floor: int = 0) -> int:
        data = self._read()
        counters = data.setdefault(self.COUNTERS_KEY, {})
        value = max(counters.get(name, 0), floor) + 1
        counters[name] = value
        self._write(data)
        return value

    def counters(self) -> Dict[str, int]:
        return dict(self._read().get(self.COUNTERS_KEY) or {})


def build_storage(settings: Settings) -> StorageBackend:
    """SQL storage when configured and reachable, otherwise the JSON file."""
    if settings.database_url:
        storage = SqlStorage(settings.database_url, echo=settings.debug)
        try:
            storage.connect()
            logger.info("Connected to SQL storage")
            return storage
        except StorageError as e:
            logger.warning(f"SQL storage unavailable, using file-based storage: {e}")

    storage = FileStorage(settings.data_file, settings.backup_retention)
    storage.connect()
    logger.info(f"Using data file: {storage.path}")
    return storage
