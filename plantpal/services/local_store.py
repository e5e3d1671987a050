"""
Persistent local store for plants, growth logs and care notes.

Each collection lives under a single storage key as a JSON-serialized list,
the same layout a browser's localStorage would hold. Two storage backends are
provided:
- FileStorage: one <key>.json file per key in a directory. Writes go to a
  temporary file and are swapped in with os.replace, so each key write is
  atomic.
- MemoryStorage: process-local dict, with an optional byte quota (used by
  tests and by the memory backend setting).

Failure policy:
- Reads never raise. A missing or corrupted value is logged and treated as
  an empty collection; individual records that fail validation are dropped.
- Writes that the backend refuses are logged and re-raised as LocalStoreError
  so callers can report the lost mutation instead of silently dropping it.

There is no transaction across keys. Deleting a plant and cascading to its
growth logs and care notes is three independent writes.
"""

from __future__ import annotations
import json
import os
import tempfile
import threading
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Type, TypeVar

from plantpal.config import config_value
from plantpal.constants import CARE_NOTES_KEY, GROWTH_LOGS_KEY, PLANTS_KEY
from plantpal.models import CareNote, GrowthLog, Plant, Record, parse_records
from plantpal.utils.errors import (
    LocalStoreError,
    RecordNotFound,
    StorageQuotaExceeded,
    StorageWriteError,
    log_error,
    log_warning,
)

T = TypeVar("T", bound=Record)


# ============================================================================
# Storage backends
# ============================================================================

class Storage:
    """Minimal string key-value interface (getItem/setItem/removeItem)."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryStorage(Storage):
    """
    Dict-backed storage.

    Args:
        quota_bytes: Optional cap on the total UTF-8 size of all stored values.
            A write that would exceed it raises StorageQuotaExceeded and leaves
            the previous value in place.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Storage quota of {self.quota_bytes} bytes exceeded writing '{key}'"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class FileStorage(Storage):
    """One JSON file per key inside ``directory`` (created on first write)."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        # Keys are fixed constants; basename() keeps a stray separator out of the path
        return os.path.join(self.directory, f"{os.path.basename(key)}.json")

    def get_item(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_path, self._path(key))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageWriteError(f"Could not write '{key}' to {self.directory}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            os.unlink(self._path(key))
        except FileNotFoundError:
            pass

    def keys(self) -> List[str]:
        if not os.path.isdir(self.directory):
            return []
        return sorted(
            name[: -len(".json")]
            for name in os.listdir(self.directory)
            if name.endswith(".json") and not name.startswith(".")
        )


# ============================================================================
# Collections
# ============================================================================

class LocalCollection(Generic[T]):
    """
    One entity collection stored as a JSON list under a single key.

    Read-modify-write operations (upsert, update, delete_*) hold a
    per-collection lock so threads sharing a store do not lose each other's
    writes. Plain reads do not lock.
    """

    def __init__(self, storage: Storage, key: str, model: Type[T]):
        self.storage = storage
        self.key = key
        self.model = model
        self._lock = threading.RLock()

    def __iter__(self) -> Iterator[T]:
        return iter(self.read_all())

    def read_all(self) -> List[T]:
        """Return the stored collection, or [] if absent or corrupted."""
        try:
            raw = self.storage.get_item(self.key)
        except Exception as e:
            log_warning("Error loading local collection", key=self.key, error=e)
            return []

        if raw is None:
            return []

        try:
            items = json.loads(raw)
        except ValueError as e:
            log_warning("Corrupted local collection treated as empty", key=self.key, error=e)
            return []

        if not isinstance(items, list):
            log_warning("Local collection is not a list, treated as empty", key=self.key)
            return []

        return parse_records(self.model, items, source=f"local:{self.key}")

    def write_all(self, items: Iterable[T]) -> None:
        """
        Overwrite the stored collection with a single key write.

        Raises:
            LocalStoreError: if the backend refuses the write (quota exceeded,
                read-only directory, ...). The failure is logged first.
        """
        payload = json.dumps([item.to_wire() for item in items])
        try:
            self.storage.set_item(self.key, payload)
        except StorageWriteError as e:
            log_error("Error saving local collection", key=self.key, error=e)
            raise LocalStoreError(f"Could not save {self.key}: {e}", key=self.key) from e

    def get(self, record_id: str) -> Optional[T]:
        for item in self.read_all():
            if item.id == record_id:
                return item
        return None

    def filter_by(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self.read_all() if predicate(item)]

    def upsert(self, item: T) -> T:
        """Replace the entry with the same id, or append it."""
        with self._lock:
            items = self.read_all()
            for index, existing in enumerate(items):
                if existing.id == item.id:
                    items[index] = item
                    break
            else:
                items.append(item)
            self.write_all(items)
        return item

    def update(self, record_id: str, changes: Mapping[str, Any]) -> T:
        """
        Shallow-merge ``changes`` over the stored record and persist it.

        Raises:
            RecordNotFound: if no record has ``record_id``
            RecordValidationError: if the merged record is not valid
            LocalStoreError: if the write fails
        """
        with self._lock:
            items = self.read_all()
            for index, existing in enumerate(items):
                if existing.id == record_id:
                    items[index] = existing.merged(changes)
                    self.write_all(items)
                    return items[index]
        raise RecordNotFound(self.model.__name__, record_id)

    def delete_by_id(self, record_id: str) -> bool:
        """Remove the matching record. Returns whether anything was removed."""
        with self._lock:
            items = self.read_all()
            remaining = [item for item in items if item.id != record_id]
            if len(remaining) == len(items):
                return False
            self.write_all(remaining)
            return True

    def delete_where(self, predicate: Callable[[T], bool]) -> int:
        """Remove every record matching ``predicate``. Returns the removed count."""
        with self._lock:
            items = self.read_all()
            remaining = [item for item in items if not predicate(item)]
            removed = len(items) - len(remaining)
            if removed:
                self.write_all(remaining)
            return removed


class LocalStore:
    """The three PlantPal collections over one storage backend."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.plants: LocalCollection[Plant] = LocalCollection(storage, PLANTS_KEY, Plant)
        self.growth_logs: LocalCollection[GrowthLog] = LocalCollection(storage, GROWTH_LOGS_KEY, GrowthLog)
        self.care_notes: LocalCollection[CareNote] = LocalCollection(storage, CARE_NOTES_KEY, CareNote)

    def delete_plant_cascade(self, plant_id: str) -> bool:
        """
        Delete a plant and every growth log and care note that references it.

        Dependents are cleaned up even when the plant itself was already gone
        locally, so a remote delete always leaves no local orphans.
        """
        removed = self.plants.delete_by_id(plant_id)
        self.growth_logs.delete_where(lambda log: log.plant_id == plant_id)
        self.care_notes.delete_where(lambda note: note.plant_id == plant_id)
        return removed

    def seed(
        self,
        plants: Iterable[Mapping[str, Any]] = (),
        growth_logs: Iterable[Mapping[str, Any]] = (),
        care_notes: Iterable[Mapping[str, Any]] = (),
    ) -> Dict[str, bool]:
        """
        Populate each collection only if its key has never been written.
        A key the backend cannot read is logged and skipped, never overwritten.

        Returns:
            {storage_key: seeded} for each collection
        """
        result = {}
        for collection, raw_items in (
            (self.plants, plants),
            (self.growth_logs, growth_logs),
            (self.care_notes, care_notes),
        ):
            try:
                existing = self.storage.get_item(collection.key)
            except Exception as e:
                log_warning("Error checking local collection before seeding", key=collection.key, error=e)
                result[collection.key] = False
                continue
            if existing is not None:
                result[collection.key] = False
                continue
            records = parse_records(collection.model, raw_items, source="seed")
            collection.write_all(records)
            result[collection.key] = True
        return result

    def clear(self) -> None:
        for collection in (self.plants, self.growth_logs, self.care_notes):
            self.storage.remove_item(collection.key)


def create_storage(config) -> Storage:
    """Build the storage backend named by STORAGE_BACKEND in ``config``."""
    backend = (config_value(config, "STORAGE_BACKEND", "file") or "file").lower()
    if backend == "memory":
        return MemoryStorage(quota_bytes=config_value(config, "STORAGE_QUOTA_BYTES"))
    if backend == "file":
        return FileStorage(config_value(config, "STORAGE_DIR"))
    raise ValueError(f"Unknown storage backend: {backend}. Available: ['file', 'memory']")
