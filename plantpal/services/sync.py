"""
Synchronization facade: one read/write surface over the remote API and the
local store.

Every operation tries the remote API first.
- Reads: on success the remote result is returned as-is (reads are not
  mirrored); on any ApiError the local collection is returned instead. Reads
  never raise.
- Writes: on success the server-returned record is mirrored into the local
  store and returned; on any ApiError the same mutation is applied to the
  local store (ids generated locally for adds) and that result is returned.

The caller cannot tell a server-backed result from a local-only one. Data
written locally during an outage is never replayed against the API once it
comes back; the two sides simply diverge until the user edits again.

Failure paths that reach the caller:
- the data does not form a valid record (RecordValidationError). Adds are
  built and validated locally and updates are type-checked per field before
  the API is called, so nothing invalid reaches the server or the store.
- remote failed AND the local write failed (LocalStoreError), or the local
  fallback targeted a record that does not exist (RecordNotFound).
A mirror write that fails after a remote success is reported through the
``on_write_error`` callback and logged, but the server result is returned.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, List, Mapping, Optional

from plantpal.config import config_value
from plantpal.models import CareNote, GrowthLog, Plant
from plantpal.services.api_client import DEFAULT_TIMEOUT_SECONDS, ApiClient
from plantpal.services.local_store import LocalStore, create_storage
from plantpal.utils.errors import ApiError, LocalStoreError, log_error, log_warning

logger = logging.getLogger(__name__)

WriteErrorHandler = Callable[[str, LocalStoreError], None]


def _default_write_error_handler(operation: str, error: LocalStoreError) -> None:
    log_error("Local mirror write failed; device copy is out of date", operation=operation, key=error.key)


class SyncService:
    """
    API-first data access with local-storage fallback.

    Args:
        api: Remote gateway
        store: Local store holding the three collections
        on_write_error: Called with (operation, error) when mirroring a
            successful remote write into local storage fails
    """

    def __init__(
        self,
        api: ApiClient,
        store: LocalStore,
        on_write_error: Optional[WriteErrorHandler] = None,
    ):
        self.api = api
        self.store = store
        self.on_write_error = on_write_error or _default_write_error_handler

    def _fallback(self, operation: str, error: ApiError) -> None:
        log_warning(
            "Remote call failed, using local store",
            operation=operation,
            error_type=type(error).__name__,
            error=error.message,
        )

    def _mirror(self, operation: str, write: Callable[[], Any]) -> None:
        try:
            write()
        except LocalStoreError as e:
            self.on_write_error(operation, e)

    # ------------------------------------------------------------------
    # Plants
    # ------------------------------------------------------------------

    def get_plants(self) -> List[Plant]:
        try:
            return self.api.list_plants()
        except ApiError as e:
            self._fallback("get_plants", e)
            return self.store.plants.read_all()

    def add_plant(self, data: Mapping[str, Any]) -> Plant:
        record = Plant.create(data)
        try:
            plant = self.api.create_plant(record.to_wire())
        except ApiError as e:
            self._fallback("add_plant", e)
            return self.store.plants.upsert(record)
        self._mirror("add_plant", lambda: self.store.plants.upsert(plant))
        return plant

    def update_plant(self, plant_id: str, changes: Mapping[str, Any]) -> Plant:
        Plant.check_changes(changes)
        try:
            plant = self.api.update_plant(plant_id, changes)
        except ApiError as e:
            self._fallback("update_plant", e)
            return self.store.plants.update(plant_id, changes)
        self._mirror("update_plant", lambda: self.store.plants.upsert(plant))
        return plant

    def delete_plant(self, plant_id: str) -> bool:
        """Delete a plant and cascade to its growth logs and care notes."""
        try:
            self.api.delete_plant(plant_id)
        except ApiError as e:
            self._fallback("delete_plant", e)
            return self.store.delete_plant_cascade(plant_id)
        self._mirror("delete_plant", lambda: self.store.delete_plant_cascade(plant_id))
        return True

    def get_plant_by_id(self, plant_id: str) -> Optional[Plant]:
        return next((p for p in self.get_plants() if p.id == plant_id), None)

    # ------------------------------------------------------------------
    # Growth logs
    # ------------------------------------------------------------------

    def get_growth_logs(self) -> List[GrowthLog]:
        try:
            return self.api.list_growth_logs()
        except ApiError as e:
            self._fallback("get_growth_logs", e)
            return self.store.growth_logs.read_all()

    def get_growth_logs_by_plant_id(self, plant_id: str) -> List[GrowthLog]:
        return [log for log in self.get_growth_logs() if log.plant_id == plant_id]

    def add_growth_log(self, data: Mapping[str, Any]) -> GrowthLog:
        record = GrowthLog.create(data)
        try:
            log = self.api.create_growth_log(record.to_wire())
        except ApiError as e:
            self._fallback("add_growth_log", e)
            return self.store.growth_logs.upsert(record)
        self._mirror("add_growth_log", lambda: self.store.growth_logs.upsert(log))
        return log

    def update_growth_log(self, log_id: str, changes: Mapping[str, Any]) -> GrowthLog:
        GrowthLog.check_changes(changes)
        try:
            log = self.api.update_growth_log(log_id, changes)
        except ApiError as e:
            self._fallback("update_growth_log", e)
            return self.store.growth_logs.update(log_id, changes)
        self._mirror("update_growth_log", lambda: self.store.growth_logs.upsert(log))
        return log

    def delete_growth_log(self, log_id: str) -> bool:
        try:
            self.api.delete_growth_log(log_id)
        except ApiError as e:
            self._fallback("delete_growth_log", e)
            return self.store.growth_logs.delete_by_id(log_id)
        self._mirror("delete_growth_log", lambda: self.store.growth_logs.delete_by_id(log_id))
        return True

    # ------------------------------------------------------------------
    # Care notes
    # ------------------------------------------------------------------

    def get_care_notes(self) -> List[CareNote]:
        try:
            return self.api.list_care_notes()
        except ApiError as e:
            self._fallback("get_care_notes", e)
            return self.store.care_notes.read_all()

    def get_care_notes_by_plant_id(self, plant_id: str) -> List[CareNote]:
        return [note for note in self.get_care_notes() if note.plant_id == plant_id]

    def add_care_note(self, data: Mapping[str, Any]) -> CareNote:
        record = CareNote.create(data)
        try:
            note = self.api.create_care_note(record.to_wire())
        except ApiError as e:
            self._fallback("add_care_note", e)
            return self.store.care_notes.upsert(record)
        self._mirror("add_care_note", lambda: self.store.care_notes.upsert(note))
        return note

    def update_care_note(self, note_id: str, changes: Mapping[str, Any]) -> CareNote:
        CareNote.check_changes(changes)
        try:
            note = self.api.update_care_note(note_id, changes)
        except ApiError as e:
            self._fallback("update_care_note", e)
            return self.store.care_notes.update(note_id, changes)
        self._mirror("update_care_note", lambda: self.store.care_notes.upsert(note))
        return note

    def delete_care_note(self, note_id: str) -> bool:
        try:
            self.api.delete_care_note(note_id)
        except ApiError as e:
            self._fallback("delete_care_note", e)
            return self.store.care_notes.delete_by_id(note_id)
        self._mirror("delete_care_note", lambda: self.store.care_notes.delete_by_id(note_id))
        return True


def create_sync_service(config, session=None, on_write_error: Optional[WriteErrorHandler] = None) -> SyncService:
    """
    Build the facade from a config object (class from plantpal.config or a
    Flask ``app.config``). Construct once at startup and pass it around.
    """
    api = ApiClient(
        base_url=config_value(config, "API_BASE_URL"),
        timeout=float(config_value(config, "API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        session=session,
    )
    store = LocalStore(create_storage(config))
    logger.debug("Sync service configured for %s", api.base_url)
    return SyncService(api, store, on_write_error=on_write_error)
