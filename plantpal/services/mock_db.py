"""
In-memory data backing the mock API server.

Records are kept as plain wire-format dicts, exactly as the client sent them
plus a server-assigned id. Nothing persists across restarts.
"""

from __future__ import annotations
import copy
import threading
from typing import Any, Dict, List, Optional

from plantpal.models import new_id
from plantpal.utils.data import load_demo_data


class MockDatabase:
    """Plants, growth logs and care notes held in lists, guarded by one lock."""

    def __init__(self, seed: bool = True):
        self._lock = threading.Lock()
        self.plants: List[Dict[str, Any]] = []
        self.growth_logs: List[Dict[str, Any]] = []
        self.care_notes: List[Dict[str, Any]] = []
        if seed:
            demo = load_demo_data()
            self.plants = demo["plants"]
            self.growth_logs = demo["growth_logs"]
            self.care_notes = demo["care_notes"]

    def _collection(self, name: str) -> List[Dict[str, Any]]:
        return getattr(self, name)

    @staticmethod
    def _find(items: List[Dict[str, Any]], record_id: str) -> int:
        for index, item in enumerate(items):
            if item.get("id") == record_id:
                return index
        return -1

    def list(self, name: str) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._collection(name))

    def get(self, name: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            items = self._collection(name)
            index = self._find(items, record_id)
            return copy.deepcopy(items[index]) if index >= 0 else None

    def create(self, name: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {**data, "id": new_id()}
        if name == "plants":
            record["growthLogs"] = []
        with self._lock:
            self._collection(name).append(record)
            return copy.deepcopy(record)

    def update(self, name: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            items = self._collection(name)
            index = self._find(items, record_id)
            if index < 0:
                return None
            items[index] = {**items[index], **changes, "id": record_id}
            return copy.deepcopy(items[index])

    def delete(self, name: str, record_id: str) -> bool:
        with self._lock:
            items = self._collection(name)
            index = self._find(items, record_id)
            if index < 0:
                return False
            items.pop(index)
            if name == "plants":
                self.growth_logs = [log for log in self.growth_logs if log.get("plantId") != record_id]
                self.care_notes = [note for note in self.care_notes if note.get("plantId") != record_id]
            return True

    # Plant images live on the plant record itself

    def list_images(self, plant_id: str) -> Optional[List[Dict[str, Any]]]:
        plant = self.get("plants", plant_id)
        if plant is None:
            return None
        return plant.get("images") or []

    def add_image(self, plant_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        image = {**data, "id": new_id()}
        with self._lock:
            index = self._find(self.plants, plant_id)
            if index < 0:
                return None
            self.plants[index].setdefault("images", []).append(image)
            return copy.deepcopy(image)

    def delete_image(self, plant_id: str, image_id: str) -> Optional[bool]:
        """None if the plant is missing, False if the image is missing."""
        with self._lock:
            index = self._find(self.plants, plant_id)
            if index < 0:
                return None
            images = self.plants[index].get("images") or []
            image_index = self._find(images, image_id)
            if image_index < 0:
                return False
            images.pop(image_index)
            return True
