"""
Shared utilities for loading JSON data files from plantpal/data/.
"""

from __future__ import annotations
import json
import os

_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

DEMO_PLANTS_FILE = "demo_plants.json"
DEMO_GROWTH_LOGS_FILE = "demo_growth_logs.json"
DEMO_CARE_NOTES_FILE = "demo_care_notes.json"


def load_data_file(filename: str) -> list:
    """Load a JSON data file from plantpal/data/.

    Returns an empty list if the file is not found.
    """
    filepath = os.path.join(_DATA_DIR, filename)
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return []


def load_demo_data() -> dict[str, list]:
    """Demo plants, growth logs and care notes, keyed like LocalStore.seed()."""
    return {
        "plants": load_data_file(DEMO_PLANTS_FILE),
        "growth_logs": load_data_file(DEMO_GROWTH_LOGS_FILE),
        "care_notes": load_data_file(DEMO_CARE_NOTES_FILE),
    }
