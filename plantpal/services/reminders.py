"""
Watering reminder helpers.

A plant is overdue when more days have passed since it was last watered than
its watering frequency allows.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from plantpal.models import Plant


@dataclass(frozen=True)
class WaterReminder:
    plant_id: str
    plant_name: str
    days_overdue: int
    is_overdue: bool


def days_since_watered(plant: Plant, today: Optional[date] = None) -> int:
    today = today or date.today()
    return (today - plant.last_watered).days


def next_watering_date(plant: Plant) -> date:
    """Date the plant is next due: last watered + watering frequency."""
    return plant.last_watered + timedelta(days=plant.watering_frequency)


def get_water_reminders(plants: Iterable[Plant], today: Optional[date] = None) -> List[WaterReminder]:
    """
    Build reminders for overdue plants only, most overdue first.

    Args:
        plants: Plants to check
        today: Reference date (defaults to today)

    Returns:
        List of WaterReminder with is_overdue=True
    """
    today = today or date.today()
    reminders = []
    for plant in plants:
        overdue = days_since_watered(plant, today) - plant.watering_frequency
        if overdue > 0:
            reminders.append(WaterReminder(
                plant_id=plant.id,
                plant_name=plant.name,
                days_overdue=overdue,
                is_overdue=True,
            ))
    reminders.sort(key=lambda r: r.days_overdue, reverse=True)
    return reminders
