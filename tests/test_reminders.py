"""Tests for watering reminders."""

from datetime import date

from plantpal.models import Plant
from plantpal.services.reminders import days_since_watered, get_water_reminders, next_watering_date

TODAY = date(2025, 3, 20)


def _plant(plant_id: str, last_watered: str, every: int) -> Plant:
    return Plant.model_validate({
        "id": plant_id, "name": f"Plant {plant_id}", "dateAdded": "2025-01-01",
        "lastWatered": last_watered, "wateringFrequency": every,
    })


def test_days_since_watered():
    assert days_since_watered(_plant("a", "2025-03-10", 7), TODAY) == 10


def test_next_watering_date():
    assert next_watering_date(_plant("a", "2025-03-10", 7)) == date(2025, 3, 17)


def test_only_overdue_plants_most_overdue_first():
    plants = [
        _plant("due-today", "2025-03-13", 7),
        _plant("slightly", "2025-03-10", 7),
        _plant("badly", "2025-02-20", 7),
        _plant("fresh", "2025-03-19", 3),
    ]

    reminders = get_water_reminders(plants, TODAY)

    assert [r.plant_id for r in reminders] == ["badly", "slightly"]
    assert reminders[0].days_overdue == 21
    assert reminders[1].days_overdue == 3
    assert all(r.is_overdue for r in reminders)


def test_no_plants_no_reminders():
    assert get_water_reminders([], TODAY) == []
