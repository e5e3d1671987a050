"""
Flask CLI commands for working with plant data from a terminal.

Each command goes through the same SyncService as any other client: the
configured API first, the local store when the API is unreachable.

Usage:
    flask list-plants                                   # All plants
    flask add-plant "Fern" --species "Nephrolepis exaltata" --every 4
    flask water-plant <plant-id>                        # Mark watered today
    flask delete-plant <plant-id>                       # Delete + cascade
    flask water-reminders                               # Overdue plants
    flask seed-local                                    # Demo data into local store
"""

from __future__ import annotations

from datetime import date

import click
from flask import current_app
from flask.cli import with_appcontext

from plantpal.services.sync import SyncService, create_sync_service
from plantpal.utils.errors import PlantPalError


def get_sync_service() -> SyncService:
    """The app's SyncService, built from app.config on first use."""
    service = current_app.extensions.get("plantpal_sync")
    if service is None:
        service = create_sync_service(current_app.config)
        current_app.extensions["plantpal_sync"] = service
    return service


@click.command("list-plants")
@with_appcontext
def list_plants_command() -> None:
    """List all plants with their watering schedule."""
    plants = get_sync_service().get_plants()
    if not plants:
        click.echo("No plants yet.")
        return
    for plant in plants:
        click.echo(
            f"{plant.id}  {plant.name} ({plant.species or 'unknown species'}) "
            f"- every {plant.watering_frequency}d, last watered {plant.last_watered.isoformat()}"
        )
    click.echo(f"\n{len(plants)} plant(s)")


@click.command("add-plant")
@click.argument("name")
@click.option("--species", default="", help="Species (free text).")
@click.option("--every", "watering_frequency", type=int, required=True,
              help="Days between waterings.")
@click.option("--location", default="", help="Where the plant lives.")
@click.option("--notes", default="", help="Free-form notes.")
@click.option("--last-watered", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Last watering date (YYYY-MM-DD, default today).")
@with_appcontext
def add_plant_command(name: str, species: str, watering_frequency: int, location: str,
                      notes: str, last_watered) -> None:
    """Add a plant."""
    today = date.today()
    try:
        plant = get_sync_service().add_plant({
            "name": name,
            "species": species,
            "watering_frequency": watering_frequency,
            "location": location,
            "notes": notes,
            "date_added": today,
            "last_watered": last_watered.date() if last_watered else today,
        })
    except PlantPalError as e:
        click.echo(f"Failed to add plant: {e}")
        raise SystemExit(1)
    click.echo(f"Added {plant.name} ({plant.id})")


@click.command("water-plant")
@click.argument("plant_id")
@with_appcontext
def water_plant_command(plant_id: str) -> None:
    """Record that a plant was watered today."""
    try:
        plant = get_sync_service().update_plant(plant_id, {"last_watered": date.today()})
    except PlantPalError as e:
        click.echo(f"Failed to update plant: {e}")
        raise SystemExit(1)
    click.echo(f"Watered {plant.name} on {plant.last_watered.isoformat()}")


@click.command("delete-plant")
@click.argument("plant_id")
@with_appcontext
def delete_plant_command(plant_id: str) -> None:
    """Delete a plant together with its growth logs and care notes."""
    try:
        deleted = get_sync_service().delete_plant(plant_id)
    except PlantPalError as e:
        click.echo(f"Failed to delete plant: {e}")
        raise SystemExit(1)
    click.echo("Deleted." if deleted else "No such plant.")


@click.command("water-reminders")
@with_appcontext
def water_reminders_command() -> None:
    """Show plants that are overdue for watering."""
    from plantpal.services.reminders import get_water_reminders

    reminders = get_water_reminders(get_sync_service().get_plants())
    if not reminders:
        click.echo("All plants are watered.")
        return
    for reminder in reminders:
        click.echo(f"{reminder.plant_name}: {reminder.days_overdue} day(s) overdue")


@click.command("seed-local")
@with_appcontext
def seed_local_command() -> None:
    """Load demo data into the local store (only collections never written before)."""
    from plantpal.utils.data import load_demo_data

    try:
        result = get_sync_service().store.seed(**load_demo_data())
    except PlantPalError as e:
        click.echo(f"Failed to seed local store: {e}")
        raise SystemExit(1)
    for key, seeded in result.items():
        click.echo(f"  {key}: {'seeded' if seeded else 'already present, skipped'}")
