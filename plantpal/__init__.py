"""
Application factory for the PlantPal mock API server.

Creates the Flask app, loads the config object named by PLANTPAL_CONFIG,
attaches the in-memory mock database, registers the API blueprint under
/api and the client-side CLI commands. Domain logic lives in
plantpal.services; this file only wires things together.
"""

from __future__ import annotations
import logging
from flask import Flask, Response
from dotenv import load_dotenv
from .config import load_config
from .routes.api import api_bp
from .services.mock_db import MockDatabase

__version__ = "1.0.0"


def create_app(config_object: str | type | None = None) -> Flask:
    # override=False so real env vars are not overwritten by a stale .env file
    load_dotenv(override=False)

    app = Flask(__name__)

    # Allow PLANTPAL_CONFIG to override (e.g., plantpal.config.DevConfig)
    try:
        app.config.from_object(config_object or load_config())
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object: {e}")

    app.logger.setLevel(getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO))

    app.extensions["plantpal_mock_db"] = MockDatabase(seed=app.config.get("SEED_DEMO_DATA", True))

    @app.after_request
    def allow_cross_origin(resp: Response) -> Response:
        # The browser front-end is served from a different dev port
        resp.headers["Access-Control-Allow-Origin"] = "*"
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        return resp

    app.register_blueprint(api_bp, url_prefix="/api")

    # Register CLI commands
    from plantpal.cli import (
        add_plant_command,
        delete_plant_command,
        list_plants_command,
        seed_local_command,
        water_plant_command,
        water_reminders_command,
    )
    app.cli.add_command(list_plants_command)
    app.cli.add_command(add_plant_command)
    app.cli.add_command(water_plant_command)
    app.cli.add_command(delete_plant_command)
    app.cli.add_command(water_reminders_command)
    app.cli.add_command(seed_local_command)

    return app
