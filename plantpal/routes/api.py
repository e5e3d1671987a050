"""
Mock REST API consumed by the sync layer during development.

Endpoints (all under /api):
- /plants                         GET list, POST create
- /plants/<id>                    PUT update, DELETE (cascades to logs/notes)
- /growth-logs                    GET list, POST create
- /growth-logs/<id>               PUT update, DELETE
- /care-notes                     GET list, POST create
- /care-notes/<id>                PUT update, DELETE
- /plants/<id>/images             GET list, POST create
- /plants/<pid>/images/<iid>      DELETE
- /health                         GET

Every response uses the envelope {"success": bool, "data": ..., "message": ...}.
"""

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ..services.mock_db import MockDatabase
from ..utils.errors import GENERIC_MESSAGES, log_info, sanitize_error

api_bp = Blueprint("api", __name__)

# Collection name in MockDatabase -> display name for messages
_COLLECTIONS = {
    "plants": "Plant",
    "growth-logs": "Growth log",
    "care-notes": "Care note",
}


def _db() -> MockDatabase:
    return current_app.extensions["plantpal_mock_db"]


def _attr(collection: str) -> str:
    return collection.replace("-", "_")


def _ok(data=None, status: int = 200, message: str | None = None):
    payload = {"success": True}
    if data is not None:
        payload["data"] = data
    if message:
        payload["message"] = message
    return jsonify(payload), status


def _fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _json_body():
    """Request body as a dict, or None if it is missing or not a JSON object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


@api_bp.route("/<any(plants, 'growth-logs', 'care-notes'):collection>", methods=["GET"])
def list_records(collection: str):
    return _ok(_db().list(_attr(collection)))


@api_bp.route("/<any(plants, 'growth-logs', 'care-notes'):collection>", methods=["POST"])
def create_record(collection: str):
    data = _json_body()
    if data is None:
        return _fail(GENERIC_MESSAGES["validation"], 400)
    record = _db().create(_attr(collection), data)
    log_info(f"{_COLLECTIONS[collection]} created", id=record["id"])
    return _ok(record, 201)


@api_bp.route("/<any(plants, 'growth-logs', 'care-notes'):collection>/<record_id>", methods=["PUT"])
def update_record(collection: str, record_id: str):
    data = _json_body()
    if data is None:
        return _fail(GENERIC_MESSAGES["validation"], 400)
    record = _db().update(_attr(collection), record_id, data)
    if record is None:
        return _fail(f"{_COLLECTIONS[collection]} not found", 404)
    return _ok(record)


@api_bp.route("/<any(plants, 'growth-logs', 'care-notes'):collection>/<record_id>", methods=["DELETE"])
def delete_record(collection: str, record_id: str):
    if not _db().delete(_attr(collection), record_id):
        return _fail(f"{_COLLECTIONS[collection]} not found", 404)
    return _ok(message=f"{_COLLECTIONS[collection]} deleted successfully")


@api_bp.route("/plants/<plant_id>/images", methods=["GET"])
def list_plant_images(plant_id: str):
    images = _db().list_images(plant_id)
    if images is None:
        return _fail("Plant not found", 404)
    return _ok(images)


@api_bp.route("/plants/<plant_id>/images", methods=["POST"])
def add_plant_image(plant_id: str):
    data = _json_body()
    if data is None:
        return _fail(GENERIC_MESSAGES["validation"], 400)
    image = _db().add_image(plant_id, data)
    if image is None:
        return _fail("Plant not found", 404)
    return _ok(image, 201)


@api_bp.route("/plants/<plant_id>/images/<image_id>", methods=["DELETE"])
def delete_plant_image(plant_id: str, image_id: str):
    deleted = _db().delete_image(plant_id, image_id)
    if deleted is None:
        return _fail("Plant not found", 404)
    if not deleted:
        return _fail("Image not found", 404)
    return _ok(message="Image deleted successfully")


@api_bp.route("/health", methods=["GET"])
def health():
    return _ok(message="PlantPal API is running!")


@api_bp.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return _fail(e.description, e.code)
    return _fail(sanitize_error(e, "server", f"{request.method} {request.path}"), 500)
