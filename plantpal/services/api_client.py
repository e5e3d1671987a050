"""
HTTP gateway for the PlantPal REST API.

Every response is wrapped in the same envelope:
    {"success": bool, "data": <entity or list>, "message": "optional text"}

ApiClient.request() sends one JSON request and returns the envelope's
``data``. The configured timeout is one deadline for the whole call:
connecting, sending and reading the full body. A server that keeps
trickling bytes is abandoned once the deadline passes.

Failures are raised as ApiError subclasses so the sync layer can fall back
to local storage:
- ApiTimeoutError: no complete response within the timeout
- ApiConnectionError: connection refused, DNS failure, dropped connection
- ApiHTTPError: non-2xx status (server message when present)
- ApiResponseError: 2xx with an unusable body

Single attempt per call. No retry, no backoff.
"""

from __future__ import annotations
import concurrent.futures
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

from plantpal.constants import (
    CARE_NOTES_ENDPOINT,
    GROWTH_LOGS_ENDPOINT,
    HEALTH_ENDPOINT,
    PLANTS_ENDPOINT,
)
from plantpal.models import CareNote, GrowthLog, Plant, PlantImage, Record, parse_records
from plantpal.utils.errors import (
    ApiConnectionError,
    ApiError,
    ApiHTTPError,
    ApiResponseError,
    ApiTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

R = TypeVar("R", bound=Record)


class ApiClient:
    """
    Thin requests-based client for the PlantPal endpoints.

    Args:
        base_url: API root, e.g. "http://localhost:3001/api"
        timeout: Seconds before an in-flight request is abandoned
        session: Optional requests.Session (or compatible object) to send through
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        # Requests run on worker threads so the caller can stop waiting at the
        # deadline. A worker stuck on a slow server is left to finish on its own.
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="plantpal-api"
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.session.close()

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    def request(self, path: str, method: str = "GET", body: Any = None) -> Any:
        """
        Send one request and return the envelope's ``data`` field.

        Raises:
            ApiTimeoutError, ApiConnectionError, ApiHTTPError, ApiResponseError
        """
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {
            "headers": {"Content-Type": "application/json", "Accept": "application/json"},
            "timeout": self.timeout,
        }
        if body is not None:
            kwargs["json"] = body

        future = self._executor.submit(self._send, method, url, kwargs)
        try:
            response = future.result(timeout=self.timeout)
        except (concurrent.futures.TimeoutError, requests.exceptions.Timeout) as e:
            future.cancel()
            raise ApiTimeoutError(details={"method": method, "url": url}) from e
        except requests.exceptions.RequestException as e:
            raise ApiConnectionError(f"{method} {url} failed: {e}", details={"url": url}) from e

        if not 200 <= response.status_code < 300:
            raise ApiHTTPError(self._error_message(response), status_code=response.status_code)

        try:
            envelope = response.json()
        except ValueError as e:
            raise ApiResponseError(f"{method} {url} returned a non-JSON body") from e

        if not isinstance(envelope, dict):
            raise ApiResponseError(f"{method} {url} returned an unexpected payload")
        if envelope.get("success") is False:
            raise ApiResponseError(envelope.get("message") or f"{method} {url} reported failure")

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return envelope.get("data")

    def _send(self, method: str, url: str, kwargs: Dict[str, Any]) -> requests.Response:
        response = self.session.request(method, url, **kwargs)
        # Read the body here so it counts against the caller's deadline
        response.content
        return response

    @staticmethod
    def _error_message(response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("message") if isinstance(payload, dict) else None
        return message or f"HTTP {response.status_code}: {response.reason}"

    # ------------------------------------------------------------------
    # Decoding helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _one(model: Type[R], data: Any, source: str) -> R:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiResponseError(f"Malformed {model.__name__} from {source}: {e.error_count()} error(s)") from e

    @staticmethod
    def _many(model: Type[R], data: Any, source: str) -> List[R]:
        if not isinstance(data, list):
            raise ApiResponseError(f"Expected a list of {model.__name__} from {source}")
        return parse_records(model, data, source=source)

    # ------------------------------------------------------------------
    # Plants
    # ------------------------------------------------------------------

    def list_plants(self) -> List[Plant]:
        return self._many(Plant, self.request(PLANTS_ENDPOINT), PLANTS_ENDPOINT)

    def create_plant(self, data: Mapping[str, Any]) -> Plant:
        created = self.request(PLANTS_ENDPOINT, "POST", Plant.creation_payload(data))
        return self._one(Plant, created, PLANTS_ENDPOINT)

    def update_plant(self, plant_id: str, changes: Mapping[str, Any]) -> Plant:
        path = f"{PLANTS_ENDPOINT}/{plant_id}"
        return self._one(Plant, self.request(path, "PUT", Plant.wire_changes(changes)), path)

    def delete_plant(self, plant_id: str) -> None:
        self.request(f"{PLANTS_ENDPOINT}/{plant_id}", "DELETE")

    # ------------------------------------------------------------------
    # Growth logs
    # ------------------------------------------------------------------

    def list_growth_logs(self) -> List[GrowthLog]:
        return self._many(GrowthLog, self.request(GROWTH_LOGS_ENDPOINT), GROWTH_LOGS_ENDPOINT)

    def create_growth_log(self, data: Mapping[str, Any]) -> GrowthLog:
        created = self.request(GROWTH_LOGS_ENDPOINT, "POST", GrowthLog.creation_payload(data))
        return self._one(GrowthLog, created, GROWTH_LOGS_ENDPOINT)

    def update_growth_log(self, log_id: str, changes: Mapping[str, Any]) -> GrowthLog:
        path = f"{GROWTH_LOGS_ENDPOINT}/{log_id}"
        return self._one(GrowthLog, self.request(path, "PUT", GrowthLog.wire_changes(changes)), path)

    def delete_growth_log(self, log_id: str) -> None:
        self.request(f"{GROWTH_LOGS_ENDPOINT}/{log_id}", "DELETE")

    # ------------------------------------------------------------------
    # Care notes
    # ------------------------------------------------------------------

    def list_care_notes(self) -> List[CareNote]:
        return self._many(CareNote, self.request(CARE_NOTES_ENDPOINT), CARE_NOTES_ENDPOINT)

    def create_care_note(self, data: Mapping[str, Any]) -> CareNote:
        created = self.request(CARE_NOTES_ENDPOINT, "POST", CareNote.creation_payload(data))
        return self._one(CareNote, created, CARE_NOTES_ENDPOINT)

    def update_care_note(self, note_id: str, changes: Mapping[str, Any]) -> CareNote:
        path = f"{CARE_NOTES_ENDPOINT}/{note_id}"
        return self._one(CareNote, self.request(path, "PUT", CareNote.wire_changes(changes)), path)

    def delete_care_note(self, note_id: str) -> None:
        self.request(f"{CARE_NOTES_ENDPOINT}/{note_id}", "DELETE")

    # ------------------------------------------------------------------
    # Plant images (remote only)
    # ------------------------------------------------------------------

    def list_plant_images(self, plant_id: str) -> List[PlantImage]:
        path = f"{PLANTS_ENDPOINT}/{plant_id}/images"
        return self._many(PlantImage, self.request(path), path)

    def add_plant_image(self, plant_id: str, data: Mapping[str, Any]) -> PlantImage:
        path = f"{PLANTS_ENDPOINT}/{plant_id}/images"
        return self._one(PlantImage, self.request(path, "POST", PlantImage.creation_payload(data)), path)

    def delete_plant_image(self, plant_id: str, image_id: str) -> None:
        self.request(f"{PLANTS_ENDPOINT}/{plant_id}/images/{image_id}", "DELETE")

    def health(self) -> bool:
        """True if the API answers its health check."""
        try:
            self.request(HEALTH_ENDPOINT)
        except ApiError as e:
            logger.info("API health check failed: %s", e)
            return False
        return True
