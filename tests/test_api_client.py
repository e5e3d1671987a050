"""Tests for the remote gateway: envelope decoding and failure classification."""

import socket
import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from plantpal.services.api_client import ApiClient
from plantpal.utils.errors import (
    ApiConnectionError,
    ApiError,
    ApiHTTPError,
    ApiResponseError,
    ApiTimeoutError,
)

from conftest import TEST_BASE_URL, FailingSession


def _response(status_code: int, body: bytes, reason: str = "OK") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = body
    response.encoding = "utf-8"
    return response


def _client_returning(response: requests.Response) -> ApiClient:
    session = MagicMock()
    session.request.return_value = response
    return ApiClient(TEST_BASE_URL, timeout=3, session=session)


class TestRequest:
    """ApiClient.request()."""

    def test_returns_envelope_data(self):
        client = _client_returning(_response(200, b'{"success": true, "data": [1, 2]}'))

        assert client.request("/plants") == [1, 2]

    def test_sends_json_with_timeout(self):
        client = _client_returning(_response(201, b'{"success": true, "data": {}}'))

        client.request("/plants", "POST", {"name": "Fern"})

        method, url = client.session.request.call_args.args
        kwargs = client.session.request.call_args.kwargs
        assert (method, url) == ("POST", f"{TEST_BASE_URL}/plants")
        assert kwargs["json"] == {"name": "Fern"}
        assert kwargs["timeout"] == 3
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_http_error_carries_server_message(self):
        client = _client_returning(_response(404, b'{"success": false, "message": "Plant not found"}', "NOT FOUND"))

        with pytest.raises(ApiHTTPError) as exc_info:
            client.request("/plants/x", "PUT", {})

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Plant not found"

    def test_http_error_without_message_uses_status(self):
        client = _client_returning(_response(503, b"<html>down</html>", "Service Unavailable"))

        with pytest.raises(ApiHTTPError) as exc_info:
            client.request("/plants")

        assert str(exc_info.value) == "HTTP 503: Service Unavailable"

    def test_non_json_success_body_is_response_error(self):
        client = _client_returning(_response(200, b"ok"))

        with pytest.raises(ApiResponseError):
            client.request("/plants")

    def test_success_false_is_response_error(self):
        client = _client_returning(_response(200, b'{"success": false, "message": "nope"}'))

        with pytest.raises(ApiResponseError, match="nope"):
            client.request("/plants")

    def test_timeout_is_distinct_from_connection_error(self):
        client = ApiClient(TEST_BASE_URL, session=FailingSession(requests.exceptions.ReadTimeout))

        with pytest.raises(ApiTimeoutError) as exc_info:
            client.request("/plants")

        assert str(exc_info.value) == "Request timeout"
        assert not isinstance(exc_info.value, ApiConnectionError)

    def test_connection_error(self):
        client = ApiClient(TEST_BASE_URL, session=FailingSession(requests.exceptions.ConnectionError))

        with pytest.raises(ApiConnectionError):
            client.request("/plants")

    def test_all_failures_share_base_class(self):
        for exc in (ApiTimeoutError, ApiConnectionError, ApiResponseError):
            assert issubclass(exc, ApiError)
        assert issubclass(ApiHTTPError, ApiError)


class TestRealSockets:
    """Failure classification against real sockets (no mock server)."""

    @staticmethod
    def _session() -> requests.Session:
        session = requests.Session()
        session.trust_env = False  # ignore proxy settings from the environment
        return session

    def test_unresponsive_server_times_out(self):
        # Listening socket that never answers: the kernel completes the
        # handshake, the request is sent, no response ever arrives.
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
            listener.bind(("127.0.0.1", 0))
            listener.listen(1)
            port = listener.getsockname()[1]
            client = ApiClient(f"http://127.0.0.1:{port}/api", timeout=0.2, session=self._session())

            with pytest.raises(ApiTimeoutError):
                client.request("/plants")
            client.close()

    def test_closed_port_is_connection_error(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as reserved:
            reserved.bind(("127.0.0.1", 0))
            port = reserved.getsockname()[1]
        client = ApiClient(f"http://127.0.0.1:{port}/api", timeout=2, session=self._session())

        with pytest.raises(ApiConnectionError):
            client.request("/plants")
        client.close()

    def test_slow_drip_body_hits_the_overall_deadline(self):
        # Each byte arrives well inside the timeout, but the whole body
        # would take several seconds.
        body = b'{"success": true, "data": []}'
        stop = threading.Event()

        def drip(listener):
            conn, _ = listener.accept()
            with conn:
                conn.recv(65536)
                conn.sendall(
                    b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                    b"Content-Length: %d\r\n\r\n" % len(body)
                )
                for byte in body:
                    if stop.wait(0.15):
                        return
                    conn.sendall(bytes([byte]))

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
            listener.bind(("127.0.0.1", 0))
            listener.listen(1)
            port = listener.getsockname()[1]
            server = threading.Thread(target=drip, args=(listener,), daemon=True)
            server.start()
            client = ApiClient(f"http://127.0.0.1:{port}/api", timeout=0.5, session=self._session())

            started = time.monotonic()
            with pytest.raises(ApiTimeoutError):
                client.request("/plants")
            elapsed = time.monotonic() - started

            stop.set()
            server.join(timeout=2)
            client.close()

        assert elapsed < 1.5


class TestEndpoints:
    """Typed helpers against the mock server."""

    def test_list_plants_decodes_records(self, api):
        plants = api.list_plants()

        assert plants[0].name == "Monstera Deliciosa"
        assert plants[0].watering_frequency == 7

    def test_create_plant_gets_server_id(self, api, fern_data):
        plant = api.create_plant({**fern_data, "id": "client-made"})

        assert plant.id != "client-made"
        assert plant.growth_logs == []

    def test_update_missing_plant_raises_http_404(self, api):
        with pytest.raises(ApiHTTPError) as exc_info:
            api.update_plant("missing", {"notes": "x"})

        assert exc_info.value.status_code == 404

    def test_create_and_list_growth_log(self, api):
        created = api.create_growth_log({
            "plantId": "1", "date": "2025-03-01", "notes": "tall", "healthStatus": "good", "height": 70,
        })

        assert created.id in {log.id for log in api.list_growth_logs()}

    def test_update_and_delete_care_note(self, api):
        updated = api.update_care_note("cn1", {"content": "Half-strength feed"})
        api.delete_care_note("cn1")

        assert updated.content == "Half-strength feed"
        assert "cn1" not in {note.id for note in api.list_care_notes()}

    def test_plant_images(self, api):
        image = api.add_plant_image("1", {"url": "https://img/1.jpg", "source": "user"})

        assert [i.id for i in api.list_plant_images("1")] == [image.id]
        api.delete_plant_image("1", image.id)
        assert api.list_plant_images("1") == []

    def test_malformed_record_from_server_is_response_error(self, api):
        with pytest.raises(ApiResponseError):
            api.create_care_note({"plantId": "1", "date": "yesterday-ish"})

    def test_health(self, api, offline_api):
        assert api.health() is True
        assert offline_api.health() is False
