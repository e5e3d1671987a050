"""Pytest fixtures for the PlantPal sync layer.

Provides:
- A Flask app running the mock API (TestConfig, seeded demo data)
- A requests-compatible session that routes calls into the Flask test client,
  so ApiClient and SyncService are exercised against the real mock server
- Offline sessions that fail every call (connection refused / timeout)
- Local stores over in-memory storage
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import pytest
import requests

from plantpal import create_app
from plantpal.config import TestConfig
from plantpal.services.api_client import ApiClient
from plantpal.services.local_store import LocalStore, MemoryStorage
from plantpal.services.sync import SyncService

# Keep test output clean
logging.getLogger("plantpal").setLevel(logging.WARNING)

TEST_BASE_URL = "http://plantpal.test/api"


class FlaskClientSession:
    """Duck-typed requests.Session that dispatches into a Flask test client."""

    def __init__(self, client):
        self.client = client
        self.calls: list[tuple[str, str]] = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        path = urlsplit(url).path
        self.calls.append((method, path))
        resp = self.client.open(path, method=method, json=json, headers=headers)

        response = requests.Response()
        response.status_code = resp.status_code
        response.reason = resp.status.split(" ", 1)[1] if " " in resp.status else ""
        response._content = resp.get_data()
        response.encoding = "utf-8"
        response.url = url
        return response

    def close(self):
        pass


class FailingSession:
    """Session whose every request raises the given requests exception."""

    def __init__(self, exc_type=requests.exceptions.ConnectionError):
        self.exc_type = exc_type
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        raise self.exc_type(f"{method} {url} unreachable")

    def close(self):
        pass


@pytest.fixture()
def app():
    """Mock API app with seeded demo data; fresh per test."""
    return create_app(TestConfig)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def store(storage):
    return LocalStore(storage)


@pytest.fixture()
def api(client):
    """ApiClient talking to the mock server through the Flask test client."""
    return ApiClient(TEST_BASE_URL, timeout=5, session=FlaskClientSession(client))


@pytest.fixture()
def offline_api():
    """ApiClient whose every call fails with a connection error."""
    return ApiClient(TEST_BASE_URL, timeout=5, session=FailingSession())


@pytest.fixture()
def sync(api, store):
    return SyncService(api, store)


@pytest.fixture()
def offline_sync(offline_api, store):
    return SyncService(offline_api, store)


@pytest.fixture()
def fern_data():
    return {
        "name": "Fern",
        "species": "Nephrolepis exaltata",
        "wateringFrequency": 4,
        "location": "Bath",
        "lastWatered": "2025-01-01",
        "dateAdded": "2025-01-01",
        "notes": "",
    }
