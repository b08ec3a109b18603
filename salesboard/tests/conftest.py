import threading
from urllib.parse import parse_qs, urlparse

import pytest
from requests.exceptions import HTTPError

from salesboard import settings_io
from salesboard.factory import create_app
from salesboard.settings_store import DEFAULTS, settings_store


TEST_ENV = """\
DIRECTUS_URL=http://directus.test/
DIRECTUS_TOKEN=test-token
DIRECTUS_ACCESS_TOKEN=
DIRECTUS_STATIC_TOKEN=
DIRECTUS_TIMEOUT=5
DIRECTUS_PAGE_SIZE=500
DIRECTUS_MAX_PAGES=200
DIRECTUS_RETRY_ATTEMPTS=4
DIRECTUS_RETRY_BACKOFF=0.5
FETCH_WORKERS=4
LOG_LEVEL=DEBUG
LOG_FILE=
"""


class DummyResponse:
    def __init__(self, status_code, json_data=None, text=""):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.headers = {}

    def raise_for_status(self):
        if 400 <= self.status_code:
            raise HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeDirectus:
    """In-memory stand-in for the Directus ``/items`` endpoints."""

    def __init__(self):
        self.collections = {}
        self.queued = {}
        self.always = {}
        self.calls = []
        self.sleeps = []
        self._lock = threading.Lock()

    def fail(self, collection, *outcomes):
        """Answer the next requests with the given statuses or exceptions."""
        self.queued.setdefault(collection, []).extend(outcomes)

    def fail_always(self, collection, outcome):
        self.always[collection] = outcome

    def calls_for(self, collection):
        return [
            (url, kwargs)
            for url, kwargs in self.calls
            if urlparse(url).path.endswith(f"/items/{collection}")
        ]

    def _failure(self, outcome):
        if isinstance(outcome, Exception):
            raise outcome
        return DummyResponse(
            outcome,
            {"errors": [{"message": "You don't have permission to access this.",
                         "extensions": {"code": "FORBIDDEN"}}]},
            text="forbidden",
        )

    def get(self, url, **kwargs):
        parsed = urlparse(url)
        with self._lock:
            self.calls.append((url, kwargs))
        if parsed.path.endswith("/server/ping"):
            outcome = self.always.get("ping")
            if outcome is not None:
                return self._failure(outcome)
            return DummyResponse(200, {"data": "pong"}, text="pong")

        name = parsed.path.rsplit("/", 1)[-1]
        with self._lock:
            queue = self.queued.get(name)
            outcome = queue.pop(0) if queue else self.always.get(name)
        if outcome is not None:
            return self._failure(outcome)

        params = parse_qs(parsed.query)
        limit = int(params["limit"][0])
        offset = int(params["offset"][0])
        rows = self.collections.get(name, [])
        return DummyResponse(200, {"data": rows[offset:offset + limit]})


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings store at a throwaway ``.env.example``."""
    example_path = tmp_path / ".env.example"
    example_path.write_text(TEST_ENV, encoding="utf-8")
    monkeypatch.setattr(settings_io, "EXAMPLE_PATH", example_path)
    monkeypatch.setattr(settings_io, "ENV_PATH", tmp_path / ".env")
    for key in DEFAULTS:
        monkeypatch.delenv(key, raising=False)
    settings_store.reload()
    yield settings_store


@pytest.fixture
def fake_directus(monkeypatch):
    fake = FakeDirectus()
    monkeypatch.setattr("salesboard.directus.core.requests.get", fake.get)
    monkeypatch.setattr(
        "salesboard.directus.core.time.sleep", lambda value: fake.sleeps.append(value)
    )
    return fake


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()
