"""
Pytest configuration and shared fixtures.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.database import create_user, get_connection, init_schema  # noqa: E402
from core.google_client import GoogleCalendarClient  # noqa: E402
from models.events import Session  # noqa: E402

API_BASE = "https://www.googleapis.com/calendar/v3"
FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeGoogleCalendar:
    """In-memory stand-in for the three Calendar API endpoints the sync uses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.items: list[dict] = []
        self.list_status = 200
        self.list_error = "Invalid Credentials"
        self.watch_status = 200
        self.watch_resource_id = "resource-abc"
        self.stop_status = 204

    def calls(self, method: str, path_suffix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(path_suffix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path.endswith("/events"):
            if self.list_status != 200:
                return httpx.Response(
                    self.list_status,
                    json={"error": {"code": self.list_status, "message": self.list_error}},
                )
            return httpx.Response(200, json={"kind": "calendar#events", "items": self.items})

        if request.method == "POST" and path.endswith("/events/watch"):
            if self.watch_status != 200:
                return httpx.Response(
                    self.watch_status,
                    json={"error": {"code": self.watch_status, "message": "Push not allowed"}},
                )
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "kind": "api#channel",
                    "id": body["id"],
                    "resourceId": self.watch_resource_id,
                    "expiration": body["expiration"],
                },
            )

        if request.method == "POST" and path.endswith("/channels/stop"):
            if self.stop_status >= 300:
                return httpx.Response(
                    self.stop_status,
                    json={"error": {"code": self.stop_status, "message": "Channel not found"}},
                )
            return httpx.Response(self.stop_status)

        return httpx.Response(404, json={"error": {"message": "Not Found"}})


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite event store per test."""
    conn = get_connection(tmp_path / "test.db")
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def google():
    return FakeGoogleCalendar()


@pytest.fixture
def calendar_client(google):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(google.handler))
    return GoogleCalendarClient(http_client=http_client, base_url=API_BASE)


@pytest.fixture
def session():
    return Session(
        user_id="user-1",
        email="jo@example.com",
        name="Jo Example",
        provider_token="ya29.test-token",
    )


@pytest.fixture
def user(db, session):
    return create_user(db, session.user_id, session.email, session.name, "user")


@pytest.fixture
def provider_events():
    """A mix of timed, all-day and start-less Google events."""
    return [
        {
            "id": "evt-standup",
            "summary": "Standup",
            "start": {"dateTime": "2025-06-16T09:00:00-04:00"},
            "end": {"dateTime": "2025-06-16T09:15:00-04:00"},
        },
        {
            "id": "evt-offsite",
            "summary": "Offsite",
            "start": {"date": "2025-06-20"},
            "end": {"date": "2025-06-21"},
        },
        {
            "id": "evt-untitled",
            "start": {"dateTime": "2025-06-17T14:00:00Z"},
            "end": {"dateTime": "2025-06-17T15:00:00Z"},
        },
        {
            "id": "evt-cancelled",
            "status": "cancelled",
        },
    ]
