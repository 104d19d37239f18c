"""HTTP API: webhook receiver, sync, event feed and admin views."""

import sqlite3
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from api import dependencies
from api.dependencies import (
    get_calendar_client,
    get_db,
    get_db_opener,
    get_notification_hook,
    verify_api_key,
)
from api.main import app
from core.database import create_user, replace_user_events, update_webhook_state

SESSION_HEADERS = {
    "X-User-ID": "user-1",
    "X-User-Email": "jo@example.com",
    "X-User-Name": "Jo Example",
    "X-Provider-Token": "ya29.test-token",
}
ADMIN_HEADERS = {"X-User-ID": "admin-1", "X-User-Email": "admin@example.com"}


@pytest.fixture
def api(db, calendar_client):
    def override_db():
        yield db

    @contextmanager
    def open_test_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_db_opener] = lambda: open_test_db
    app.dependency_overrides[get_calendar_client] = lambda: calendar_client
    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    create_user(db, "user-1", "jo@example.com", "Jo Example", "user")
    create_user(db, "user-2", "sam@example.com", "Sam", "user")
    create_user(db, "admin-1", "admin@example.com", "Admin", "admin")
    update_webhook_state(db, "user-1", "primary", "chan-1", "2099-01-01T00:00:00Z", "res-1")
    replace_user_events(
        db,
        "user-1",
        [
            {
                "email": "jo@example.com",
                "calendar_id": "primary",
                "title": "Review",
                "start_time": "2025-06-16T09:00:00Z",
                "end_time": "2025-06-16T10:30:00Z",
            }
        ],
    )
    replace_user_events(
        db,
        "user-2",
        [
            {
                "email": "sam@example.com",
                "calendar_id": "primary",
                "title": "Lunch",
                "start_time": "2025-06-16T12:00:00Z",
                "end_time": "2025-06-16T13:00:00Z",
            }
        ],
    )
    return db


# =============================================================================
# WEBHOOK RECEIVER
# =============================================================================


def _assert_cors(response):
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
    assert "X-Goog-Channel-ID" in response.headers["Access-Control-Allow-Headers"]


def test_webhook_preflight(api):
    response = api.options("/v1/calendar-webhook")

    assert response.status_code == 204
    assert response.content == b""
    _assert_cors(response)


def test_webhook_without_channel_id(api):
    response = api.post("/v1/calendar-webhook")

    assert response.status_code == 400
    assert response.json()["error"] == "Missing channel ID"
    _assert_cors(response)


def test_webhook_unknown_channel(api, seeded):
    response = api.post("/v1/calendar-webhook", headers={"X-Goog-Channel-ID": "nope"})

    assert response.status_code == 404
    assert response.json()["error"] == "User not found"
    _assert_cors(response)


def test_webhook_known_channel(api, seeded):
    response = api.post(
        "/v1/calendar-webhook",
        headers={"X-Goog-Channel-ID": "chan-1", "X-Goog-Resource-State": "exists"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["userId"] == "user-1"
    assert body["channelId"] == "chan-1"
    assert body["resourceState"] == "exists"
    assert body["timestamp"]
    _assert_cors(response)


def test_webhook_requests_are_logged(api, seeded):
    api.post("/v1/calendar-webhook", headers={"X-Goog-Channel-ID": "chan-1"})

    row = seeded.execute(
        "SELECT endpoint, user_id, channel_id, status_code FROM api_requests"
    ).fetchone()
    assert tuple(row) == ("/v1/calendar-webhook", "user-1", "chan-1", 200)


def test_webhook_calls_notification_hook(api, seeded):
    seen = []

    async def hook(user, channel_id, resource_state):
        seen.append((user["id"], channel_id, resource_state))

    app.dependency_overrides[get_notification_hook] = lambda: hook
    api.post(
        "/v1/calendar-webhook",
        headers={"X-Goog-Channel-ID": "chan-1", "X-Goog-Resource-State": "sync"},
    )

    assert seen == [("user-1", "chan-1", "sync")]


def test_webhook_hook_failure_is_a_500(api, seeded):
    async def hook(user, channel_id, resource_state):
        raise RuntimeError("queue unavailable")

    app.dependency_overrides[get_notification_hook] = lambda: hook
    response = api.post("/v1/calendar-webhook", headers={"X-Goog-Channel-ID": "chan-1"})

    assert response.status_code == 500
    assert response.json()["error"] == "queue unavailable"
    _assert_cors(response)


def test_webhook_store_failure_is_a_cors_500(api):
    def unavailable_store():
        raise sqlite3.OperationalError("unable to open database file")

    app.dependency_overrides[get_db_opener] = lambda: unavailable_store
    response = api.post("/v1/calendar-webhook", headers={"X-Goog-Channel-ID": "chan-1"})

    assert response.status_code == 500
    assert response.json()["error"] == "unable to open database file"
    assert response.json()["code"] == "INTERNAL_ERROR"
    _assert_cors(response)


# =============================================================================
# SYNC
# =============================================================================


def test_sync_endpoint(api, google, provider_events):
    google.items = provider_events

    response = api.post("/v1/sync", headers=SESSION_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["events_synced"] == 3
    assert body["events_skipped"] == 1
    assert body["webhook_status"] == "created"

    events = api.get("/v1/events", headers=SESSION_HEADERS).json()
    assert events["count"] == 3


def test_sync_without_session(api, google):
    response = api.post("/v1/sync")

    assert response.status_code == 401
    assert response.json()["error"] == "No active session found"
    assert google.requests == []


def test_sync_without_token(api):
    headers = {k: v for k, v in SESSION_HEADERS.items() if k != "X-Provider-Token"}

    response = api.post("/v1/sync", headers=headers)

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_sync_provider_failure_hides_details(api, google, db):
    google.list_status = 403
    google.list_error = "Calendar usage limits exceeded"

    response = api.post("/v1/sync", headers=SESSION_HEADERS)

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Failed to load events. Please try refreshing."
    assert body["code"] == "PROVIDER_ERROR"
    assert "limits" not in response.text

    logged = db.execute(
        "SELECT status_code, error_message FROM api_requests WHERE endpoint = '/v1/sync'"
    ).fetchone()
    assert logged["status_code"] == 502
    assert "Calendar usage limits exceeded" in logged["error_message"]


def test_api_key_is_required(api, google, monkeypatch):
    monkeypatch.setattr(dependencies, "CALENDAR_SYNC_API_KEY", "secret")
    app.dependency_overrides.pop(verify_api_key)

    response = api.post("/v1/sync", headers={**SESSION_HEADERS, "X-API-Key": "wrong"})

    assert google.requests == []

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or missing API key"


# =============================================================================
# USERS AND EVENT FEED
# =============================================================================


def test_sign_in_bootstraps_role(api):
    user = api.post("/v1/users/sign-in", headers=SESSION_HEADERS).json()
    admin = api.post("/v1/users/sign-in", headers=ADMIN_HEADERS).json()

    assert user["role"] == "user"
    assert user["name"] == "Jo Example"
    assert admin["role"] == "admin"


def test_user_sees_own_events(api, seeded):
    body = api.get("/v1/events", headers=SESSION_HEADERS).json()

    assert [event["title"] for event in body["events"]] == ["Review"]


def test_admin_sees_all_events_with_names(api, seeded):
    body = api.get("/v1/events", headers=ADMIN_HEADERS).json()

    assert [(e["title"], e["user_name"]) for e in body["events"]] == [
        ("Review", "Jo Example"),
        ("Lunch", "Sam"),
    ]


def test_events_for_unknown_user(api):
    response = api.get("/v1/events", headers={"X-User-ID": "ghost"})

    assert response.status_code == 404


# =============================================================================
# ADMIN VIEWS
# =============================================================================


def test_day_view(api, seeded):
    response = api.get("/v1/admin/day", params={"date": "2025-06-16"}, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    users = response.json()["users"]
    assert [u["user_id"] for u in users] == ["user-1", "user-2"]
    review = users[0]["events"][0]
    assert (review["top"], review["height"]) == (576, 96)
    assert users[0]["name"] == "Jo Example"


def test_day_view_requires_admin(api, seeded):
    response = api.get("/v1/admin/day", params={"date": "2025-06-16"}, headers=SESSION_HEADERS)

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_month_view(api, seeded):
    response = api.get(
        "/v1/admin/month", params={"year": 2025, "month": 6}, headers=ADMIN_HEADERS
    )

    days = response.json()["days"]
    assert len(days) == 30
    assert [e["title"] for e in days[15]["events"]] == ["Review", "Lunch"]


def test_health(api, db):
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json()["database_available"] is True
