"""
SQLite event store: users, their push-channel state, and synced events.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from core.config import DB_PATH, DEFAULT_CALENDAR_ID
from models.events import CalendarEvent, Role, User

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        name TEXT,
        role TEXT NOT NULL DEFAULT 'user' CHECK(role IN ('admin', 'user')),
        calendar_id TEXT DEFAULT 'primary',
        webhook_channel_id TEXT UNIQUE,
        webhook_expiry TEXT,
        webhook_resource_id TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS calendar_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        email TEXT NOT NULL,
        calendar_id TEXT NOT NULL DEFAULT 'primary',
        provider_event_id TEXT,
        title TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        user_id TEXT,
        channel_id TEXT,
        resource_state TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL,
        events_synced INTEGER,
        webhook_status TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_request_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT NOT NULL,
        detail_type TEXT NOT NULL CHECK(detail_type IN ('provider_error', 'warning')),
        message TEXT NOT NULL,
        FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_calendar_events_user ON calendar_events(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_calendar_events_start ON calendar_events(start_time)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_status ON api_requests(status_code)",
]


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection with dict-like rows and foreign keys enabled."""
    conn = sqlite3.connect(db_path or DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    with conn:
        for statement in SCHEMA:
            conn.execute(statement)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# USERS
# =============================================================================


def get_user(conn: sqlite3.Connection, user_id: str) -> User | None:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return dict(row) if row else None


def create_user(
    conn: sqlite3.Connection,
    user_id: str,
    email: str,
    name: str | None,
    role: Role,
) -> User:
    """Insert a new user. Role is fixed from here on."""
    with conn:
        conn.execute(
            "INSERT INTO users (id, email, name, role, calendar_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, email, name, role, DEFAULT_CALENDAR_ID, _utc_now_iso()),
        )
    return get_user(conn, user_id)


def list_users(conn: sqlite3.Connection) -> list[User]:
    rows = conn.execute("SELECT * FROM users ORDER BY email").fetchall()
    return [dict(row) for row in rows]


def find_user_by_channel(conn: sqlite3.Connection, channel_id: str) -> User | None:
    """Look up the user owning a push channel."""
    row = conn.execute(
        "SELECT * FROM users WHERE webhook_channel_id = ?", (channel_id,)
    ).fetchone()
    return dict(row) if row else None


def update_webhook_state(
    conn: sqlite3.Connection,
    user_id: str,
    calendar_id: str,
    channel_id: str,
    expiry: str,
    resource_id: str | None,
) -> None:
    """Persist a newly registered channel in a single update."""
    with conn:
        conn.execute(
            """
            UPDATE users
            SET calendar_id = ?, webhook_channel_id = ?, webhook_expiry = ?,
                webhook_resource_id = ?
            WHERE id = ?
            """,
            (calendar_id, channel_id, expiry, resource_id, user_id),
        )


# =============================================================================
# EVENTS
# =============================================================================


def replace_user_events(
    conn: sqlite3.Connection, user_id: str, events: list[CalendarEvent]
) -> int:
    """
    Replace every stored event of a user with `events`.

    The delete and the inserts run in one transaction; a failed insert
    leaves the previous set in place.
    """
    with conn:
        conn.execute("DELETE FROM calendar_events WHERE user_id = ?", (user_id,))
        conn.executemany(
            """
            INSERT INTO calendar_events (
                user_id, email, calendar_id, provider_event_id,
                title, start_time, end_time
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    user_id,
                    event["email"],
                    event["calendar_id"],
                    event.get("provider_event_id"),
                    event["title"],
                    event["start_time"],
                    event["end_time"],
                )
                for event in events
            ],
        )
    return len(events)


def list_user_events(conn: sqlite3.Connection, user_id: str) -> list[CalendarEvent]:
    rows = conn.execute(
        "SELECT * FROM calendar_events WHERE user_id = ? ORDER BY start_time, id",
        (user_id,),
    ).fetchall()
    return [dict(row) for row in rows]


def list_all_events(conn: sqlite3.Connection) -> list[CalendarEvent]:
    """All events across users, with the owner's display name as user_name."""
    rows = conn.execute(
        """
        SELECT e.*, u.name AS user_name
        FROM calendar_events e
        LEFT JOIN users u ON u.id = e.user_id
        ORDER BY e.start_time, e.id
        """
    ).fetchall()
    return [dict(row) for row in rows]
