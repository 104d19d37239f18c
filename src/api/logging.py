"""SQLite request logging for API."""

import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: str | None = None
    channel_id: str | None = None
    resource_state: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    events_synced: int | None = None
    webhook_status: str | None = None
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)


def log_request(conn: sqlite3.Connection, log: RequestLog) -> None:
    """Write request log to the api_requests tables."""
    with conn:
        conn.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip,
                user_id, channel_id, resource_state,
                status_code, error_code, error_message, processing_time_ms,
                events_synced, webhook_status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.user_id,
                log.channel_id,
                log.resource_state,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
                log.events_synced,
                log.webhook_status,
            ),
        )

        for detail_type, message in log.details:
            conn.execute(
                """
                INSERT INTO api_request_details (request_id, detail_type, message)
                VALUES (?, ?, ?)
                """,
                (log.request_id, detail_type, message),
            )


def get_client_ip(request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
