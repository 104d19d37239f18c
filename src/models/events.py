"""
Data models for users, events, and sync sessions.

Store records are TypedDicts over sqlite rows; values that only live in
memory during a sync are dataclasses.
"""

from dataclasses import dataclass, field
from typing import Literal, TypedDict

Role = Literal["admin", "user"]
WebhookStatus = Literal["active", "created", "renewed", "failed"]


class User(TypedDict):
    """Stored user with push-channel state."""
    id: str
    email: str
    name: str | None
    role: Role
    calendar_id: str | None
    webhook_channel_id: str | None
    webhook_expiry: str | None
    webhook_resource_id: str | None
    created_at: str | None


class CalendarEvent(TypedDict, total=False):
    """Stored calendar event. Timestamps are UTC RFC3339 strings."""
    id: int
    user_id: str
    email: str
    calendar_id: str
    provider_event_id: str | None
    title: str
    start_time: str
    end_time: str
    user_name: str | None


@dataclass
class Session:
    """Authenticated identity plus the Google access token it holds."""

    user_id: str | None
    email: str | None = None
    name: str | None = None
    provider_token: str | None = None


@dataclass
class SyncResult:
    """Outcome of one sync call."""

    user_id: str
    calendar_id: str
    window_start: str
    window_end: str
    events_synced: int = 0
    events_skipped: int = 0
    webhook_status: WebhookStatus = "active"
    warnings: list[str] = field(default_factory=list)
