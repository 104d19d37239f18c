"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class WebhookErrorResponse(BaseModel):
    """Error body returned to the push-notification sender."""

    error: str
    code: str
    timestamp: str


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class UserResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    role: str
    calendar_id: str | None = None
    webhook_channel_id: str | None = None
    webhook_expiry: str | None = None


class EventResponse(BaseModel):
    id: int
    user_id: str
    email: str
    calendar_id: str
    title: str
    start_time: str
    end_time: str
    user_name: str | None = None


class EventsResponse(BaseModel):
    events: list[EventResponse]
    count: int


class SyncResponse(BaseModel):
    """Summary of a completed sync."""

    success: bool
    user_id: str
    calendar_id: str
    events_synced: int
    events_skipped: int
    webhook_status: str
    window_start: str
    window_end: str
    warnings: list[str] = []
    timestamp: str


class WebhookAck(BaseModel):
    """Acknowledgement for a push notification (camelCase on the wire)."""

    success: bool
    userId: str
    channelId: str
    resourceState: str | None = None
    timestamp: str


class PositionedEventResponse(BaseModel):
    event: EventResponse
    top: float
    height: float


class UserColumnResponse(BaseModel):
    user_id: str
    email: str
    name: str | None = None
    events: list[PositionedEventResponse]


class DayViewResponse(BaseModel):
    date: str
    slot_height: float
    users: list[UserColumnResponse]


class MonthDayResponse(BaseModel):
    date: str
    events: list[EventResponse]


class MonthViewResponse(BaseModel):
    year: int
    month: int
    days: list[MonthDayResponse]
