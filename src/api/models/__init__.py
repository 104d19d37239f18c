"""API Pydantic models."""

from .responses import (
    DayViewResponse,
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    EventsResponse,
    HealthResponse,
    MonthViewResponse,
    SyncResponse,
    UserResponse,
    WebhookAck,
    WebhookErrorResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "UserResponse",
    "EventResponse",
    "EventsResponse",
    "SyncResponse",
    "WebhookAck",
    "WebhookErrorResponse",
    "DayViewResponse",
    "MonthViewResponse",
]
