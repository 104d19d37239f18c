"""
Sync window computation and Google event parsing.
"""

import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from core.config import (
    DEFAULT_EVENT_TITLE,
    SYNC_MAX_RESULTS,
    SYNC_WINDOW_MONTHS_BACK,
    SYNC_WINDOW_YEARS_AHEAD,
)
from core.google_client import GoogleCalendarClient
from models.events import CalendarEvent

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def shift_months(value: datetime, months: int) -> datetime:
    """Move `value` by whole months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def compute_sync_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Return the (time_min, time_max) fetch window around `now`.

    The window slides with the clock: one month back, one year ahead.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    time_min = shift_months(now, -SYNC_WINDOW_MONTHS_BACK)
    time_max = shift_months(now, 12 * SYNC_WINDOW_YEARS_AHEAD)
    return time_min, time_max


def format_rfc3339(value: datetime) -> str:
    """Format an aware datetime as RFC3339 UTC with milliseconds, e.g. 2025-01-01T09:00:00.000Z."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def to_utc_timestamp(value: str) -> str:
    """Normalize a provider dateTime string to a UTC storage timestamp."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_list_params(time_min: datetime, time_max: datetime) -> dict[str, str]:
    """Query parameters for events.list over the sync window."""
    return {
        "timeMin": format_rfc3339(time_min),
        "timeMax": format_rfc3339(time_max),
        "maxResults": str(SYNC_MAX_RESULTS),
        "orderBy": "startTime",
        "singleEvents": "true",
    }


def _all_day_end(start_date: str, end_date: str | None) -> str:
    # Google's all-day end date is exclusive; the stored end is the last
    # second of the final day, never before the start day.
    first = date.fromisoformat(start_date)
    last = first
    if end_date:
        last = max(first, date.fromisoformat(end_date) - timedelta(days=1))
    return f"{last.isoformat()}T23:59:59Z"


def parse_event(
    event: dict[str, Any], user_id: str, email: str, calendar_id: str
) -> CalendarEvent | None:
    """
    Map a Google event resource to a stored CalendarEvent.

    Returns None for events without any start (cancelled placeholders).
    """
    start = event.get("start") or {}
    end = event.get("end") or {}
    start_dt = start.get("dateTime")
    start_date = start.get("date")
    if not start_dt and not start_date:
        return None

    if start_dt:
        start_time = to_utc_timestamp(start_dt)
    else:
        start_time = f"{start_date}T00:00:00Z"

    if end.get("dateTime"):
        end_time = to_utc_timestamp(end["dateTime"])
    elif start_date:
        end_time = _all_day_end(start_date, end.get("date"))
    elif end.get("date"):
        end_time = f"{end['date']}T23:59:59Z"
    else:
        end_time = start_time

    return {
        "user_id": user_id,
        "email": email,
        "calendar_id": calendar_id,
        "provider_event_id": event.get("id"),
        "title": event.get("summary") or DEFAULT_EVENT_TITLE,
        "start_time": start_time,
        "end_time": end_time,
    }


async def fetch_calendar_events(
    client: GoogleCalendarClient,
    access_token: str,
    user_id: str,
    email: str,
    calendar_id: str,
    time_min: datetime,
    time_max: datetime,
) -> tuple[list[CalendarEvent], int]:
    """
    Fetch and parse events in the window.

    Returns the parsed events and the number of provider items skipped.
    """
    raw_events = await client.list_events(
        access_token, calendar_id, build_list_params(time_min, time_max)
    )

    events: list[CalendarEvent] = []
    skipped = 0
    for raw in raw_events:
        try:
            parsed = parse_event(raw, user_id, email, calendar_id)
        except ValueError as e:
            logger.warning("Skipping event %s with unparseable times: %s", raw.get("id"), e)
            parsed = None
        if parsed is None:
            skipped += 1
            continue
        events.append(parsed)

    logger.info(
        "Fetched %d events for user %s (%d skipped) from calendar %s",
        len(events),
        user_id,
        skipped,
        calendar_id,
    )
    return events, skipped
