"""
Timeline layout for the admin day and month views.

Pure functions over stored events; nothing here touches the database.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from models.events import CalendarEvent
from services.calendar import parse_timestamp

DEFAULT_SLOT_HEIGHT = 64  # one hour


@dataclass
class PositionedEvent:
    event: CalendarEvent
    top: float
    height: float


@dataclass
class UserColumn:
    """One user's lane in the day timeline."""

    user_id: str
    email: str
    name: str | None
    events: list[PositionedEvent] = field(default_factory=list)


def _day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start, end


def events_for_day(
    events: list[CalendarEvent], day: date, tz: tzinfo = timezone.utc
) -> list[CalendarEvent]:
    """Events whose start falls on `day` in `tz`."""
    day_start, day_end = _day_bounds(day, tz)
    return [
        event
        for event in events
        if day_start <= parse_timestamp(event["start_time"]) <= day_end
    ]


def position_event(
    event: CalendarEvent, slot_height: float = DEFAULT_SLOT_HEIGHT, tz: tzinfo = timezone.utc
) -> PositionedEvent:
    """top = start hour fraction * slot_height, height = duration hours * slot_height."""
    start = parse_timestamp(event["start_time"]).astimezone(tz)
    end = parse_timestamp(event["end_time"]).astimezone(tz)
    start_hours = start.hour + start.minute / 60 + start.second / 3600
    duration_hours = (end - start).total_seconds() / 3600
    return PositionedEvent(
        event=event,
        top=start_hours * slot_height,
        height=duration_hours * slot_height,
    )


def layout_day(
    events: list[CalendarEvent],
    day: date,
    slot_height: float = DEFAULT_SLOT_HEIGHT,
    tz: tzinfo = timezone.utc,
) -> list[UserColumn]:
    """Group the day's events by owner and place each on a 24-hour timeline."""
    columns: dict[str, UserColumn] = {}
    for event in events_for_day(events, day, tz):
        column = columns.get(event["user_id"])
        if column is None:
            column = UserColumn(
                user_id=event["user_id"],
                email=event["email"],
                name=event.get("user_name"),
            )
            columns[event["user_id"]] = column
        column.events.append(position_event(event, slot_height, tz))
    return list(columns.values())


def month_days(year: int, month: int) -> list[date]:
    """Every date in the given month."""
    days_in_month = calendar.monthrange(year, month)[1]
    first = date(year, month, 1)
    return [first + timedelta(days=offset) for offset in range(days_in_month)]


def group_events_by_day(
    events: list[CalendarEvent], year: int, month: int, tz: tzinfo = timezone.utc
) -> dict[date, list[CalendarEvent]]:
    """Month grid: each day of the month mapped to the events starting on it."""
    grid: dict[date, list[CalendarEvent]] = {day: [] for day in month_days(year, month)}
    for event in events:
        start_day = parse_timestamp(event["start_time"]).astimezone(tz).date()
        if start_day in grid:
            grid[start_day].append(event)
    return grid
