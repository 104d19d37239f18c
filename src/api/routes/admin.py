"""Admin composite views: per-day user timelines and the month grid."""

import sqlite3
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_db, get_session, verify_api_key
from api.models.responses import DayViewResponse, ErrorCodes, MonthViewResponse
from core.database import get_user, list_all_events
from core.errors import NoSessionError, UserNotFoundError
from models.events import Session, User
from services.layout import DEFAULT_SLOT_HEIGHT, group_events_by_day, layout_day

router = APIRouter(prefix="/v1/admin", dependencies=[Depends(verify_api_key)])


def require_admin(
    session: Session | None = Depends(get_session),
    conn: sqlite3.Connection = Depends(get_db),
) -> User:
    """Resolve the caller and reject anyone without the admin role."""
    if session is None or not session.user_id:
        raise NoSessionError()
    user = get_user(conn, session.user_id)
    if user is None:
        raise UserNotFoundError(session.user_id)
    if user["role"] != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Admin role required",
                "code": ErrorCodes.FORBIDDEN,
                "details": [],
            },
        )
    return user


@router.get("/day", response_model=DayViewResponse)
async def day_view(
    day: Annotated[date, Query(alias="date", description="Day to show (YYYY-MM-DD)")],
    slot_height: Annotated[float, Query(gt=0)] = DEFAULT_SLOT_HEIGHT,
    _admin: User = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
):
    """All users' events on one day, laid out on a 24-hour timeline."""
    columns = layout_day(list_all_events(conn), day, slot_height)
    return {
        "date": day.isoformat(),
        "slot_height": slot_height,
        "users": [
            {
                "user_id": column.user_id,
                "email": column.email,
                "name": column.name,
                "events": [
                    {"event": placed.event, "top": placed.top, "height": placed.height}
                    for placed in column.events
                ],
            }
            for column in columns
        ],
    }


@router.get("/month", response_model=MonthViewResponse)
async def month_view(
    year: Annotated[int, Query(ge=1, le=9999)],
    month: Annotated[int, Query(ge=1, le=12)],
    _admin: User = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Every day of the month with the events starting on it."""
    grid = group_events_by_day(list_all_events(conn), year, month)
    return {
        "year": year,
        "month": month,
        "days": [
            {"date": day.isoformat(), "events": events}
            for day, events in grid.items()
        ],
    }
