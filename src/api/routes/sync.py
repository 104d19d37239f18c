"""Calendar sync and event feed endpoints."""

import logging
import sqlite3
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import (
    get_admin_policy,
    get_calendar_client,
    get_db,
    get_session,
    verify_api_key,
)
from api.logging import RequestLog, get_client_ip, log_request
from api.models.responses import ErrorCodes, EventsResponse, SyncResponse
from core.config import SYNC_FAILED_MESSAGE
from core.database import get_user
from core.errors import AuthError, NoSessionError, ProviderError, UserNotFoundError
from core.google_client import GoogleCalendarClient
from models.events import Session
from services.sync import sync_events
from services.users import AdminPolicy, events_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])


@router.post("/sync", response_model=SyncResponse)
async def sync_endpoint(
    request: Request,
    session: Session | None = Depends(get_session),
    conn: sqlite3.Connection = Depends(get_db),
    client: GoogleCalendarClient = Depends(get_calendar_client),
    admin_policy: AdminPolicy = Depends(get_admin_policy),
):
    """
    Sync the caller's primary calendar into the event store.

    Renews the push channel when needed, then replaces the stored events.
    """
    start_time = time.time()

    request_log = RequestLog(
        endpoint="/v1/sync",
        method="POST",
        client_ip=get_client_ip(request),
        user_id=session.user_id if session else None,
    )

    try:
        result = await sync_events(session, conn, client, admin_policy=admin_policy)

        request_log.status_code = 200
        request_log.events_synced = result.events_synced
        request_log.webhook_status = result.webhook_status
        for warning in result.warnings:
            request_log.details.append(("warning", warning))

        return SyncResponse(
            success=True,
            user_id=result.user_id,
            calendar_id=result.calendar_id,
            events_synced=result.events_synced,
            events_skipped=result.events_skipped,
            webhook_status=result.webhook_status,
            window_start=result.window_start,
            window_end=result.window_end,
            warnings=result.warnings,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    except AuthError as e:
        request_log.status_code = 401
        request_log.error_code = ErrorCodes.UNAUTHORIZED
        request_log.error_message = str(e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": str(e),
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    except ProviderError as e:
        # Provider messages go to the log, not to the caller
        logger.error("Sync failed for user %s: %s", request_log.user_id, e)
        request_log.status_code = 502
        request_log.error_code = ErrorCodes.PROVIDER_ERROR
        request_log.error_message = str(e)
        request_log.details.append(("provider_error", str(e)))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": SYNC_FAILED_MESSAGE,
                "code": ErrorCodes.PROVIDER_ERROR,
                "details": [],
            },
        )

    except Exception as e:
        logger.exception("Unexpected error during sync for user %s", request_log.user_id)
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": SYNC_FAILED_MESSAGE,
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        try:
            log_request(conn, request_log)
        except sqlite3.Error as e:
            # Don't fail the request if logging fails
            logger.warning("Could not write request log: %s", e)


@router.get("/events", response_model=EventsResponse)
async def list_events_endpoint(
    session: Session | None = Depends(get_session),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Stored events for the caller; admins receive every user's events."""
    if session is None or not session.user_id:
        raise NoSessionError()

    user = get_user(conn, session.user_id)
    if user is None:
        raise UserNotFoundError(session.user_id)

    events = events_for_user(conn, user)
    return EventsResponse(events=events, count=len(events))
