"""Inbound Google Calendar push notifications."""

import logging
import sqlite3
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse, Response

from api.dependencies import (
    DbOpener,
    NotificationHook,
    get_db_opener,
    get_notification_hook,
)
from api.logging import RequestLog, get_client_ip, log_request
from api.models.responses import ErrorCodes, WebhookAck, WebhookErrorResponse
from core.database import find_user_by_channel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, Authorization, X-Goog-Channel-ID, X-Goog-Resource-ID, "
        "X-Goog-Resource-State, X-Goog-Channel-Expiration, X-Goog-Channel-Token, "
        "X-Goog-Message-Number"
    ),
}


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=WebhookErrorResponse(
            error=message,
            code=code,
            timestamp=datetime.now(timezone.utc).isoformat(),
        ).model_dump(),
        headers=CORS_HEADERS,
    )


@router.options("/calendar-webhook")
async def calendar_webhook_preflight():
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)


async def _acknowledge(
    conn: sqlite3.Connection,
    channel_id: str | None,
    resource_state: str | None,
    notification_hook: NotificationHook | None,
    request_log: RequestLog,
) -> JSONResponse:
    try:
        if not channel_id:
            return _error(
                status.HTTP_400_BAD_REQUEST, "Missing channel ID", ErrorCodes.INVALID_REQUEST
            )

        user = find_user_by_channel(conn, channel_id)
        if user is None:
            return _error(status.HTTP_404_NOT_FOUND, "User not found", ErrorCodes.NOT_FOUND)

        request_log.user_id = user["id"]
        if notification_hook is not None:
            await notification_hook(user, channel_id, resource_state)
        logger.info(
            "Webhook notification for user %s (channel %s, state %s)",
            user["id"],
            channel_id,
            resource_state,
        )
        return JSONResponse(
            content=WebhookAck(
                success=True,
                userId=user["id"],
                channelId=channel_id,
                resourceState=resource_state,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ).model_dump(),
            headers=CORS_HEADERS,
        )

    except Exception as e:
        logger.exception("Webhook error")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(e) or "Internal server error",
            ErrorCodes.INTERNAL_ERROR,
        )


def _write_log(
    conn: sqlite3.Connection, request_log: RequestLog, status_code: int, start_time: float
) -> None:
    request_log.status_code = status_code
    if status_code != status.HTTP_200_OK:
        request_log.error_code = {
            400: ErrorCodes.INVALID_REQUEST,
            404: ErrorCodes.NOT_FOUND,
        }.get(status_code, ErrorCodes.INTERNAL_ERROR)
    request_log.processing_time_ms = int((time.time() - start_time) * 1000)
    try:
        log_request(conn, request_log)
    except sqlite3.Error as e:
        logger.warning("Could not write request log: %s", e)


@router.post("/calendar-webhook")
async def calendar_webhook(
    request: Request,
    channel_id: str | None = Header(None, alias="X-Goog-Channel-ID"),
    resource_state: str | None = Header(None, alias="X-Goog-Resource-State"),
    db_opener: DbOpener = Depends(get_db_opener),
    notification_hook: NotificationHook | None = Depends(get_notification_hook),
):
    """
    Acknowledge a push notification for a known channel.

    Google sends no meaningful body; the channel id header identifies the
    user. This handler never raises: every failure, including an
    unreachable event store, becomes a JSON error with CORS headers.
    """
    start_time = time.time()

    request_log = RequestLog(
        endpoint="/v1/calendar-webhook",
        method="POST",
        client_ip=get_client_ip(request),
        channel_id=channel_id,
        resource_state=resource_state,
    )

    try:
        with db_opener() as conn:
            response = await _acknowledge(
                conn, channel_id, resource_state, notification_hook, request_log
            )
            _write_log(conn, request_log, response.status_code, start_time)
    except Exception as e:
        logger.exception("Event store unavailable for webhook")
        response = _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(e) or "Internal server error",
            ErrorCodes.INTERNAL_ERROR,
        )

    return response
