"""
Sync engine: fetch a user's Google events and replace their stored set.
"""

import logging
import sqlite3
from datetime import datetime, timezone

from core.config import DEFAULT_CALENDAR_ID, STRICT_WEBHOOK_REGISTRATION
from core.database import replace_user_events
from core.errors import ProviderError
from core.google_client import GoogleCalendarClient
from models.events import Session, SyncResult
from services.calendar import compute_sync_window, fetch_calendar_events, format_rfc3339
from services.users import AdminPolicy, ensure_user, resolve_session
from services.webhooks import ensure_active_channel

logger = logging.getLogger(__name__)


async def sync_events(
    session: Session | None,
    conn: sqlite3.Connection,
    client: GoogleCalendarClient,
    *,
    calendar_id: str | None = None,
    now: datetime | None = None,
    admin_policy: AdminPolicy | None = None,
    strict_webhook: bool = STRICT_WEBHOOK_REGISTRATION,
) -> SyncResult:
    """
    Sync one user's calendar into the event store.

    Steps: validate the session, make sure the user row and a live push
    channel exist, fetch the sliding window of events, then swap the stored
    set in one transaction. Nothing is deleted unless the fetch succeeded.

    Raises:
        NoSessionError, NoTokenError, NoEmailError: before any I/O
        WebhookRegistrationError: only when strict_webhook is set
        ProviderFetchError: the events list call failed
    """
    session, access_token, email = resolve_session(session)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    user = ensure_user(conn, session, admin_policy)
    calendar_id = calendar_id or user["calendar_id"] or DEFAULT_CALENDAR_ID

    time_min, time_max = compute_sync_window(now)
    result = SyncResult(
        user_id=user["id"],
        calendar_id=calendar_id,
        window_start=format_rfc3339(time_min),
        window_end=format_rfc3339(time_max),
    )

    try:
        result.webhook_status = await ensure_active_channel(
            conn, client, user["id"], access_token, calendar_id, now=now
        )
    except ProviderError as e:
        if strict_webhook:
            raise
        logger.warning("Webhook registration failed for user %s, continuing sync: %s", user["id"], e)
        result.webhook_status = "failed"
        result.warnings.append(str(e))

    events, skipped = await fetch_calendar_events(
        client, access_token, user["id"], email, calendar_id, time_min, time_max
    )

    result.events_synced = replace_user_events(conn, user["id"], events)
    result.events_skipped = skipped
    logger.info(
        "Synced %d events for user %s (webhook: %s)",
        result.events_synced,
        user["id"],
        result.webhook_status,
    )
    return result
