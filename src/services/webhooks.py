"""
Push-notification channel lifecycle: one live channel per user.
"""

import logging
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

from core.config import DEFAULT_CALENDAR_ID, WEBHOOK_CALLBACK_URL, WEBHOOK_TTL_DAYS
from core.database import get_user, update_webhook_state
from core.errors import ProviderError, UserNotFoundError
from core.google_client import GoogleCalendarClient
from models.events import WebhookStatus
from services.calendar import TIMESTAMP_FORMAT, parse_timestamp

logger = logging.getLogger(__name__)


def channel_is_active(expiry: str | None, now: datetime) -> bool:
    """True when a stored expiry lies strictly in the future."""
    if not expiry:
        return False
    try:
        return parse_timestamp(expiry) > now
    except ValueError:
        logger.warning("Unparseable webhook expiry %r, treating channel as expired", expiry)
        return False


async def ensure_active_channel(
    conn: sqlite3.Connection,
    client: GoogleCalendarClient,
    user_id: str,
    access_token: str,
    calendar_id: str = DEFAULT_CALENDAR_ID,
    now: datetime | None = None,
    callback_url: str = WEBHOOK_CALLBACK_URL,
) -> WebhookStatus:
    """
    Make sure `user_id` has an unexpired channel on `calendar_id`.

    Returns "active" when nothing had to be done, "created" for a first
    channel and "renewed" when an expired one was replaced.

    Raises:
        UserNotFoundError: no such user
        WebhookRegistrationError: the provider refused the new channel;
            nothing is persisted in that case
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    user = get_user(conn, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    old_channel_id = user["webhook_channel_id"]
    if old_channel_id and channel_is_active(user["webhook_expiry"], now):
        logger.debug("Webhook already active for user %s (channel %s)", user_id, old_channel_id)
        return "active"

    if old_channel_id:
        resource_id = user["webhook_resource_id"] or calendar_id
        try:
            await client.stop_channel(access_token, old_channel_id, resource_id)
            logger.info("Stopped expired channel %s for user %s", old_channel_id, user_id)
        except ProviderError as e:
            # Best effort: the old channel expires on its own
            logger.warning("Error stopping existing webhook %s: %s", old_channel_id, e)

    channel_id = str(uuid.uuid4())
    expiry = now + timedelta(days=WEBHOOK_TTL_DAYS)
    expiration_ms = int(expiry.timestamp() * 1000)

    response = await client.watch_events(
        access_token, calendar_id, channel_id, callback_url, expiration_ms
    )

    update_webhook_state(
        conn,
        user_id,
        calendar_id=calendar_id,
        channel_id=channel_id,
        expiry=expiry.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT),
        resource_id=response.get("resourceId"),
    )
    logger.info("Webhook setup successful for user %s (channel %s)", user_id, channel_id)
    return "renewed" if old_channel_id else "created"
