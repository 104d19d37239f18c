"""FastAPI dependencies for authentication and shared resources."""

import secrets
import sqlite3
from collections.abc import Awaitable, Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from fastapi import Header, HTTPException, status

from api.models.responses import ErrorCodes
from core.config import CALENDAR_SYNC_API_KEY
from core.database import get_connection
from core.google_client import GoogleCalendarClient, get_google_client
from models.events import Session, User
from services.users import AdminPolicy, default_admin_policy

NotificationHook = Callable[[User, str, str | None], Awaitable[None]]
DbOpener = Callable[[], AbstractContextManager[sqlite3.Connection]]


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not CALENDAR_SYNC_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    if not secrets.compare_digest(x_api_key, CALENDAR_SYNC_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return x_api_key


async def get_session(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_user_email: str | None = Header(None, alias="X-User-Email"),
    x_user_name: str | None = Header(None, alias="X-User-Name"),
    x_provider_token: str | None = Header(None, alias="X-Provider-Token"),
) -> Session | None:
    """
    Build the caller's session from headers set by the auth front door.

    Returns None when no identity was forwarded; the services decide which
    missing pieces are fatal.
    """
    if not x_user_id:
        return None
    return Session(
        user_id=x_user_id,
        email=x_user_email,
        name=x_user_name,
        provider_token=x_provider_token,
    )


@contextmanager
def open_db() -> Iterator[sqlite3.Connection]:
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_db() -> Iterator[sqlite3.Connection]:
    """One SQLite connection per request."""
    with open_db() as conn:
        yield conn


def get_db_opener() -> DbOpener:
    """Connection opener for handlers that must turn store failures into responses."""
    return open_db


def get_calendar_client() -> GoogleCalendarClient:
    return get_google_client()


def get_admin_policy() -> AdminPolicy:
    return default_admin_policy


def get_notification_hook() -> NotificationHook | None:
    """Called for every acknowledged push notification; unset by default."""
    return None
