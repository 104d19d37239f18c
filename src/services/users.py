"""
Session resolution, first-sign-in bootstrap and role policy.
"""

import logging
import sqlite3
from collections.abc import Callable, Iterable

from core.config import ADMIN_EMAILS
from core.database import create_user, get_user, list_all_events, list_user_events
from core.errors import NoEmailError, NoSessionError, NoTokenError
from models.events import CalendarEvent, Role, Session, User

logger = logging.getLogger(__name__)

AdminPolicy = Callable[[Session], Role]


def email_admin_policy(admin_emails: Iterable[str] = ADMIN_EMAILS) -> AdminPolicy:
    """Build a policy granting admin to a fixed set of emails (case-insensitive)."""
    allowed = {email.strip().lower() for email in admin_emails}

    def policy(session: Session) -> Role:
        if session.email and session.email.lower() in allowed:
            return "admin"
        return "user"

    return policy


default_admin_policy = email_admin_policy()


def resolve_session(session: Session | None) -> tuple[Session, str, str]:
    """
    Validate a session and return it with its token and email.

    Raises:
        NoSessionError: no session or no user id
        NoTokenError: session without a Google access token
        NoEmailError: identity without an email
    """
    if session is None or not session.user_id:
        raise NoSessionError()
    if not session.provider_token:
        raise NoTokenError()
    if not session.email:
        raise NoEmailError()
    return session, session.provider_token, session.email


def ensure_user(
    conn: sqlite3.Connection,
    session: Session,
    admin_policy: AdminPolicy | None = None,
) -> User:
    """Return the session's user, creating it on first sign-in."""
    if session is None or not session.user_id:
        raise NoSessionError()

    existing = get_user(conn, session.user_id)
    if existing is not None:
        return existing

    if not session.email:
        raise NoEmailError()

    policy = admin_policy or default_admin_policy
    role = policy(session)
    logger.info("Bootstrapping user %s (%s) with role %s", session.user_id, session.email, role)
    return create_user(conn, session.user_id, session.email, session.name, role)


def events_for_user(conn: sqlite3.Connection, user: User) -> list[CalendarEvent]:
    """Admins see every user's events with owner names, everyone else their own."""
    if user["role"] == "admin":
        return list_all_events(conn)
    return list_user_events(conn, user["id"])
