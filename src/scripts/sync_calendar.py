#!/usr/bin/env python3
"""
Sync one user's Google Calendar into the local event store.

The access token comes from --token or the GOOGLE_ACCESS_TOKEN environment
variable; this script does not run an OAuth flow.

Usage:
    uv run python src/scripts/sync_calendar.py --user-id <id> --email <email> [--name NAME]

Example:
    GOOGLE_ACCESS_TOKEN=ya29... uv run python src/scripts/sync_calendar.py --user-id 42 --email jo@example.com
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.database import get_connection, init_schema
from core.errors import CalendarSyncError
from core.google_client import GoogleCalendarClient
from models.events import Session
from services.sync import sync_events


async def run(session: Session, calendar_id: str | None, strict_webhook: bool) -> int:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection()
    client = GoogleCalendarClient()
    try:
        init_schema(conn)
        result = await sync_events(
            session,
            conn,
            client,
            calendar_id=calendar_id,
            strict_webhook=strict_webhook,
        )
    finally:
        await client.aclose()
        conn.close()

    print(f"Synced {result.events_synced} events for {session.email}")
    print(f"  Calendar: {result.calendar_id}")
    print(f"  Window:   {result.window_start} -> {result.window_end}")
    print(f"  Skipped:  {result.events_skipped}")
    print(f"  Webhook:  {result.webhook_status}")
    for warning in result.warnings:
        print(f"  Warning:  {warning}")
    return result.events_synced


def main():
    parser = argparse.ArgumentParser(
        description="Sync a user's Google Calendar events into the event store"
    )
    parser.add_argument("--user-id", required=True, help="Identity provider user id")
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--token",
        default=os.environ.get("GOOGLE_ACCESS_TOKEN"),
        help="Google OAuth access token (default: $GOOGLE_ACCESS_TOKEN)",
    )
    parser.add_argument("--calendar-id", default=None, help="Calendar to sync (default: primary)")
    parser.add_argument(
        "--strict-webhook",
        action="store_true",
        help="Abort the sync when the push channel cannot be registered",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    session = Session(
        user_id=args.user_id,
        email=args.email,
        name=args.name,
        provider_token=args.token,
    )

    try:
        asyncio.run(run(session, args.calendar_id, args.strict_webhook))
    except CalendarSyncError as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
