#!/usr/bin/env python3
"""
List all users with their role and push-channel state.

Usage:
    uv run python src/scripts/list_users.py
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.database import get_connection, list_user_events, list_users
from services.webhooks import channel_is_active


def main():
    """Print users, their channels and event counts."""
    conn = get_connection()
    now = datetime.now(timezone.utc)
    try:
        users = list_users(conn)
        print(f"Found {len(users)} users\n")
        print("=" * 80)

        for user in users:
            print(f"\nUser: {user['name'] or '(no name)'}")
            print(f"  Email: {user['email']}")
            print(f"  ID: {user['id']}")
            print(f"  Role: {user['role']}")
            print(f"  Calendar: {user['calendar_id']}")
            if user["webhook_channel_id"]:
                state = "active" if channel_is_active(user["webhook_expiry"], now) else "expired"
                print(f"  Channel: {user['webhook_channel_id']} ({state})")
                print(f"    Expires: {user['webhook_expiry']}")
            else:
                print("  Channel: None")
            print(f"  Events: {len(list_user_events(conn, user['id']))}")
            print("-" * 80)
    finally:
        conn.close()

    print("\nDone!")


if __name__ == "__main__":
    main()
