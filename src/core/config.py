"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(
    os.environ.get(
        "CALENDAR_SYNC_DB_PATH",
        str(PROJECT_ROOT / "data" / "db" / "calendar-sync.db"),
    )
)

# =============================================================================
# GOOGLE CALENDAR CONFIGURATION
# =============================================================================

GOOGLE_CALENDAR_API_BASE = os.environ.get(
    "GOOGLE_CALENDAR_API_BASE", "https://www.googleapis.com/calendar/v3"
)
GOOGLE_API_TIMEOUT_SECONDS = float(os.environ.get("GOOGLE_API_TIMEOUT_SECONDS", "30"))

DEFAULT_CALENDAR_ID = "primary"
DEFAULT_EVENT_TITLE = "Untitled Event"

# =============================================================================
# SYNC CONFIGURATION
# =============================================================================

SYNC_MAX_RESULTS = 100
SYNC_WINDOW_MONTHS_BACK = 1
SYNC_WINDOW_YEARS_AHEAD = 1
SYNC_FAILED_MESSAGE = "Failed to load events. Please try refreshing."

# =============================================================================
# WEBHOOK CONFIGURATION
# =============================================================================

WEBHOOK_TTL_DAYS = int(os.environ.get("WEBHOOK_TTL_DAYS", "7"))
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
WEBHOOK_CALLBACK_URL = os.environ.get(
    "WEBHOOK_CALLBACK_URL", f"{PUBLIC_BASE_URL}/v1/calendar-webhook"
)
# When true, a failed channel registration aborts the whole sync
STRICT_WEBHOOK_REGISTRATION = (
    os.environ.get("STRICT_WEBHOOK_REGISTRATION", "false").lower() == "true"
)

# =============================================================================
# ROLES
# =============================================================================

ADMIN_EMAILS = {
    email.strip().lower()
    for email in os.environ.get("ADMIN_EMAILS", "admin@example.com").split(",")
    if email.strip()
}

# =============================================================================
# API CONFIGURATION
# =============================================================================

CALENDAR_SYNC_API_KEY = os.environ.get("CALENDAR_SYNC_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
