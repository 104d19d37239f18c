"""
Exception hierarchy for calendar sync operations.
"""


class CalendarSyncError(Exception):
    """Base class for all calendar sync errors."""


# =============================================================================
# AUTH
# =============================================================================


class AuthError(CalendarSyncError):
    """The caller must re-authenticate before retrying."""


class NoSessionError(AuthError):
    def __init__(self, message: str = "No active session found"):
        super().__init__(message)


class NoTokenError(AuthError):
    def __init__(self, message: str = "No valid Google token found. Please sign in again."):
        super().__init__(message)


class NoEmailError(AuthError):
    def __init__(self, message: str = "User email not found"):
        super().__init__(message)


# =============================================================================
# PROVIDER
# =============================================================================


class ProviderError(CalendarSyncError):
    """A Google Calendar API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderFetchError(ProviderError):
    """Fetching the event list failed."""


class WebhookRegistrationError(ProviderError):
    """Registering a push-notification channel failed."""


class ChannelStopError(ProviderError):
    """Stopping an existing push-notification channel failed."""


# =============================================================================
# LOOKUPS
# =============================================================================


class NotFoundError(CalendarSyncError):
    """A referenced record does not exist."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ChannelNotFoundError(NotFoundError):
    def __init__(self, channel_id: str):
        super().__init__(f"No user registered for channel: {channel_id}")
        self.channel_id = channel_id
