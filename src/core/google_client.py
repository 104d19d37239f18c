"""
Google Calendar REST client with lazy initialization.

Only the three endpoints the sync needs are wrapped: events.list,
events.watch and channels.stop. Every call carries the caller's OAuth access
token; this module never refreshes or stores tokens.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from core.config import GOOGLE_API_TIMEOUT_SECONDS, GOOGLE_CALENDAR_API_BASE
from core.errors import (
    ChannelStopError,
    ProviderError,
    ProviderFetchError,
    WebhookRegistrationError,
)

logger = logging.getLogger(__name__)


def _google_error_message(response: httpx.Response) -> str:
    """Extract error.message from a Google error payload, else the status text."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error, str) and error.strip():
            return " ".join(error.split())[:200]

    return response.reason_phrase or f"HTTP {response.status_code}"


class GoogleCalendarClient:
    """Thin async wrapper over the Calendar v3 REST API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GOOGLE_CALENDAR_API_BASE,
    ):
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=GOOGLE_API_TIMEOUT_SECONDS
        )
        self._base_url = base_url.rstrip("/")

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        error_cls: type[ProviderError],
        action: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        try:
            response = await self._http_client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise error_cls(f"Failed to {action}: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise error_cls(
                f"Failed to {action}: {_google_error_message(response)}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise error_cls(f"Failed to {action}: invalid JSON response") from exc
        return payload if isinstance(payload, dict) else {}

    async def list_events(
        self, access_token: str, calendar_id: str, params: dict[str, str]
    ) -> list[dict[str, Any]]:
        """GET calendars/{id}/events; returns the raw `items` list."""
        payload = await self._request(
            "GET",
            f"/calendars/{quote(calendar_id, safe='')}/events",
            access_token,
            ProviderFetchError,
            "fetch calendar events",
            params=params,
        )
        items = payload.get("items") or []
        return [item for item in items if isinstance(item, dict)]

    async def watch_events(
        self,
        access_token: str,
        calendar_id: str,
        channel_id: str,
        address: str,
        expiration_ms: int,
    ) -> dict[str, Any]:
        """POST calendars/{id}/events/watch to open a web_hook channel."""
        return await self._request(
            "POST",
            f"/calendars/{quote(calendar_id, safe='')}/events/watch",
            access_token,
            WebhookRegistrationError,
            "set up webhook",
            json_body={
                "id": channel_id,
                "type": "web_hook",
                "address": address,
                "expiration": str(expiration_ms),
            },
        )

    async def stop_channel(
        self, access_token: str, channel_id: str, resource_id: str
    ) -> None:
        """POST channels/stop for a previously opened channel."""
        await self._request(
            "POST",
            "/channels/stop",
            access_token,
            ChannelStopError,
            "stop webhook channel",
            json_body={"id": channel_id, "resourceId": resource_id},
        )


_google_client: GoogleCalendarClient | None = None


def get_google_client() -> GoogleCalendarClient:
    """Get or create the shared Google Calendar client (lazy initialization)."""
    global _google_client
    if _google_client is None:
        _google_client = GoogleCalendarClient()
        logger.debug("Created Google Calendar client for %s", GOOGLE_CALENDAR_API_BASE)
    return _google_client


async def close_google_client() -> None:
    global _google_client
    if _google_client is not None:
        await _google_client.aclose()
        _google_client = None
