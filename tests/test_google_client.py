"""Google Calendar client error handling."""

import httpx
import pytest

from core.errors import ChannelStopError, ProviderFetchError
from core.google_client import GoogleCalendarClient


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleCalendarClient(http_client=http_client, base_url="https://cal.test/v3")


@pytest.mark.asyncio
async def test_transport_error_becomes_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderFetchError, match="connection refused"):
        await _client(handler).list_events("token", "primary", {})


@pytest.mark.asyncio
async def test_error_without_json_uses_status_text():
    def handler(request):
        return httpx.Response(503, text="<html>down</html>")

    with pytest.raises(ProviderFetchError, match="Service Unavailable") as exc_info:
        await _client(handler).list_events("token", "primary", {})

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_missing_items_is_an_empty_list():
    def handler(request):
        return httpx.Response(200, json={"kind": "calendar#events"})

    assert await _client(handler).list_events("token", "primary", {}) == []


@pytest.mark.asyncio
async def test_stop_channel_errors_are_typed():
    def handler(request):
        return httpx.Response(404, json={"error": {"message": "Channel 'x' not found"}})

    with pytest.raises(ChannelStopError, match="not found"):
        await _client(handler).stop_channel("token", "x", "primary")
