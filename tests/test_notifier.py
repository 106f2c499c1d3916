"""Tests for the Apprise notifier and healthchecks pings."""

import httpx
import pytest

from balance_bot.models.config import ConfigKeyDestination, UrlsDestination
from balance_bot.services.healthchecks import HealthchecksClient
from balance_bot.services.notifier import (
    AppriseNotifier,
    NotificationFailedError,
    NotificationValidationError,
)


def ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"success": True})


class TestAppriseNotifier:
    """Tests for destination routing and failures."""

    async def test_config_key_route(self, recording_transport):
        transport = recording_transport(ok)
        notifier = AppriseNotifier("http://apprise:8000/notify/", http_client=transport.client())

        await notifier.send("Balance update", "body", ConfigKeyDestination(key="family alerts"))

        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://apprise:8000/notify/family%20alerts"
        assert transport.json_body() == {
            "title": "Balance update",
            "body": "body",
            "format": "html",
        }

    async def test_urls_route(self, recording_transport):
        transport = recording_transport(ok)
        notifier = AppriseNotifier("http://apprise:8000/notify", http_client=transport.client())

        await notifier.send(
            "Balance update", "body",
            UrlsDestination(urls=("mailto://me@example.com", "tgram://token/chat")),
        )

        assert str(transport.requests[0].url) == "http://apprise:8000/notify"
        assert transport.json_body()["urls"] == ["mailto://me@example.com", "tgram://token/chat"]

    @pytest.mark.parametrize("destination", [
        None,
        ConfigKeyDestination(key="   "),
        UrlsDestination(urls=()),
        UrlsDestination(urls=(" ",)),
    ])
    async def test_unusable_destination_fails_before_any_request(
        self, recording_transport, destination,
    ):
        transport = recording_transport(ok)
        notifier = AppriseNotifier("http://apprise:8000/notify", http_client=transport.client())

        with pytest.raises(NotificationValidationError, match="No Apprise destination"):
            await notifier.send("t", "b", destination)

        assert transport.requests == []

    async def test_non_success_status(self, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(500, text="gateway down"))
        notifier = AppriseNotifier("http://apprise:8000/notify", http_client=transport.client())

        with pytest.raises(NotificationFailedError) as exc_info:
            await notifier.send("t", "b", ConfigKeyDestination(key="k"))

        assert exc_info.value.status_code == 500
        assert "gateway down" in str(exc_info.value)
        assert len(transport.requests) == 1

    def test_blank_endpoint(self):
        with pytest.raises(NotificationValidationError):
            AppriseNotifier("  ")


class TestHealthchecksClient:
    """Tests for the best-effort lifecycle pings."""

    async def test_disabled_without_url(self):
        client = HealthchecksClient(None)

        assert not client.is_enabled
        await client.notify_start()
        await client.notify_success({"accountsFetched": 1})
        await client.aclose()

    async def test_ping_variants(self, recording_transport):
        transport = recording_transport(ok)
        client = HealthchecksClient("https://hc.example/ping/abc/", http_client=transport.client())

        await client.notify_start()
        await client.notify_success({"accountsFetched": 2})
        await client.notify_failure({"error": "boom"})

        assert [(r.method, str(r.url)) for r in transport.requests] == [
            ("GET", "https://hc.example/ping/abc/start"),
            ("POST", "https://hc.example/ping/abc"),
            ("POST", "https://hc.example/ping/abc/fail"),
        ]
        assert transport.json_body(1) == {"accountsFetched": 2}

    async def test_failures_are_swallowed(self, recording_transport):
        def broken(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = HealthchecksClient("https://hc.example/ping/abc", http_client=recording_transport(broken).client())

        await client.notify_start()

    async def test_error_status_is_not_raised(self, recording_transport):
        transport = recording_transport(lambda request: httpx.Response(404))
        client = HealthchecksClient("https://hc.example/ping/abc", http_client=transport.client())

        await client.notify_success({"accountsFetched": 0})

        assert len(transport.requests) == 1
