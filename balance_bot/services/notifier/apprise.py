"""
Apprise Notifier

Posts one message to an Apprise API gateway, which fans it out to the
actual messaging backends.

Routing depends on the destination:
- ConfigKeyDestination(k): POST <base>/<url-encoded k>, no `urls` field.
  The gateway looks the key up server-side.
- UrlsDestination(urls):   POST <base> with an explicit `urls` list.

A destination that resolves to neither is rejected before any request.
"""

from typing import Optional
from urllib.parse import quote

import httpx
import structlog

from balance_bot.config import get_settings
from balance_bot.formatting import trim
from balance_bot.models.config import ConfigKeyDestination, Destination, UrlsDestination
from balance_bot.services.errors import UpstreamRequestError


logger = structlog.get_logger(__name__)

MESSAGE_FORMAT = "html"


class NotificationValidationError(ValueError):
    """The notification has no usable destination."""
    pass


class NotificationFailedError(UpstreamRequestError):
    """The gateway answered with a non-2xx status."""
    pass


class AppriseNotifier:
    """Thin async client for the Apprise API `notify` endpoint."""

    def __init__(
        self,
        apprise_api_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            apprise_api_url: Gateway endpoint, e.g. http://apprise:8000/notify
            http_client: Shared client; one is created (and owned) if omitted
            timeout: Request timeout in seconds
        """
        base_url = trim(apprise_api_url).rstrip("/")
        if not base_url:
            raise NotificationValidationError("Apprise API URL is required")

        http_settings = get_settings().http
        self._base_url = base_url
        self._timeout = timeout or http_settings.notifier_timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": http_settings.user_agent},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _route(self, destination: Optional[Destination]) -> tuple[str, Optional[list[str]]]:
        """Resolve (endpoint, urls) or fail if the destination is unusable."""
        if isinstance(destination, ConfigKeyDestination) and destination.is_usable:
            return f"{self._base_url}/{quote(destination.key.strip(), safe='')}", None
        if isinstance(destination, UrlsDestination) and destination.is_usable:
            return self._base_url, [u.strip() for u in destination.urls if u.strip()]

        raise NotificationValidationError("No Apprise destination provided for notification.")

    async def send(
        self,
        title: str,
        body: str,
        destination: Optional[Destination],
    ) -> None:
        """
        Send one notification.

        Raises:
            NotificationValidationError: No usable destination (no request made)
            NotificationFailedError: Gateway answered non-2xx
            httpx.HTTPError: Transport failures
        """
        endpoint, urls = self._route(destination)

        payload = {
            "title": title,
            "body": body,
            "format": MESSAGE_FORMAT,
        }
        if urls:
            payload["urls"] = urls

        response = await self._client.post(endpoint, json=payload, timeout=self._timeout)
        if not response.is_success:
            raise NotificationFailedError(
                f"Apprise notification failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.debug("notification_posted", mode="urls" if urls else "config_key")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
