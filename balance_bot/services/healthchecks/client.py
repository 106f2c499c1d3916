"""
Healthchecks Pings

Optional dead-man's-switch integration (healthchecks.io style). When a
ping URL is configured the monitor reports:
- `<url>/start` when a run begins
- `<url>`       when it finishes, with the run summary
- `<url>/fail`  when it fails, with the summary and the error

Pings are best-effort: failures are logged as warnings and never raised,
so a monitoring outage cannot break balance checks.
"""

from typing import Any, Optional

import httpx
import structlog

from balance_bot.config import get_settings
from balance_bot.formatting import trim


logger = structlog.get_logger(__name__)


class HealthchecksClient:
    """Sends run lifecycle pings. Disabled (no-op) without a ping URL."""

    def __init__(
        self,
        ping_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url = trim(ping_url).rstrip("/")
        http_settings = get_settings().http
        self._timeout = timeout or http_settings.healthchecks_timeout_seconds
        self._owns_client = http_client is None and self.is_enabled
        self._client = http_client
        if self._client is None and self.is_enabled:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": http_settings.user_agent},
            )

    @property
    def is_enabled(self) -> bool:
        return bool(self._base_url)

    def _ping_url(self, variant: str) -> str:
        if variant == "start":
            return f"{self._base_url}/start"
        if variant == "fail":
            return f"{self._base_url}/fail"
        return self._base_url

    async def _send(self, variant: str, payload: Optional[dict[str, Any]] = None) -> None:
        if not self.is_enabled:
            return

        url = self._ping_url(variant)
        try:
            if payload:
                response = await self._client.post(url, json=payload, timeout=self._timeout)
            else:
                response = await self._client.get(url, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.warning("healthchecks_ping_error", variant=variant, error=str(e))
            return

        if not response.is_success:
            logger.warning(
                "healthchecks_ping_failed",
                variant=variant,
                status=response.status_code,
            )

    async def notify_start(self) -> None:
        await self._send("start")

    async def notify_success(self, payload: Optional[dict[str, Any]] = None) -> None:
        await self._send("success", payload)

    async def notify_failure(self, payload: Optional[dict[str, Any]] = None) -> None:
        await self._send("fail", payload)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
