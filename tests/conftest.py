"""Shared test fixtures."""

import json
from typing import Callable

import httpx
import pytest

import balance_bot.audit  # noqa: F401  routes structlog through stdlib logging for caplog
from balance_bot.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point process settings at a throwaway data directory."""
    monkeypatch.setenv("BALANCE_BOT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("BALANCE_BOT_CONFIG_FILE", raising=False)
    get_settings.cache_clear()
    yield tmp_path / "data"
    get_settings.cache_clear()


class RecordingTransport:
    """Collects requests and answers them with a canned handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def recording_transport():
    """Factory for a RecordingTransport around a handler."""
    return RecordingTransport


@pytest.fixture
def accounts_response():
    def respond(accounts: list, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json={"accounts": accounts})
        return handler
    return respond
