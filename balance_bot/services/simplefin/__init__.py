"""SimpleFIN upstream client package."""

from balance_bot.services.simplefin.client import (
    MalformedResponseError,
    SimplefinClient,
    SimplefinRequestError,
)

__all__ = [
    "MalformedResponseError",
    "SimplefinClient",
    "SimplefinRequestError",
]
