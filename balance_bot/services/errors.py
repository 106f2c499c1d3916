"""Exceptions shared by the outbound HTTP services."""

from typing import Optional


class UpstreamRequestError(Exception):
    """
    An external API answered with an error or an unusable payload.

    Never retried within the call that raised it.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)
