"""
Configuration Validation

DESIGN DECISION: Configuration problems are caught before anything is
written or scheduled. A bad access URL or cron expression raises
ConfigurationError immediately, so the control plane can report it and
the previous (working) configuration stays on disk untouched.

Validation NEVER silently fixes a value. Blank optional values fall back
to defaults in the models; anything present but wrong is an error here.
"""

import re
from typing import Any
from urllib.parse import urlsplit

from balance_bot.formatting import trim


class ConfigurationError(Exception):
    """Configuration is missing or invalid. Fix the config and reload."""
    pass


# (name, minimum, maximum) per cron field, in order
_CRON_FIELDS = [
    ("second", 0, 59),
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
]

_MONTH_NAMES = {
    name: index + 1
    for index, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun",
         "jul", "aug", "sep", "oct", "nov", "dec"]
    )
}
_DAY_NAMES = {
    name: index
    for index, name in enumerate(["sun", "mon", "tue", "wed", "thu", "fri", "sat"])
}

_STEP_PATTERN = re.compile(r"^(?P<base>[^/]+)(?:/(?P<step>\d+))?$")


def _parse_cron_value(token: str, field: str, minimum: int, maximum: int) -> int:
    lowered = token.lower()
    if field == "month" and lowered in _MONTH_NAMES:
        return _MONTH_NAMES[lowered]
    if field == "day of week" and lowered in _DAY_NAMES:
        return _DAY_NAMES[lowered]
    if not token.isdigit():
        raise ConfigurationError(f"Invalid {field} value: {token!r}")
    value = int(token)
    if not minimum <= value <= maximum:
        raise ConfigurationError(
            f"{field.capitalize()} value {value} is outside {minimum}-{maximum}"
        )
    return value


def _validate_cron_field(expression: str, field: str, minimum: int, maximum: int) -> None:
    for part in expression.split(","):
        match = _STEP_PATTERN.match(part)
        if not match:
            raise ConfigurationError(f"Invalid {field} field: {expression!r}")

        step = match.group("step")
        if step is not None and int(step) == 0:
            raise ConfigurationError(f"Step of zero in {field} field: {expression!r}")

        base = match.group("base")
        if base == "*":
            continue
        if "-" in base:
            start_token, _, end_token = base.partition("-")
            start = _parse_cron_value(start_token, field, minimum, maximum)
            end = _parse_cron_value(end_token, field, minimum, maximum)
            if start > end:
                raise ConfigurationError(f"Reversed range in {field} field: {base!r}")
        else:
            _parse_cron_value(base, field, minimum, maximum)


def validate_cron_expression(expression: Any) -> str:
    """
    Validate a cron schedule expression.

    Accepts five fields (minute hour day-of-month month day-of-week) or
    six with a leading seconds field. Each field may use `*`, numbers,
    ranges, steps, comma lists and month/day names.

    Returns the trimmed expression.

    Raises:
        ConfigurationError: If the expression is blank or malformed
    """
    trimmed = trim(expression)
    if not trimmed:
        raise ConfigurationError("Cron expression must be provided")

    parts = trimmed.split()
    if len(parts) == 5:
        fields = _CRON_FIELDS[1:]
    elif len(parts) == 6:
        fields = _CRON_FIELDS
    else:
        raise ConfigurationError(
            f"Invalid cron expression: {trimmed!r} (expected 5 or 6 fields)"
        )

    for part, (field, minimum, maximum) in zip(parts, fields):
        _validate_cron_field(part, field, minimum, maximum)

    return trimmed


def validate_access_url(access_url: Any) -> str:
    """
    Validate a SimpleFIN access URL.

    The URL must be absolute (scheme and host). Error messages never
    echo the URL back, since it carries credentials.

    Returns the trimmed URL.

    Raises:
        ConfigurationError: If the URL is blank or unparsable
    """
    trimmed = trim(access_url)
    if not trimmed:
        raise ConfigurationError("Access URL must be provided")

    try:
        parts = urlsplit(trimmed)
        host = parts.hostname
        _ = parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid SimpleFIN access URL: {e}") from None

    if parts.scheme not in ("http", "https") or not host:
        raise ConfigurationError(
            "Invalid SimpleFIN access URL: expected an http(s) URL with a host"
        )

    return trimmed
