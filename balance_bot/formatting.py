"""
Formatting Helpers

Small, pure helpers shared by the monitor, the stores and the clients:
string trimming, order-preserving deduplication, numeric parsing,
currency formatting and access-URL redaction.
"""

import html
import math
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit, urlunsplit


# en-US renderings for the codes we see in practice.
# Codes outside this table fall back to "<CODE> 1,234.56".
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "KRW": "₩",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "MXN": "MX$",
    "BRL": "R$",
    "HKD": "HK$",
    "ILS": "₪",
    "VND": "₫",
    "PHP": "₱",
    "TWD": "NT$",
}

ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "ISK", "HUF", "TWD"}


def trim(value: Any) -> str:
    """Trim a value to a string, treating None as empty."""
    if value is None:
        return ""
    return str(value).strip()


def unique_entries(items: Iterable[str]) -> list[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(items))


def clean_list(values: Any) -> list[str]:
    """Trim, drop blanks and deduplicate a list of strings."""
    if not isinstance(values, (list, tuple, set)):
        return []
    return unique_entries(t for t in (trim(v) for v in values) if t)


def parse_numeric(value: Any) -> Optional[float]:
    """
    Parse a number or numeric string into a finite float.

    Returns None for anything else (booleans included).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def format_currency(amount: float, currency: str) -> str:
    """
    Format an amount the way an en-US reader expects it.

    >>> format_currency(1234.5, "USD")
    '$1,234.50'

    Unknown but well-formed ISO codes render as "CHF 1,234.50".
    Anything else falls back to "<amount to 2 decimals> <code>".
    """
    code = trim(currency).upper()
    if not math.isfinite(amount):
        return f"{amount} {currency}"
    if len(code) != 3 or not code.isalpha():
        return f"{amount:.2f} {currency}"

    decimals = 0 if code in ZERO_DECIMAL_CURRENCIES else 2
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.{decimals}f}"

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def redact_access_url(value: Any) -> str:
    """
    Mask the credentials embedded in an access URL.

    Use this for every user-facing or logged preview of the URL.
    """
    trimmed = trim(value)
    if not trimmed:
        return ""
    try:
        parts = urlsplit(trimmed)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return "(redacted)"
    if not parts.scheme or not host:
        return "(redacted)"

    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None:
        netloc = f"{host}:{port}"
    if parts.username or parts.password:
        userinfo = "****" if parts.username else ""
        if parts.password:
            userinfo += ":****"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


BALANCE_UPDATE_TITLE = "Balance update"
GAIN_COLOR = "#007700"
LOSS_COLOR = "#B00000"


def format_balance_update(
    account_name: str,
    delta: float,
    new_balance: float,
    currency: str,
) -> tuple[str, str]:
    """
    Build the (title, html body) of a balance change notification.

    The body names the account, shows the signed change with a trend
    marker, and the new balance.
    """
    gained = delta > 0
    signed_delta = ("+" if gained else "-") + format_currency(abs(delta), currency)
    trend = "📈" if gained else "📉"
    color = GAIN_COLOR if gained else LOSS_COLOR

    body = "<br>".join([
        f"Account: <b>{html.escape(account_name)}</b>",
        f'Change: {trend} <font color="{color}">{signed_delta}</font>',
        f"New balance: <b>{format_currency(new_balance, currency)}</b>",
    ])
    return BALANCE_UPDATE_TITLE, body
