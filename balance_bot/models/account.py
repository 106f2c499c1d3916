"""
Upstream Account Models

SimpleFIN returns loosely-typed account records: balances arrive as
numeric strings, ids can be missing, and any number of extra fields
may be present. These models accept that shape as-is and expose the
few derived values the monitor needs.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from balance_bot.formatting import parse_numeric, trim


DEFAULT_CURRENCY = "USD"


class BalanceInfo(BaseModel):
    """A resolved, numeric balance and its currency."""

    model_config = ConfigDict(frozen=True)

    amount: float
    currency: str = DEFAULT_CURRENCY


class Account(BaseModel):
    """
    One account record as returned by the upstream bridge.

    An account without an id is still a valid record here; the monitor
    decides to skip it.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    nickname: Optional[str] = None
    balance: Any = None
    available_balance: Any = Field(default=None, alias="available-balance")
    currency: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, (dict, list)):
            return None
        return trim(v) or None

    @field_validator("name", "nickname", "currency", mode="before")
    @classmethod
    def coerce_label(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, (dict, list)):
            return None
        return str(v)

    @property
    def display_name(self) -> str:
        """name, then nickname, then the raw id."""
        return self.name or self.nickname or self.id or ""

    def resolve_balance(self) -> Optional[BalanceInfo]:
        """
        Resolve the balance to report on.

        A numeric available-balance wins over balance. Returns None when
        neither parses as a number.
        """
        amount = parse_numeric(self.available_balance)
        if amount is None:
            amount = parse_numeric(self.balance)
        if amount is None:
            return None
        return BalanceInfo(
            amount=amount,
            currency=trim(self.currency) or DEFAULT_CURRENCY,
        )
