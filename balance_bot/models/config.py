"""
Config Document Models

The config document is the single JSON file the control plane edits:
SimpleFIN access, Apprise endpoint, notification targets, schedule and
storage paths.

DESIGN DECISION: Sanitisation lives in the models. Every time a document
is validated (on read and before every write) strings are trimmed, id and
URL lists are deduplicated, and empty optional fields disappear. Nothing
downstream has to re-check these.

On disk the keys are camelCase (`accessUrl`, `appriseUrls`, ...); in
Python they are snake_case.
"""

import math
from typing import Any, Optional, Union

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from balance_bot.formatting import clean_list, trim


logger = structlog.get_logger(__name__)

WILDCARD = "*"

DEFAULT_CACHE_FILE = "cache.json"
DEFAULT_CACHE_TTL_MS = 60 * 60 * 1000
DEFAULT_APPRISE_API_URL = "http://apprise:8000/notify"
DEFAULT_CRON_EXPRESSION = "0 * * * *"
DEFAULT_STATE_FILE = "state.json"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# DESTINATIONS
# =============================================================================

class ConfigKeyDestination(BaseModel):
    """Send through a config key stored on the Apprise gateway."""

    model_config = ConfigDict(frozen=True)

    key: str

    @property
    def is_usable(self) -> bool:
        return bool(self.key.strip())


class UrlsDestination(BaseModel):
    """Send to an explicit list of Apprise URLs."""

    model_config = ConfigDict(frozen=True)

    urls: tuple[str, ...]

    @property
    def is_usable(self) -> bool:
        return any(u.strip() for u in self.urls)


Destination = Union[ConfigKeyDestination, UrlsDestination]


# =============================================================================
# TARGETS
# =============================================================================

class NotificationTarget(_CamelModel):
    """
    Who is told about which accounts, and where.

    `account_ids` may contain "*" to watch every account.

    When both a config key and URLs are configured the config key wins;
    the URLs stay on disk but are not used for sending.
    """

    name: Optional[str] = None
    account_ids: list[str] = Field(default_factory=list)
    apprise_urls: Optional[list[str]] = None
    apprise_config_key: Optional[str] = None

    _destination: Optional[Destination] = PrivateAttr(default=None)

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return trim(v)

    @field_validator("account_ids", mode="before")
    @classmethod
    def clean_account_ids(cls, v: Any) -> list[str]:
        return clean_list(v)

    @field_validator("apprise_urls", mode="before")
    @classmethod
    def clean_urls(cls, v: Any) -> Optional[list[str]]:
        return clean_list(v) or None

    @field_validator("apprise_config_key", mode="before")
    @classmethod
    def clean_config_key(cls, v: Any) -> Optional[str]:
        return trim(v) or None

    def model_post_init(self, __context: Any) -> None:
        """Resolve the destination once, when the target is validated."""
        if self.apprise_config_key:
            self._destination = ConfigKeyDestination(key=self.apprise_config_key)
        elif self.apprise_urls:
            self._destination = UrlsDestination(urls=tuple(self.apprise_urls))
        else:
            self._destination = None

    @property
    def destination(self) -> Optional[Destination]:
        return self._destination

    @property
    def label(self) -> str:
        return self.name or "unnamed"

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.account_ids

    def matches(self, account_id: str) -> bool:
        return self.is_wildcard or account_id in self.account_ids


def sanitize_targets(targets: Any) -> list[NotificationTarget]:
    """
    Validate raw target payloads into clean NotificationTargets.

    Targets that end up with no destination are dropped: they could
    never deliver anything.
    """
    if not isinstance(targets, (list, tuple)):
        return []

    sanitized = []
    for raw in targets:
        if isinstance(raw, NotificationTarget):
            raw = raw.model_dump(by_alias=True, exclude_none=True)
        if not isinstance(raw, dict):
            continue
        target = NotificationTarget.model_validate(raw)
        if target.destination is None:
            logger.warning("dropping_target_without_destination", target=target.label)
            continue
        sanitized.append(target)
    return sanitized


# =============================================================================
# DOCUMENT SECTIONS
# =============================================================================

class SimplefinSection(_CamelModel):
    access_url: str = ""
    cache_file_path: str = DEFAULT_CACHE_FILE
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS

    @field_validator("access_url", mode="before")
    @classmethod
    def trim_access_url(cls, v: Any) -> str:
        return trim(v)

    @field_validator("cache_file_path", mode="before")
    @classmethod
    def default_cache_file(cls, v: Any) -> str:
        return trim(v) or DEFAULT_CACHE_FILE

    @field_validator("cache_ttl_ms", mode="before")
    @classmethod
    def normalize_cache_ttl(cls, v: Any) -> int:
        """Missing or non-numeric falls back to one hour; negatives clamp to 0."""
        if v is None or isinstance(v, bool):
            return DEFAULT_CACHE_TTL_MS
        try:
            parsed = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CACHE_TTL_MS
        if not math.isfinite(parsed):
            return DEFAULT_CACHE_TTL_MS
        return max(0, int(parsed))


class NotifierSection(_CamelModel):
    apprise_api_url: str = DEFAULT_APPRISE_API_URL

    @field_validator("apprise_api_url", mode="before")
    @classmethod
    def default_api_url(cls, v: Any) -> str:
        return trim(v) or DEFAULT_APPRISE_API_URL


class NotificationsSection(_CamelModel):
    targets: list[NotificationTarget] = Field(default_factory=list)

    @field_validator("targets", mode="before")
    @classmethod
    def sanitize(cls, v: Any) -> list[NotificationTarget]:
        return sanitize_targets(v)


class PollingSection(_CamelModel):
    cron_expression: str = DEFAULT_CRON_EXPRESSION

    @field_validator("cron_expression", mode="before")
    @classmethod
    def default_cron(cls, v: Any) -> str:
        return trim(v) or DEFAULT_CRON_EXPRESSION


class StorageSection(_CamelModel):
    state_file_path: str = DEFAULT_STATE_FILE

    @field_validator("state_file_path", mode="before")
    @classmethod
    def default_state_file(cls, v: Any) -> str:
        return trim(v) or DEFAULT_STATE_FILE


class HealthchecksSection(_CamelModel):
    ping_url: Optional[str] = None

    @field_validator("ping_url", mode="before")
    @classmethod
    def trim_ping_url(cls, v: Any) -> Optional[str]:
        return trim(v).rstrip("/") or None


class MetadataSection(_CamelModel):
    file_path: Optional[str] = None


class ConfigDocument(_CamelModel):
    """The whole persisted configuration."""

    simplefin: SimplefinSection = Field(default_factory=SimplefinSection)
    notifier: NotifierSection = Field(default_factory=NotifierSection)
    notifications: NotificationsSection = Field(default_factory=NotificationsSection)
    polling: PollingSection = Field(default_factory=PollingSection)
    storage: StorageSection = Field(default_factory=StorageSection)
    healthchecks: HealthchecksSection = Field(default_factory=HealthchecksSection)
    metadata: MetadataSection = Field(default_factory=MetadataSection)

    @field_validator(
        "simplefin", "notifier", "notifications", "polling",
        "storage", "healthchecks", "metadata",
        mode="before",
    )
    @classmethod
    def null_section_to_default(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def targets(self) -> list[NotificationTarget]:
        return self.notifications.targets

    def to_json_dict(self) -> dict[str, Any]:
        """Dump in the on-disk shape: camelCase keys, empty optionals removed."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def sanitized(self) -> "ConfigDocument":
        """Run every sanitising validator again and return a fresh copy."""
        return ConfigDocument.model_validate(self.to_json_dict())
