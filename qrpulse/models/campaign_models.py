"""QR Pulse - Campaign & Scan Event Models.

Attributes are snake_case in Python; the JSON API speaks camelCase
(``targetUrl``, ``createdAt``, ``qrId``) through field aliases.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

CATEGORIES = ["Marketing", "Personal", "Business", "Other"]
DEFAULT_CATEGORY = "Marketing"


def parse_timestamp(value: Any) -> datetime:
    """Normalize epoch milliseconds or ISO-8601 text into an aware UTC datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        # Postgres emits "+00:00" offsets; older Pythons reject a bare "Z"
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported timestamp: {value!r}")


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class DomainModel(BaseModel):
    """Base for API-facing models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Campaign(DomainModel):
    """A named, trackable destination URL represented as a QR code."""

    id: str
    name: str
    target_url: str
    category: str = DEFAULT_CATEGORY
    description: Optional[str] = None
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Union[str, int]) -> str:
        return str(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _normalize_created_at(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class ScanEvent(DomainModel):
    """One recorded visit through a campaign's tracking link."""

    id: str
    qr_id: str
    timestamp: datetime
    device: str = "Desktop"
    location: str = ""
    browser: str = ""

    @field_validator("id", "qr_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Union[str, int]) -> str:
        return str(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class CampaignFields(DomainModel):
    """Fields supplied when creating a campaign (everything but id/created_at).

    Name and URL are optional here so that missing values reach the storage
    layer's own validation instead of failing request parsing.
    """

    name: Optional[str] = None
    target_url: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None


# ── Analytics Output ──


class DayBucket(BaseModel):
    date: str  # YYYY-MM-DD, display time zone
    count: int = 0


class NamedCount(BaseModel):
    name: str
    value: int


class CampaignRank(BaseModel):
    id: str
    name: str
    count: int


class AnalyticsSummary(DomainModel):
    """Aggregate view over the current campaigns and scan log."""

    total_scans: int = 0
    campaign_count: int = 0
    scans_by_day: List[DayBucket] = []
    scans_by_device: List[NamedCount] = []
    scans_by_browser: List[NamedCount] = []
    top_campaigns: List[CampaignRank] = []
