"""QR Pulse - Storage Adapter Contract.

One strategy interface over campaign records and the append-only scan log.
Concrete strategies implement the underscore hooks; validation and the
best-effort scan contract live here so every backend shares them.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from qrpulse.models.campaign_models import (
    DEFAULT_CATEGORY,
    Campaign,
    CampaignFields,
    ScanEvent,
)
from qrpulse.core.logging import get_logger

logger = get_logger("storage")

LOCATION_PLACEHOLDER = "Detected"


class StorageError(Exception):
    """Base for storage adapter failures."""


class ValidationError(StorageError):
    """Required campaign fields are missing or malformed."""


class BackendWriteError(StorageError):
    """The backend rejected a write; the message is the backend's own."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class BackendUnavailable(StorageError):
    """No backend is configured, or it cannot be reached."""


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def detect_device(user_agent: str) -> str:
    return "Mobile" if "Mobile" in (user_agent or "") else "Desktop"


def detect_browser(user_agent: str) -> str:
    """Coarse browser family from user-agent substrings.

    Order matters: Edge advertises Chrome, and Chrome advertises Safari.
    """
    ua = user_agent or ""
    if "Edg" in ua:
        return "Edge"
    if "Firefox" in ua:
        return "Firefox"
    if "Chrome" in ua:
        return "Chrome"
    if "Safari" in ua:
        return "Safari"
    return "Mobile Browser"


def is_absolute_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_campaign_fields(fields: CampaignFields) -> Dict[str, Any]:
    """Check required fields and return the cleaned values.

    Raises:
        ValidationError: name or destination URL absent, or URL not absolute.
    """
    name = (fields.name or "").strip()
    target_url = (fields.target_url or "").strip()
    if not name:
        raise ValidationError("Campaign name is required")
    if not target_url:
        raise ValidationError("Destination URL is required")
    if not is_absolute_url(target_url):
        raise ValidationError(f"Destination URL must be an absolute http(s) URL: {target_url}")
    return {
        "name": name,
        "target_url": target_url,
        "category": (fields.category or "").strip() or DEFAULT_CATEGORY,
        "description": (fields.description or "").strip() or None,
    }


class StorageAdapter(ABC):
    """Uniform async CRUD + scan log over a single backend."""

    name: str = "abstract"

    # ── Campaigns ──

    @abstractmethod
    async def list_campaigns(self) -> List[Campaign]:
        """All campaigns, newest first.

        Raises:
            BackendUnavailable: the backend cannot be reached.
        """
        ...

    @abstractmethod
    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Look up one campaign. Returns None when it does not exist."""
        ...

    async def create_campaign(self, fields: CampaignFields) -> Campaign:
        """Validate and persist a campaign, returning it with id and created_at.

        Raises:
            ValidationError: missing name or destination URL.
            BackendWriteError: the backend rejected the insert.
        """
        values = validate_campaign_fields(fields)
        campaign = await self._insert_campaign(values)
        logger.info(
            f"Campaign created: {campaign.name}",
            extra={"campaign_id": campaign.id, "backend": self.name},
        )
        return campaign

    @abstractmethod
    async def _insert_campaign(self, values: Dict[str, Any]) -> Campaign:
        ...

    @abstractmethod
    async def delete_campaign(self, campaign_id: str) -> None:
        """Delete a campaign and its scan events. Unknown ids are a no-op."""
        ...

    # ── Scan log ──

    @abstractmethod
    async def list_scans(self) -> List[ScanEvent]:
        """All scan events, newest first."""
        ...

    async def record_scan(self, campaign_id: str, user_agent: str = "") -> bool:
        """Append one scan event. Best effort: never raises.

        Returns True when the backend accepted the write.
        """
        event = {
            "qr_id": str(campaign_id),
            "timestamp": datetime.now(timezone.utc),
            "device": detect_device(user_agent),
            "location": LOCATION_PLACEHOLDER,
            "browser": detect_browser(user_agent),
        }
        try:
            await self._append_scan(event)
        except Exception as e:
            logger.warning(
                f"Scan recording failed (ignored): {e}",
                extra={"campaign_id": str(campaign_id), "backend": self.name},
            )
            return False
        logger.info(
            "Scan recorded",
            extra={"campaign_id": str(campaign_id), "backend": self.name},
        )
        return True

    @abstractmethod
    async def _append_scan(self, event: Dict[str, Any]) -> None:
        ...

    # ── Lifecycle ──

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.name}

    async def close(self) -> None:
        return None
