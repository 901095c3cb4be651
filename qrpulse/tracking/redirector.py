"""QR Pulse - Scan Redirector.

Idle → Resolving → {Redirecting, NotFound}.

Delivery of the scan event is at-most-once and best effort: the write is
issued and awaited (bounded by ``record_timeout``) before the redirect is
returned, but a failed or slow write never holds the visitor back and is
never retried.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from qrpulse.models.campaign_models import Campaign
from qrpulse.storage.base import StorageAdapter, StorageError
from qrpulse.core.logging import get_logger

logger = get_logger("tracking.redirector")


class RedirectState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    REDIRECTING = "redirecting"
    NOT_FOUND = "not_found"


@dataclass
class RedirectOutcome:
    state: RedirectState
    tracking_id: Optional[str] = None
    campaign: Optional[Campaign] = None
    scan_recorded: bool = False

    @property
    def destination(self) -> Optional[str]:
        return self.campaign.target_url if self.campaign else None


class ScanRedirector:
    """Turns an inbound tracking id into a recorded scan plus a destination."""

    def __init__(
        self,
        storage: StorageAdapter,
        tracking_param: str = "scan",
        record_timeout: float = 5.0,
    ):
        self.storage = storage
        self.tracking_param = tracking_param
        self.record_timeout = record_timeout

    def extract_tracking_id(self, query_params: Mapping[str, str]) -> Optional[str]:
        value = (query_params.get(self.tracking_param) or "").strip()
        return value or None

    async def resolve(
        self, query_params: Mapping[str, str], user_agent: str = ""
    ) -> RedirectOutcome:
        tracking_id = self.extract_tracking_id(query_params)
        if tracking_id is None:
            return RedirectOutcome(state=RedirectState.IDLE)

        logger.debug(f"{RedirectState.RESOLVING.value}: {tracking_id}")
        try:
            campaign = await self.storage.get_campaign(tracking_id)
        except StorageError as e:
            logger.error(f"Campaign lookup failed, rendering app instead: {e}")
            campaign = None

        if campaign is None:
            logger.info(
                "Tracking id not found, falling through",
                extra={"campaign_id": tracking_id},
            )
            return RedirectOutcome(state=RedirectState.NOT_FOUND, tracking_id=tracking_id)

        recorded = await self._record(campaign.id, user_agent)
        logger.info(
            f"Redirecting to {campaign.target_url}", extra={"campaign_id": campaign.id}
        )
        return RedirectOutcome(
            state=RedirectState.REDIRECTING,
            tracking_id=tracking_id,
            campaign=campaign,
            scan_recorded=recorded,
        )

    async def _record(self, campaign_id: str, user_agent: str) -> bool:
        try:
            return await asyncio.wait_for(
                self.storage.record_scan(campaign_id, user_agent),
                timeout=self.record_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Scan write exceeded {self.record_timeout}s, redirecting anyway",
                extra={"campaign_id": campaign_id},
            )
            return False
