"""QR Pulse - Campaign Registry.

Create / list / delete over the injected storage adapter, plus the tracking
link and QR image for each campaign.
"""

from io import BytesIO
from typing import List, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

import qrcode
import qrcode.constants

from qrpulse.models.campaign_models import Campaign, CampaignFields
from qrpulse.storage.base import StorageAdapter
from qrpulse.core.logging import get_logger

logger = get_logger("campaigns.registry")

SIMULATED_USER_AGENT = "QRPulse-Simulator/1.0"


def build_tracking_url(base_url: str, tracking_param: str, campaign_id: str) -> str:
    """``base_url`` with the tracking parameter set to ``campaign_id``."""
    scheme, netloc, path, query, fragment = urlsplit(base_url)
    params = [(k, v) for k, v in parse_qsl(query) if k != tracking_param]
    params.append((tracking_param, str(campaign_id)))
    return urlunsplit((scheme, netloc, path or "/", urlencode(params), fragment))


def make_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class CampaignRegistry:
    """Owns the set of campaign records."""

    def __init__(self, storage: StorageAdapter, public_base_url: str, tracking_param: str = "scan"):
        self.storage = storage
        self.public_base_url = public_base_url
        self.tracking_param = tracking_param

    async def create(self, fields: CampaignFields) -> Campaign:
        return await self.storage.create_campaign(fields)

    async def list(self) -> List[Campaign]:
        return await self.storage.list_campaigns()

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        return await self.storage.get_campaign(campaign_id)

    async def delete(self, campaign_id: str) -> None:
        await self.storage.delete_campaign(campaign_id)

    def tracking_url(self, campaign_id: str) -> str:
        return build_tracking_url(self.public_base_url, self.tracking_param, campaign_id)

    async def qr_png(self, campaign_id: str, box_size: int = 10) -> Optional[bytes]:
        """PNG of the campaign's tracking link, or None for unknown ids."""
        campaign = await self.get(campaign_id)
        if campaign is None:
            return None
        return make_qr_png(self.tracking_url(campaign.id), box_size=box_size)

    async def simulate_scan(self, campaign_id: str, user_agent: str = SIMULATED_USER_AGENT) -> bool:
        """Record a test scan without redirecting. False for unknown ids."""
        campaign = await self.get(campaign_id)
        if campaign is None:
            return False
        logger.info("Simulated scan", extra={"campaign_id": campaign.id})
        return await self.storage.record_scan(campaign.id, user_agent)
