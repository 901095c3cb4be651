"""QR Pulse - Campaign Routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from qrpulse.api.deps import get_registry
from qrpulse.campaigns.registry import SIMULATED_USER_AGENT, CampaignRegistry
from qrpulse.models.campaign_models import Campaign, CampaignFields, DomainModel
from qrpulse.storage.base import BackendUnavailable, BackendWriteError, ValidationError
from qrpulse.core.logging import get_logger

logger = get_logger("api.campaigns")

router = APIRouter(prefix="/api/campaigns", tags=["Campaigns"])


# ── Response Models ──


class CampaignView(Campaign):
    """Campaign plus its ready-to-encode tracking link."""

    tracking_url: str


class CampaignListResponse(DomainModel):
    status: str = "success"
    count: int
    campaigns: List[CampaignView]


class ScanResult(BaseModel):
    status: str
    recorded: bool


def _view(registry: CampaignRegistry, campaign: Campaign) -> CampaignView:
    return CampaignView(**campaign.model_dump(), tracking_url=registry.tracking_url(campaign.id))


# ── Endpoints ──


@router.get("", response_model=CampaignListResponse)
async def list_campaigns(registry: CampaignRegistry = Depends(get_registry)):
    """All campaigns, newest first. Degrades to an empty list if the backend is down."""
    try:
        campaigns = await registry.list()
    except BackendUnavailable as e:
        logger.error(f"Campaign list unavailable: {e}")
        return CampaignListResponse(status="degraded", count=0, campaigns=[])
    return CampaignListResponse(
        count=len(campaigns), campaigns=[_view(registry, c) for c in campaigns]
    )


@router.post("", response_model=CampaignView, status_code=201)
async def create_campaign(
    fields: CampaignFields, registry: CampaignRegistry = Depends(get_registry)
):
    """Create a campaign. Backend rejections are returned verbatim."""
    try:
        campaign = await registry.create(fields)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _view(registry, campaign)


@router.get("/{campaign_id}", response_model=CampaignView)
async def get_campaign(campaign_id: str, registry: CampaignRegistry = Depends(get_registry)):
    try:
        campaign = await registry.get(campaign_id)
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found.")
    return _view(registry, campaign)


@router.delete("/{campaign_id}")
async def delete_campaign(campaign_id: str, registry: CampaignRegistry = Depends(get_registry)):
    """Delete a campaign and its scan events. Unknown ids succeed."""
    try:
        await registry.delete(campaign_id)
    except BackendWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"status": "success", "id": campaign_id}


@router.get("/{campaign_id}/qr.png")
async def campaign_qr_image(
    campaign_id: str,
    box_size: int = Query(10, ge=1, le=40),
    download: bool = False,
    registry: CampaignRegistry = Depends(get_registry),
):
    """PNG QR code encoding the campaign's tracking link."""
    try:
        png = await registry.qr_png(campaign_id, box_size=box_size)
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if png is None:
        raise HTTPException(status_code=404, detail="Campaign not found.")
    headers = {}
    if download:
        headers["Content-Disposition"] = f'attachment; filename="qr-{campaign_id}.png"'
    return Response(content=png, media_type="image/png", headers=headers)


@router.post("/{campaign_id}/simulate-scan", response_model=ScanResult)
async def simulate_scan(
    campaign_id: str,
    request: Request,
    registry: CampaignRegistry = Depends(get_registry),
):
    """Record a test scan as if the QR code had been visited."""
    user_agent = request.headers.get("user-agent") or SIMULATED_USER_AGENT
    try:
        if await registry.get(campaign_id) is None:
            raise HTTPException(status_code=404, detail="Campaign not found.")
        recorded = await registry.simulate_scan(campaign_id, user_agent)
    except BackendUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ScanResult(status="success" if recorded else "not_recorded", recorded=recorded)
