"""QR Pulse - Analytics & Scan Log Routes."""

from datetime import datetime, timezone
from typing import List, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from qrpulse.ai.oracle import INSIGHT_NO_DATA, SuggestionOracle
from qrpulse.analyzer.export import export_filename, export_scans_csv
from qrpulse.analyzer.pipeline import build_summary, oracle_stats, resolve_timezone
from qrpulse.api.deps import get_oracle, get_storage
from qrpulse.config import settings
from qrpulse.models.campaign_models import AnalyticsSummary, Campaign, ScanEvent
from qrpulse.storage.base import BackendUnavailable, StorageAdapter
from qrpulse.core.logging import get_logger

logger = get_logger("api.analytics")

router = APIRouter(prefix="/api", tags=["Analytics"])


async def _snapshot(storage: StorageAdapter) -> Tuple[List[Campaign], List[ScanEvent], bool]:
    """Current (campaigns, scans); empty and flagged degraded if the backend is down."""
    try:
        campaigns = await storage.list_campaigns()
        scans = await storage.list_scans()
    except BackendUnavailable as e:
        logger.error(f"Analytics snapshot unavailable: {e}")
        return [], [], True
    return campaigns, scans, False


@router.get("/scans")
async def list_scans(storage: StorageAdapter = Depends(get_storage)):
    """Raw scan log, newest first."""
    try:
        scans = await storage.list_scans()
    except BackendUnavailable as e:
        logger.error(f"Scan log unavailable: {e}")
        return {"status": "degraded", "count": 0, "scans": []}
    return {"status": "success", "count": len(scans), "scans": scans}


@router.get("/analytics", response_model=AnalyticsSummary)
async def analytics_summary(storage: StorageAdapter = Depends(get_storage)):
    campaigns, scans, _ = await _snapshot(storage)
    return build_summary(
        campaigns,
        scans,
        tz=resolve_timezone(settings.display_timezone),
        top_limit=settings.top_campaigns_limit,
    )


@router.get("/analytics/export.csv")
async def export_csv(storage: StorageAdapter = Depends(get_storage)):
    """Scan log as a CSV attachment named after today's date."""
    tz = resolve_timezone(settings.display_timezone)
    campaigns, scans, _ = await _snapshot(storage)
    body = export_scans_csv(campaigns, scans, tz)
    filename = export_filename(datetime.now(timezone.utc).astimezone(tz).date())
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/analytics/insight")
async def analytics_insight(
    storage: StorageAdapter = Depends(get_storage),
    oracle: SuggestionOracle = Depends(get_oracle),
):
    """One-line AI reading of the current numbers (fallback text on failure)."""
    campaigns, scans, degraded = await _snapshot(storage)
    if not scans:
        return {"status": "degraded" if degraded else "no_data", "insight": INSIGHT_NO_DATA}
    summary = build_summary(
        campaigns,
        scans,
        tz=resolve_timezone(settings.display_timezone),
        top_limit=settings.top_campaigns_limit,
    )
    insight = await oracle.analyze_analytics(oracle_stats(summary))
    return {"status": "success", "insight": insight}
