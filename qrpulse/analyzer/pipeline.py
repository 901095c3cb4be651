"""QR Pulse - Analytics Pipeline.

Runs every engine over one snapshot of (campaigns, scans) and produces the
AnalyticsSummary the dashboard renders.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from qrpulse.models.campaign_models import AnalyticsSummary, Campaign, ScanEvent
from qrpulse.analyzer.daily_engine import compute_daily_counts
from qrpulse.analyzer.ranking_engine import TOP_CAMPAIGNS, rank_campaigns
from qrpulse.analyzer.breakdown_engine import count_by_field
from qrpulse.core.logging import get_logger

logger = get_logger("analyzer.pipeline")


def resolve_timezone(name: str) -> tzinfo:
    """Return the named IANA zone, falling back to UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown display timezone '{name}', using UTC")
        return timezone.utc


def build_summary(
    campaigns: Sequence[Campaign],
    scans: Sequence[ScanEvent],
    tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    top_limit: int = TOP_CAMPAIGNS,
) -> AnalyticsSummary:
    now = now or datetime.now(timezone.utc)
    summary = AnalyticsSummary(
        total_scans=len(scans),
        campaign_count=len(campaigns),
        scans_by_day=compute_daily_counts(scans, now, tz),
        scans_by_device=count_by_field(scans, "device"),
        scans_by_browser=count_by_field(scans, "browser"),
        top_campaigns=rank_campaigns(campaigns, scans, top_limit),
    )
    logger.info(
        f"Summary built: {summary.total_scans} scans over {summary.campaign_count} campaigns"
    )
    return summary


def oracle_stats(summary: AnalyticsSummary) -> dict:
    """Compact aggregate handed to the suggestion oracle."""
    return {
        "total": summary.total_scans,
        "qrCount": summary.campaign_count,
        "last7Days": [b.count for b in summary.scans_by_day],
        "topCampaigns": [{"name": r.name, "scans": r.count} for r in summary.top_campaigns],
    }
