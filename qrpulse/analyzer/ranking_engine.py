"""QR Pulse - Campaign Ranking Engine."""

from collections import Counter
from typing import Dict, List, Sequence

from qrpulse.models.campaign_models import Campaign, CampaignRank, ScanEvent

TOP_CAMPAIGNS = 5


def campaign_totals(scans: Sequence[ScanEvent]) -> Dict[str, int]:
    """Scan count per campaign id (orphaned events included)."""
    return dict(Counter(scan.qr_id for scan in scans))


def rank_campaigns(
    campaigns: Sequence[Campaign],
    scans: Sequence[ScanEvent],
    limit: int = TOP_CAMPAIGNS,
) -> List[CampaignRank]:
    """Campaigns by scan count, descending, capped at ``limit``.

    The sort is stable: equal counts keep the order of ``campaigns``.
    """
    totals = campaign_totals(scans)
    ranked = sorted(
        (CampaignRank(id=c.id, name=c.name, count=totals.get(c.id, 0)) for c in campaigns),
        key=lambda r: r.count,
        reverse=True,
    )
    return ranked[: max(limit, 0)]
