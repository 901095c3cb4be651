"""QR Pulse - Device / Browser Breakdown Engine."""

from collections import Counter
from typing import List, Sequence

from qrpulse.models.campaign_models import NamedCount, ScanEvent

BREAKDOWN_FIELDS = ("device", "browser")


def count_by_field(scans: Sequence[ScanEvent], field: str) -> List[NamedCount]:
    """Group scans by the exact stored label of ``field``.

    Counts only, highest first; ties keep first-seen order.
    """
    if field not in BREAKDOWN_FIELDS:
        raise ValueError(f"Unsupported breakdown field: {field}")
    counts = Counter(getattr(scan, field) for scan in scans)
    return [NamedCount(name=name, value=value) for name, value in counts.most_common()]
