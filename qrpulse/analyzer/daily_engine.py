"""QR Pulse - Daily Volume Engine.

Buckets scan events into calendar days in the display time zone.
"""

from collections import Counter
from datetime import datetime, timedelta, tzinfo
from typing import List, Sequence

from qrpulse.models.campaign_models import DayBucket, ScanEvent

TRAILING_DAYS = 7


def compute_daily_counts(
    scans: Sequence[ScanEvent],
    now: datetime,
    tz: tzinfo,
    days: int = TRAILING_DAYS,
) -> List[DayBucket]:
    """Scan counts for the trailing ``days`` calendar days, oldest first.

    Today is the last bucket. Days without scans are zero-filled; scans
    outside the window are ignored.
    """
    today = now.astimezone(tz).date()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

    per_day = Counter(scan.timestamp.astimezone(tz).date() for scan in scans)

    return [DayBucket(date=day.isoformat(), count=per_day.get(day, 0)) for day in window]
