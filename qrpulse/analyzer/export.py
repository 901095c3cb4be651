"""QR Pulse - CSV Export of the scan log."""

import csv
import io
from datetime import date, tzinfo
from typing import Sequence

from qrpulse.models.campaign_models import Campaign, ScanEvent

CSV_HEADER = ["id", "campaign", "timestamp", "device", "browser"]
DELETED_CAMPAIGN = "Deleted campaign"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def export_filename(today: date) -> str:
    return f"qrpulse-scans-{today.isoformat()}.csv"


def export_scans_csv(
    campaigns: Sequence[Campaign],
    scans: Sequence[ScanEvent],
    tz: tzinfo,
) -> str:
    """One row per scan event, in the order given.

    Values containing commas, quotes or newlines are quoted.
    """
    names = {c.id: c.name for c in campaigns}
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for scan in scans:
        writer.writerow(
            [
                scan.id,
                names.get(scan.qr_id, DELETED_CAMPAIGN),
                scan.timestamp.astimezone(tz).strftime(TIMESTAMP_FORMAT),
                scan.device,
                scan.browser,
            ]
        )
    return buffer.getvalue()
