"""QR Pulse - Local Storage Strategy.

Keeps campaigns and scans as serialized JSON arrays under fixed keys in a
local key-value table. Calls are synchronous and wrapped in the async
interface.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from qrpulse.models.campaign_models import Campaign, ScanEvent, to_epoch_ms
from qrpulse.models.local_models import LocalStorageEntry
from qrpulse.storage.base import (
    BackendUnavailable,
    BackendWriteError,
    StorageAdapter,
    new_id,
)
from qrpulse.core.logging import get_logger, mask_url

logger = get_logger("storage.local")

QR_KEY = "qrpulse_qrcodes"
SCAN_KEY = "qrpulse_scans"
CONFIG_KEY = "qrpulse_config"


class LocalStorage(StorageAdapter):
    """Single-node store backed by the local database engine."""

    name = "local"

    def __init__(self, engine: Engine):
        self.engine = engine

    # ── Raw key-value access ──

    def read_json(self, key: str, default: Any = None) -> Any:
        try:
            with Session(self.engine) as session:
                entry = session.get(LocalStorageEntry, key)
        except SQLAlchemyError as e:
            raise BackendUnavailable(f"Local store read failed: {e}") from e
        if entry is None:
            return default
        try:
            return json.loads(entry.value)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt local entry '{key}', using default: {e}")
            return default

    def write_json(self, key: str, value: Any) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(LocalStorageEntry, key)
                if entry is None:
                    entry = LocalStorageEntry(key=key)
                entry.value = json.dumps(value)
                entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                session.commit()
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Local store write failed: {e}") from e

    def delete_key(self, key: str) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(LocalStorageEntry, key)
                if entry is not None:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as e:
            raise BackendWriteError(f"Local store write failed: {e}") from e

    def _campaign_rows(self) -> List[Dict[str, Any]]:
        return self.read_json(QR_KEY, [])

    def _scan_rows(self) -> List[Dict[str, Any]]:
        return self.read_json(SCAN_KEY, [])

    # ── Campaigns ──

    async def list_campaigns(self) -> List[Campaign]:
        campaigns = [Campaign.model_validate(row) for row in self._campaign_rows()]
        # Rows are prepended on insert; sort anyway for rows written elsewhere
        return sorted(campaigns, key=lambda c: c.created_at, reverse=True)

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        for row in self._campaign_rows():
            if str(row.get("id")) == str(campaign_id):
                return Campaign.model_validate(row)
        return None

    async def _insert_campaign(self, values: Dict[str, Any]) -> Campaign:
        rows = self._campaign_rows()
        existing = {str(r.get("id")) for r in rows}
        campaign_id = new_id()
        while campaign_id in existing:
            campaign_id = new_id()

        row = {
            "id": campaign_id,
            "name": values["name"],
            "targetUrl": values["target_url"],
            "category": values["category"],
            "description": values["description"],
            "createdAt": to_epoch_ms(datetime.now(timezone.utc)),
        }
        self.write_json(QR_KEY, [row, *rows])
        return Campaign.model_validate(row)

    async def delete_campaign(self, campaign_id: str) -> None:
        cid = str(campaign_id)
        campaigns = [r for r in self._campaign_rows() if str(r.get("id")) != cid]
        scans = [r for r in self._scan_rows() if str(r.get("qrId")) != cid]
        self.write_json(QR_KEY, campaigns)
        self.write_json(SCAN_KEY, scans)
        logger.info("Campaign deleted", extra={"campaign_id": cid, "backend": self.name})

    # ── Scan log ──

    async def list_scans(self) -> List[ScanEvent]:
        scans = [ScanEvent.model_validate(row) for row in self._scan_rows()]
        return sorted(scans, key=lambda s: s.timestamp, reverse=True)

    async def _append_scan(self, event: Dict[str, Any]) -> None:
        row = {
            "id": new_id(),
            "qrId": event["qr_id"],
            "timestamp": to_epoch_ms(event["timestamp"]),
            "device": event["device"],
            "location": event["location"],
            "browser": event["browser"],
        }
        self.write_json(SCAN_KEY, [row, *self._scan_rows()])

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.name, "location": mask_url(str(self.engine.url))}
