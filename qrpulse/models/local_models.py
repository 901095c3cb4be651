"""QR Pulse - Local Key-Value Store Model."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class LocalStorageEntry(SQLModel, table=True):
    """One serialized JSON document stored under a fixed key.

    Campaigns and scans each live as a single JSON array; the whole array
    is rewritten on every change.
    """

    __tablename__ = "local_storage"

    key: str = Field(primary_key=True, description="Fixed storage key")
    value: str = Field(default="[]", description="Serialized JSON document")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
