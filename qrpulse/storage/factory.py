"""QR Pulse - Storage Strategy Selection.

Resolution order: environment credentials, then credentials saved through
the setup form, then the local store.
"""

from typing import Dict, Optional

from sqlalchemy.engine import Engine

from qrpulse.config import Settings
from qrpulse.storage.base import (
    BackendUnavailable,
    StorageAdapter,
    ValidationError,
    is_absolute_url,
)
from qrpulse.storage.local import CONFIG_KEY, LocalStorage
from qrpulse.storage.remote import RemoteStorage
from qrpulse.core.logging import get_logger

logger = get_logger("storage.factory")


def _remote(settings: Settings, base_url: str, access_key: str) -> RemoteStorage:
    return RemoteStorage(
        base_url=base_url,
        access_key=access_key,
        campaigns_table=settings.campaigns_table,
        scans_table=settings.scans_table,
        scan_campaign_column=settings.scan_campaign_column,
    )


def load_saved_credentials(local: LocalStorage) -> Optional[Dict[str, str]]:
    saved = local.read_json(CONFIG_KEY)
    if isinstance(saved, dict) and saved.get("backend_url") and saved.get("backend_key"):
        return {"backend_url": saved["backend_url"], "backend_key": saved["backend_key"]}
    return None


def save_credentials(local: LocalStorage, backend_url: str, backend_key: str) -> None:
    """Persist setup-form credentials in the local store.

    Raises:
        ValidationError: endpoint is not an absolute URL or the key is empty.
    """
    backend_url = (backend_url or "").strip()
    backend_key = (backend_key or "").strip()
    if not backend_url or not is_absolute_url(backend_url):
        raise ValidationError("Backend URL must be an absolute http(s) URL")
    if not backend_key:
        raise ValidationError("Backend access key is required")
    local.write_json(CONFIG_KEY, {"backend_url": backend_url, "backend_key": backend_key})
    logger.info("Backend credentials saved from setup form", extra={"backend": "remote"})


def resolve_storage(settings: Settings, engine: Engine) -> StorageAdapter:
    """Pick the active storage strategy once, for injection everywhere."""
    if settings.remote_configured:
        logger.info("☁️  Storage: remote (environment)", extra={"backend": "remote"})
        return _remote(settings, settings.backend_url, settings.backend_key)

    local = LocalStorage(engine)
    try:
        saved = load_saved_credentials(local)
    except BackendUnavailable as e:
        logger.warning(f"Saved setup credentials unreadable, ignoring: {e}")
        saved = None
    if saved:
        logger.info("☁️  Storage: remote (saved setup)", extra={"backend": "remote"})
        return _remote(settings, saved["backend_url"], saved["backend_key"])

    logger.info("💾 Storage: local only", extra={"backend": "local"})
    return local
