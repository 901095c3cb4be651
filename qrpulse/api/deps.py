"""QR Pulse - Request Dependencies.

The storage adapter and oracle are built once in the app lifespan and held
on ``app.state``; routes receive them through these providers so tests can
swap them with ``app.dependency_overrides``.
"""

from fastapi import Depends, HTTPException, Request

from qrpulse.ai.oracle import SuggestionOracle
from qrpulse.campaigns.registry import CampaignRegistry
from qrpulse.config import settings
from qrpulse.storage.base import StorageAdapter
from qrpulse.tracking.redirector import ScanRedirector


def get_storage(request: Request) -> StorageAdapter:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="Storage backend not initialised.")
    return storage


def get_oracle(request: Request) -> SuggestionOracle:
    oracle = getattr(request.app.state, "oracle", None)
    if oracle is None:
        oracle = SuggestionOracle()
        request.app.state.oracle = oracle
    return oracle


def get_registry(storage: StorageAdapter = Depends(get_storage)) -> CampaignRegistry:
    return CampaignRegistry(
        storage,
        public_base_url=settings.public_base_url,
        tracking_param=settings.tracking_param,
    )


def get_redirector(storage: StorageAdapter = Depends(get_storage)) -> ScanRedirector:
    return ScanRedirector(
        storage,
        tracking_param=settings.tracking_param,
        record_timeout=settings.scan_record_timeout,
    )
