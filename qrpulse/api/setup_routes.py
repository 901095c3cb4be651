"""QR Pulse - Backend Status & One-time Setup Routes."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from qrpulse.api.deps import get_storage
from qrpulse.config import settings
from qrpulse.storage.base import BackendWriteError, StorageAdapter, ValidationError
from qrpulse.storage.factory import resolve_storage, save_credentials
from qrpulse.storage.local import LocalStorage
from qrpulse.core.logging import get_logger

logger = get_logger("api.setup")

router = APIRouter(prefix="/api", tags=["System"])


class SetupRequest(BaseModel):
    """Request body for POST /api/setup."""

    backend_url: str
    backend_key: str


@router.get("/status")
async def storage_status(storage: StorageAdapter = Depends(get_storage)):
    """Which backend is active; the page shows the setup form when local."""
    info = storage.describe()
    return {
        "status": "success",
        "mode": info["backend"],
        "remote_configured": info["backend"] == "remote",
        "env_configured": settings.remote_configured,
        "storage": info,
    }


@router.post("/setup")
async def save_setup(body: SetupRequest, request: Request):
    """Persist remote credentials and switch the active backend."""
    if settings.remote_configured:
        raise HTTPException(
            status_code=409, detail="Backend is configured by environment variables."
        )
    engine = request.app.state.engine
    try:
        save_credentials(LocalStorage(engine), body.backend_url, body.backend_key)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackendWriteError as e:
        raise HTTPException(status_code=503, detail=str(e))

    previous = getattr(request.app.state, "storage", None)
    request.app.state.storage = resolve_storage(settings, engine)
    if previous is not None:
        await previous.close()
    logger.info("Active storage switched", extra={"backend": request.app.state.storage.name})
    return {"status": "success", "storage": request.app.state.storage.describe()}
