"""QR Pulse - FastAPI Application Entry Point.

Trackable QR campaigns: tracking redirects, scan analytics, campaign management.
"""

import html
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from qrpulse.ai.oracle import SuggestionOracle
from qrpulse.api.ai_routes import router as ai_router
from qrpulse.api.analytics_routes import router as analytics_router
from qrpulse.api.campaign_routes import router as campaign_router
from qrpulse.api.deps import get_redirector
from qrpulse.api.setup_routes import router as setup_router
from qrpulse.config import settings
from qrpulse.database import create_db_engine, init_db, test_connection
from qrpulse.storage.factory import resolve_storage
from qrpulse.tracking.redirector import RedirectState, ScanRedirector
from qrpulse.core.logging import get_logger

logger = get_logger("main")

FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 QR Pulse starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    engine = create_db_engine(settings.effective_local_database_url)
    if test_connection(engine):
        try:
            init_db(engine)
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Local store NOT connected; local mode and setup will fail")
    app.state.engine = engine
    app.state.storage = resolve_storage(settings, engine)
    app.state.oracle = SuggestionOracle()
    yield
    await app.state.storage.close()
    engine.dispose()
    logger.info("QR Pulse shut down")


app = FastAPI(
    title="QR Pulse",
    description="Trackable QR code campaigns: redirect-and-log tracking links, scan analytics and AI-suggested calls to action.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(campaign_router)
app.include_router(analytics_router)
app.include_router(ai_router)
app.include_router(setup_router)

# Static files (frontend)
if FRONTEND_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(FRONTEND_DIR)), name="static")


def _delayed_redirect(destination: str, delay_ms: int) -> HTMLResponse:
    """Interstitial page that navigates after a fixed delay."""
    seconds = max(delay_ms, 0) / 1000
    target = html.escape(destination, quote=True)
    body = (
        "<!doctype html><html><head><meta charset='utf-8'>"
        f"<meta http-equiv='refresh' content='{seconds:g};url={target}'>"
        "<title>Redirecting…</title></head>"
        f"<body><p>Redirecting to <a href='{target}'>{target}</a>…</p></body></html>"
    )
    return HTMLResponse(content=body)


@app.get("/", include_in_schema=False)
async def root(request: Request, redirector: ScanRedirector = Depends(get_redirector)):
    """Tracking redirect when the scan parameter is present, else the app page."""
    outcome = await redirector.resolve(
        request.query_params, request.headers.get("user-agent", "")
    )
    if outcome.state == RedirectState.REDIRECTING:
        if settings.redirect_delay_ms > 0:
            return _delayed_redirect(outcome.destination, settings.redirect_delay_ms)
        return RedirectResponse(outcome.destination, status_code=302)

    index = FRONTEND_DIR / "index.html"
    if index.is_file():
        return FileResponse(str(index))
    return HTMLResponse("<!doctype html><title>QR Pulse</title><h1>QR Pulse</h1>")


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "qrpulse",
        "version": "1.0.0",
    }
