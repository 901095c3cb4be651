"""QR Pulse - Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Remote backend (PostgREST-style) ──
    backend_url: str = ""
    backend_key: str = ""
    campaigns_table: str = "qr_codes"
    scans_table: str = "scans"
    scan_campaign_column: str = "qr_id"  # some schemas use campaign_id

    # ── Local store ──
    local_database_url: str = ""

    # ── Tracking ──
    public_base_url: str = "http://localhost:8000/"
    tracking_param: str = "scan"
    redirect_delay_ms: int = 0
    scan_record_timeout: float = 5.0

    # ── Analytics ──
    display_timezone: str = "UTC"
    top_campaigns_limit: int = 5

    # ── AI Providers ──
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    sarvam_api_key: Optional[str] = None
    default_ai_provider: str = "sarvam"  # sarvam | openai | claude

    # ── App ──
    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        return bool(self.backend_url and self.backend_key)

    @property
    def effective_local_database_url(self) -> str:
        """Return the configured local store URL, otherwise a SQLite file."""
        if self.local_database_url:
            return self.local_database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/qrpulse.db"
        return "sqlite:///./qrpulse.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
