"""QR Pulse - AI Suggestion Routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from qrpulse.ai.oracle import SuggestionOracle
from qrpulse.api.deps import get_oracle
from qrpulse.models.campaign_models import DEFAULT_CATEGORY

router = APIRouter(prefix="/api", tags=["AI"])


class SuggestCTARequest(BaseModel):
    """Request body for POST /api/suggest-cta."""

    url: str
    category: Optional[str] = DEFAULT_CATEGORY


class SuggestCTAResponse(BaseModel):
    suggestion: str


@router.post("/suggest-cta", response_model=SuggestCTAResponse)
async def suggest_cta(
    request: SuggestCTARequest,
    oracle: SuggestionOracle = Depends(get_oracle),
):
    """Suggest a call-to-action line for the flyer. Never fails."""
    suggestion = await oracle.suggest_cta(request.url, request.category or DEFAULT_CATEGORY)
    return SuggestCTAResponse(suggestion=suggestion)
