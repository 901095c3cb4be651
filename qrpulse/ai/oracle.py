"""QR Pulse - Suggestion Oracle.

Wraps whichever AI provider is configured. Every failure degrades to a fixed
fallback string; callers never see an oracle error.
"""

import json
from typing import Optional

from qrpulse.ai.base_provider import AIProvider, OracleError
from qrpulse.ai.claude_provider import ClaudeProvider
from qrpulse.ai.openai_provider import OpenAIProvider
from qrpulse.ai.sarvam_provider import SarvamProvider
from qrpulse.config import settings
from qrpulse.core.logging import get_logger

logger = get_logger("ai.oracle")

PROVIDERS = {
    "sarvam": SarvamProvider,
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
}

CTA_EMPTY = "Scan to learn more"
CTA_FALLBACK = "Scan to explore"
INSIGHT_EMPTY = "Keep monitoring your scans for trends."
INSIGHT_FALLBACK = "Scan frequency is consistent with your typical activity."
INSIGHT_NO_DATA = "No data available yet."

COPYWRITER_PROMPT = """You write short marketing copy for printed QR code flyers.
Reply with the requested text only: no quotes, no preamble, no markdown."""

ANALYST_PROMPT = """You are a concise marketing analyst reviewing QR code scan statistics.
Use only the numbers provided. Do not invent figures.
Reply in plain text, one or two sentences."""


def select_provider(provider_name: str = "auto") -> tuple[str, AIProvider]:
    """Select and return an available AI provider.

    When provider_name is 'auto', tries DEFAULT_AI_PROVIDER first,
    then falls through remaining providers.

    Raises:
        OracleError: nothing usable is configured.
    """
    if provider_name == "auto":
        default = settings.default_ai_provider
        if default in PROVIDERS:
            p = PROVIDERS[default]()
            if p.is_available():
                return default, p
        for name, cls in PROVIDERS.items():
            if name == default:
                continue  # already tried
            provider = cls()
            if provider.is_available():
                return name, provider
        raise OracleError(
            "No AI provider configured. Set SARVAM_API_KEY, OPENAI_API_KEY, or ANTHROPIC_API_KEY."
        )
    if provider_name in PROVIDERS:
        provider = PROVIDERS[provider_name]()
        if not provider.is_available():
            raise OracleError(f"{provider_name} provider not configured.")
        return provider_name, provider
    raise OracleError(f"Unknown provider: {provider_name}.")


def _clean(text: str) -> str:
    return text.strip().strip('"').strip()


class SuggestionOracle:
    """Fallible text service for CTA suggestions and scan insights."""

    def __init__(self, provider: Optional[AIProvider] = None, provider_name: str = "auto"):
        self._provider = provider
        self.provider_name = provider_name

    def _get_provider(self) -> AIProvider:
        if self._provider is None:
            self.provider_name, self._provider = select_provider(self.provider_name)
        return self._provider

    async def _ask(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        """Call the provider, wrapping every failure as OracleError."""
        try:
            provider = self._get_provider()
            return _clean(await provider.generate_text(system_prompt, user_prompt, max_tokens))
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(str(e)) from e

    async def suggest_cta(self, url: str, category: str) -> str:
        """Catchy call to action (max 10 words) for a flyer pointing at ``url``."""
        prompt = (
            f'Given a URL "{url}" and category "{category}", suggest a catchy short '
            f'"Call to Action" for a QR Code flyer (max 10 words). Return only the text.'
        )
        try:
            return await self._ask(COPYWRITER_PROMPT, prompt, max_tokens=60) or CTA_EMPTY
        except OracleError as e:
            logger.warning(f"CTA suggestion unavailable, using fallback: {e}")
            return CTA_FALLBACK

    async def analyze_analytics(self, stats: dict) -> str:
        """One or two sentence insight about aggregate scan stats."""
        prompt = (
            f"Analyze these scan stats for a set of QR codes: {json.dumps(stats)}. "
            f"Provide a very brief 1-2 sentence insight or recommendation for improvement."
        )
        try:
            return await self._ask(ANALYST_PROMPT, prompt, max_tokens=150) or INSIGHT_EMPTY
        except OracleError as e:
            logger.warning(f"Analytics insight unavailable, using fallback: {e}")
            return INSIGHT_FALLBACK
