"""QR Pulse - Sarvam AI Provider."""

from typing import Optional
from sarvamai import AsyncSarvamAI

from qrpulse.ai.base_provider import AIProvider
from qrpulse.config import settings
from qrpulse.core.logging import get_logger

logger = get_logger("ai.sarvam")


class SarvamProvider(AIProvider):
    """Sarvam AI provider (model: sarvam-m)."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.sarvam_api_key
        self.client = (
            AsyncSarvamAI(api_subscription_key=self.api_key) if self.api_key else None
        )

    def is_available(self) -> bool:
        return self.client is not None

    async def generate_text(
        self, system_prompt: str, user_prompt: str, max_tokens: int = 200
    ) -> str:
        if not self.is_available():
            raise RuntimeError("Sarvam provider not configured")

        try:
            response = await self.client.chat.completions(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.7,
                max_tokens=max_tokens,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Sarvam generation failed: {e}")
            raise
