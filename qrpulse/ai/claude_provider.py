"""QR Pulse - Anthropic Claude Provider."""

from typing import Optional
from anthropic import AsyncAnthropic

from qrpulse.ai.base_provider import AIProvider
from qrpulse.config import settings
from qrpulse.core.logging import get_logger

logger = get_logger("ai.claude")

CLAUDE_MODEL = "claude-sonnet-4-20250514"


class ClaudeProvider(AIProvider):
    """Anthropic Claude provider."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.client = AsyncAnthropic(api_key=self.api_key) if self.api_key else None

    def is_available(self) -> bool:
        return self.client is not None

    async def generate_text(
        self, system_prompt: str, user_prompt: str, max_tokens: int = 200
    ) -> str:
        if not self.is_available():
            raise RuntimeError("Claude provider not configured")

        try:
            response = await self.client.messages.create(
                model=CLAUDE_MODEL,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
            return response.content[0].text if response.content else ""
        except Exception as e:
            logger.error(f"Claude generation failed: {e}")
            raise
