"""QR Pulse - Abstract AI Provider."""

from abc import ABC, abstractmethod


class OracleError(Exception):
    """A text-generation call failed or no provider is configured."""


class AIProvider(ABC):
    """Abstract base for short marketing-copy generation.

    The system works without AI; callers substitute fixed fallback text.
    """

    @abstractmethod
    async def generate_text(
        self, system_prompt: str, user_prompt: str, max_tokens: int = 200
    ) -> str:
        """Return the model's reply as plain text (may be empty)."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured and ready."""
        ...
