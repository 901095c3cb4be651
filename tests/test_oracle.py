"""
Test cases for the suggestion oracle fallbacks and provider selection.
"""
import unittest
from unittest.mock import AsyncMock, Mock, patch

from qrpulse.ai.base_provider import AIProvider, OracleError
from qrpulse.ai.oracle import (
    CTA_EMPTY,
    CTA_FALLBACK,
    INSIGHT_EMPTY,
    INSIGHT_FALLBACK,
    SuggestionOracle,
    select_provider,
)
from qrpulse.config import settings


def make_provider(reply=None, error=None):
    provider = Mock(spec=AIProvider)
    provider.generate_text = AsyncMock(return_value=reply, side_effect=error)
    provider.is_available.return_value = True
    return provider


class TestSuggestionOracle(unittest.IsolatedAsyncioTestCase):

    async def test_cta_uses_provider_text(self):
        provider = make_provider('"Scan for 20% off today"\n')
        oracle = SuggestionOracle(provider)
        self.assertEqual(
            await oracle.suggest_cta("https://shop.example", "Marketing"),
            "Scan for 20% off today",
        )
        prompt = provider.generate_text.await_args.args[1]
        self.assertIn("https://shop.example", prompt)
        self.assertIn("Marketing", prompt)

    async def test_cta_empty_reply(self):
        oracle = SuggestionOracle(make_provider(""))
        self.assertEqual(await oracle.suggest_cta("https://a.example", "Other"), CTA_EMPTY)

    async def test_cta_failure_uses_fallback(self):
        oracle = SuggestionOracle(make_provider(error=RuntimeError("quota exceeded")))
        self.assertEqual(await oracle.suggest_cta("https://a.example", "Other"), CTA_FALLBACK)

    async def test_insight_failure_uses_fallback(self):
        oracle = SuggestionOracle(make_provider(error=TimeoutError()))
        self.assertEqual(await oracle.analyze_analytics({"total": 3}), INSIGHT_FALLBACK)

    async def test_insight_empty_reply(self):
        oracle = SuggestionOracle(make_provider(""))
        self.assertEqual(await oracle.analyze_analytics({"total": 3}), INSIGHT_EMPTY)

    async def test_no_provider_configured_uses_fallback(self):
        with patch("qrpulse.ai.oracle.select_provider", side_effect=OracleError("none")):
            oracle = SuggestionOracle()
            self.assertEqual(await oracle.suggest_cta("https://a.example", "Other"), CTA_FALLBACK)
            self.assertEqual(await oracle.analyze_analytics({}), INSIGHT_FALLBACK)


class TestSelectProvider(unittest.TestCase):

    def test_nothing_configured_raises(self):
        with patch.object(settings, "sarvam_api_key", None), \
                patch.object(settings, "openai_api_key", None), \
                patch.object(settings, "anthropic_api_key", None):
            with self.assertRaises(OracleError):
                select_provider("auto")
            with self.assertRaises(OracleError):
                select_provider("claude")

    def test_unknown_provider_raises(self):
        with self.assertRaises(OracleError):
            select_provider("gemini")


if __name__ == '__main__':
    unittest.main()
