"""
Test cases for the scan redirect state machine.
"""
import asyncio
import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

from qrpulse.models.campaign_models import Campaign
from qrpulse.storage.base import BackendUnavailable, StorageAdapter
from qrpulse.tracking.redirector import RedirectState, ScanRedirector

KNOWN = Campaign(
    id="c1",
    name="Flyer A",
    target_url="https://dest.example",
    created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
)


def make_storage(campaign=None):
    storage = Mock(spec=StorageAdapter)
    storage.get_campaign = AsyncMock(return_value=campaign)
    storage.record_scan = AsyncMock(return_value=True)
    return storage


class TestScanRedirector(unittest.IsolatedAsyncioTestCase):

    async def test_no_tracking_param_is_idle(self):
        storage = make_storage(KNOWN)
        outcome = await ScanRedirector(storage).resolve({"view": "list"})
        self.assertEqual(outcome.state, RedirectState.IDLE)
        storage.get_campaign.assert_not_awaited()
        storage.record_scan.assert_not_awaited()

    async def test_blank_tracking_param_is_idle(self):
        storage = make_storage(KNOWN)
        outcome = await ScanRedirector(storage).resolve({"scan": "  "})
        self.assertEqual(outcome.state, RedirectState.IDLE)

    async def test_unknown_id_falls_through_without_scan(self):
        storage = make_storage(None)
        outcome = await ScanRedirector(storage).resolve({"scan": "nope"})
        self.assertEqual(outcome.state, RedirectState.NOT_FOUND)
        self.assertIsNone(outcome.destination)
        storage.record_scan.assert_not_awaited()

    async def test_known_id_records_once_and_redirects(self):
        storage = make_storage(KNOWN)
        outcome = await ScanRedirector(storage).resolve({"scan": "c1"}, user_agent="UA/1.0")
        self.assertEqual(outcome.state, RedirectState.REDIRECTING)
        self.assertEqual(outcome.destination, "https://dest.example")
        self.assertTrue(outcome.scan_recorded)
        storage.record_scan.assert_awaited_once_with("c1", "UA/1.0")

    async def test_custom_tracking_param(self):
        storage = make_storage(KNOWN)
        outcome = await ScanRedirector(storage, tracking_param="qr").resolve({"qr": "c1"})
        self.assertEqual(outcome.state, RedirectState.REDIRECTING)

    async def test_lookup_failure_is_not_found(self):
        storage = make_storage()
        storage.get_campaign.side_effect = BackendUnavailable("down")
        outcome = await ScanRedirector(storage).resolve({"scan": "c1"})
        self.assertEqual(outcome.state, RedirectState.NOT_FOUND)
        storage.record_scan.assert_not_awaited()

    async def test_failed_scan_write_still_redirects(self):
        storage = make_storage(KNOWN)
        storage.record_scan.return_value = False
        outcome = await ScanRedirector(storage).resolve({"scan": "c1"})
        self.assertEqual(outcome.state, RedirectState.REDIRECTING)
        self.assertFalse(outcome.scan_recorded)

    async def test_slow_scan_write_does_not_block_redirect(self):
        async def hang(*args):
            await asyncio.sleep(5)
            return True

        storage = make_storage(KNOWN)
        storage.record_scan = AsyncMock(side_effect=hang)
        outcome = await ScanRedirector(storage, record_timeout=0.01).resolve({"scan": "c1"})
        self.assertEqual(outcome.state, RedirectState.REDIRECTING)
        self.assertFalse(outcome.scan_recorded)
        self.assertEqual(outcome.destination, "https://dest.example")


if __name__ == '__main__':
    unittest.main()
