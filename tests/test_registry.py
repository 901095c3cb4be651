"""
Test cases for the campaign registry helpers.
"""
import unittest

from qrpulse.campaigns.registry import CampaignRegistry, build_tracking_url
from qrpulse.database import create_db_engine, init_db
from qrpulse.models.campaign_models import CampaignFields
from qrpulse.storage.local import LocalStorage

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestTrackingUrl(unittest.TestCase):

    def test_appends_tracking_param(self):
        self.assertEqual(
            build_tracking_url("https://qr.example/", "scan", "abc"),
            "https://qr.example/?scan=abc",
        )

    def test_keeps_existing_query_and_replaces_param(self):
        url = build_tracking_url("https://qr.example/app?lang=en&scan=old", "scan", "new")
        self.assertEqual(url, "https://qr.example/app?lang=en&scan=new")

    def test_bare_host_gets_root_path(self):
        self.assertEqual(build_tracking_url("https://qr.example", "scan", "1"), "https://qr.example/?scan=1")


class TestCampaignRegistry(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        engine = create_db_engine("sqlite://")
        init_db(engine)
        self.storage = LocalStorage(engine)
        self.registry = CampaignRegistry(self.storage, "https://qr.example/")

    async def test_create_list_delete(self):
        c = await self.registry.create(CampaignFields(name="Flyer A", target_url="https://example.com/a"))
        self.assertEqual([x.id for x in await self.registry.list()], [c.id])
        self.assertEqual(self.registry.tracking_url(c.id), f"https://qr.example/?scan={c.id}")
        await self.registry.delete(c.id)
        self.assertIsNone(await self.registry.get(c.id))

    async def test_qr_png(self):
        c = await self.registry.create(CampaignFields(name="Poster", target_url="https://example.com"))
        png = await self.registry.qr_png(c.id, box_size=2)
        self.assertTrue(png.startswith(PNG_SIGNATURE))
        self.assertIsNone(await self.registry.qr_png("unknown"))

    async def test_simulate_scan(self):
        c = await self.registry.create(CampaignFields(name="Sim", target_url="https://example.com"))
        self.assertTrue(await self.registry.simulate_scan(c.id))
        self.assertFalse(await self.registry.simulate_scan("unknown"))
        scans = await self.storage.list_scans()
        self.assertEqual([s.qr_id for s in scans], [c.id])


if __name__ == '__main__':
    unittest.main()
