"""
Test cases for the remote (PostgREST-style) storage strategy.
"""
import json
import unittest
from itertools import count

import httpx

from qrpulse.models.campaign_models import CampaignFields
from qrpulse.storage.base import BackendUnavailable, BackendWriteError
from qrpulse.storage.remote import RemoteStorage, campaign_from_row, scan_from_row

BASE_URL = "https://project.example.co"


class FakePostgREST:
    """Just enough of a PostgREST server for the adapter's queries."""

    def __init__(self):
        self.tables = {"qr_codes": [], "scans": []}
        self.ids = count(1)
        self.clock = count(0)
        self.requests = []

    def _matches(self, row, params):
        for key, value in params.items():
            if key in ("select", "order", "limit"):
                continue
            if value.startswith("eq.") and str(row.get(key)) != value[3:]:
                return False
        return True

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        params = dict(request.url.params)
        rows = self.tables[table]

        if request.method == "GET":
            found = [r for r in rows if self._matches(r, params)]
            order = params.get("order", "")
            if order.endswith(".desc"):
                found.sort(key=lambda r: r[order[:-5]], reverse=True)
            if "limit" in params:
                found = found[: int(params["limit"])]
            return httpx.Response(200, json=found)

        if request.method == "POST":
            row = json.loads(request.content)
            row["id"] = next(self.ids)
            stamp = f"2026-03-01T10:00:{next(self.clock):02d}+00:00"
            if table == "qr_codes":
                row["created_at"] = stamp
            rows.insert(0, row)
            if request.headers.get("Prefer") == "return=representation":
                return httpx.Response(201, json=[row])
            return httpx.Response(201)

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if not self._matches(r, params)]
            return httpx.Response(204)

        return httpx.Response(405)


def make_remote(handler) -> RemoteStorage:
    return RemoteStorage(
        BASE_URL,
        "anon-key-1234",
        transport=httpx.MockTransport(handler),
        retry_base_delay=0,
    )


class TestRemoteStorage(unittest.IsolatedAsyncioTestCase):
    """Remote strategy against an in-process fake backend."""

    def setUp(self):
        self.server = FakePostgREST()
        self.storage = make_remote(self.server.handle)

    async def asyncTearDown(self):
        await self.storage.close()

    async def test_create_maps_snake_case_and_sends_auth_headers(self):
        campaign = await self.storage.create_campaign(
            CampaignFields(name="Flyer A", target_url="https://example.com/a")
        )
        self.assertEqual(campaign.id, "1")
        self.assertEqual(campaign.target_url, "https://example.com/a")
        self.assertEqual(campaign.created_at.year, 2026)

        sent = self.server.requests[-1]
        self.assertEqual(sent.headers["apikey"], "anon-key-1234")
        self.assertEqual(sent.headers["Authorization"], "Bearer anon-key-1234")
        self.assertIn("target_url", json.loads(sent.content))

    async def test_list_newest_first(self):
        a = await self.storage.create_campaign(CampaignFields(name="A", target_url="https://a.example"))
        b = await self.storage.create_campaign(CampaignFields(name="B", target_url="https://b.example"))
        ids = [c.id for c in await self.storage.list_campaigns()]
        self.assertEqual(ids, [b.id, a.id])

    async def test_get_unknown_is_none(self):
        self.assertIsNone(await self.storage.get_campaign("42"))

    async def test_get_rejected_lookup_is_none(self):
        def handler(request):
            return httpx.Response(400, json={"message": "invalid input syntax for type bigint"})

        storage = make_remote(handler)
        self.assertIsNone(await storage.get_campaign("not-a-number"))
        await storage.close()

    async def test_record_and_cascade_delete(self):
        c = await self.storage.create_campaign(CampaignFields(name="C", target_url="https://c.example"))
        for _ in range(3):
            self.assertTrue(await self.storage.record_scan(c.id, "Mobile Safari"))
        self.assertEqual(len(await self.storage.list_scans()), 3)

        await self.storage.delete_campaign(c.id)

        self.assertIsNone(await self.storage.get_campaign(c.id))
        self.assertEqual(await self.storage.list_scans(), [])

    async def test_write_rejection_surfaces_backend_message(self):
        def handler(request):
            return httpx.Response(
                409, json={"message": 'duplicate key value violates unique constraint "qr_codes_name_key"'}
            )

        storage = make_remote(handler)
        with self.assertRaises(BackendWriteError) as ctx:
            await storage.create_campaign(CampaignFields(name="Dup", target_url="https://d.example"))
        self.assertEqual(
            str(ctx.exception),
            'duplicate key value violates unique constraint "qr_codes_name_key"',
        )
        self.assertEqual(ctx.exception.status_code, 409)
        await storage.close()

    async def test_unreachable_backend_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        storage = make_remote(handler)
        with self.assertRaises(BackendUnavailable):
            await storage.list_campaigns()
        await storage.close()

    async def test_server_errors_are_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503, json={"message": "busy"})
            return httpx.Response(200, json=[])

        storage = make_remote(handler)
        self.assertEqual(await storage.list_scans(), [])
        self.assertEqual(len(calls), 3)
        await storage.close()

    async def test_record_scan_never_raises(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        storage = make_remote(handler)
        self.assertFalse(await storage.record_scan("1", "UA"))
        await storage.close()

    async def test_scan_insert_is_not_repeated_after_server_error(self):
        stored = []

        def handler(request):
            # The row is committed even though the gateway answers 502
            stored.append(json.loads(request.content))
            if len(stored) == 1:
                return httpx.Response(502, json={"message": "bad gateway"})
            return httpx.Response(201)

        storage = make_remote(handler)
        self.assertFalse(await storage.record_scan("1", "UA"))
        self.assertEqual(len(stored), 1)
        await storage.close()

    async def test_campaign_insert_is_not_repeated_after_timeout(self):
        stored = []

        def handler(request):
            stored.append(json.loads(request.content))
            raise httpx.ReadTimeout("timed out", request=request)

        storage = make_remote(handler)
        with self.assertRaises(BackendUnavailable):
            await storage.create_campaign(CampaignFields(name="Once", target_url="https://o.example"))
        self.assertEqual(len(stored), 1)
        await storage.close()

    async def test_deletes_are_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, json={"message": "busy"})
            return httpx.Response(204)

        storage = make_remote(handler)
        await storage.delete_campaign("1")
        self.assertEqual([r.method for r in calls], ["DELETE", "DELETE", "DELETE"])
        await storage.close()


class TestRowMapping(unittest.TestCase):

    def test_campaign_row(self):
        c = campaign_from_row(
            {
                "id": 7,
                "name": "Poster",
                "target_url": "https://p.example",
                "category": "Business",
                "description": "Scan me",
                "created_at": "2026-02-01T08:30:00.123456+00:00",
            }
        )
        self.assertEqual(c.id, "7")
        dumped = c.model_dump(by_alias=True)
        self.assertEqual(dumped["targetUrl"], "https://p.example")
        self.assertIn("createdAt", dumped)

    def test_campaign_row_without_created_at(self):
        with self.assertRaises(BackendUnavailable) as ctx:
            campaign_from_row({"id": 7, "name": "Poster", "target_url": "https://p.example"})
        self.assertIn("created_at", str(ctx.exception))

    def test_scan_row_accepts_campaign_id_column(self):
        s = scan_from_row(
            {
                "id": 1,
                "campaign_id": 7,
                "timestamp": "2026-02-01T08:30:00Z",
                "device": "Mobile",
                "location": "Detected",
                "browser": "Chrome",
            }
        )
        self.assertEqual(s.qr_id, "7")
        self.assertEqual(s.timestamp.hour, 8)

    def test_scan_row_numeric_timestamp(self):
        s = scan_from_row({"id": "x", "qr_id": "abc", "timestamp": 1767225600000})
        self.assertEqual(s.timestamp.year, 2026)


if __name__ == '__main__':
    unittest.main()
