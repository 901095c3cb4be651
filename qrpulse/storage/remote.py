"""QR Pulse - Remote Storage Strategy.

Talks to a managed relational store through its PostgREST-style HTTP API.
Handles authentication headers, retry logic and the snake_case row schema.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from qrpulse.models.campaign_models import DEFAULT_CATEGORY, Campaign, ScanEvent
from qrpulse.storage.base import (
    BackendUnavailable,
    BackendWriteError,
    StorageAdapter,
)
from qrpulse.core.logging import get_logger, mask_secret

logger = get_logger("storage.remote")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds


class RemoteAPIError(Exception):
    """Raised when the remote backend answers with an error status."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


# ── Row mapping (snake_case wire ⇄ domain) ──


def campaign_from_row(row: Dict[str, Any]) -> Campaign:
    created_at = row.get("created_at")
    if created_at is None:
        raise BackendUnavailable(f"Campaign row {row.get('id')} has no created_at column")
    return Campaign(
        id=row["id"],
        name=row.get("name", ""),
        target_url=row.get("target_url", ""),
        category=row.get("category") or DEFAULT_CATEGORY,
        description=row.get("description"),
        created_at=created_at,
    )


def campaign_to_row(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": values["name"],
        "target_url": values["target_url"],
        "category": values["category"],
        "description": values.get("description"),
    }


def scan_from_row(row: Dict[str, Any]) -> ScanEvent:
    qr_id = row.get("qr_id")
    if qr_id is None:
        qr_id = row.get("campaign_id")
    return ScanEvent(
        id=row["id"],
        qr_id=qr_id,
        timestamp=row.get("timestamp") or row.get("created_at"),
        device=row.get("device") or "Desktop",
        location=row.get("location") or "",
        browser=row.get("browser") or "",
    )


def _error_message(resp: httpx.Response) -> str:
    """Pull the backend's own message out of an error response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or body.get("hint") or str(body)
    return str(body)


class RemoteStorage(StorageAdapter):
    """Async HTTP client for the remote campaign tables."""

    name = "remote"

    def __init__(
        self,
        base_url: str,
        access_key: str,
        campaigns_table: str = "qr_codes",
        scans_table: str = "scans",
        scan_campaign_column: str = "qr_id",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_key = access_key
        self.campaigns_table = campaigns_table
        self.scans_table = scans_table
        self.scan_campaign_column = scan_campaign_column
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}/rest/v1",
                headers={
                    "apikey": self.access_key,
                    "Authorization": f"Bearer {self.access_key}",
                },
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
        headers: Dict[str, str] | None = None,
        retry: bool = True,
    ) -> Any:
        """Make a request with retry + rate-limit handling.

        Inserts pass ``retry=False``: a failed attempt may already be
        committed, so repeating it would duplicate the row.
        """
        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            started = time.monotonic()
            try:
                resp = await client.request(
                    method, path, params=params, json=json, headers=headers
                )
            except httpx.RequestError as e:
                if retry and attempt < MAX_RETRIES:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise BackendUnavailable(
                    f"Remote backend unreachable after {attempt} attempt(s): {e}"
                ) from e

            duration_ms = round((time.monotonic() - started) * 1000, 1)
            logger.debug(
                f"{method} {path} -> {resp.status_code}",
                extra={
                    "endpoint": path,
                    "status_code": resp.status_code,
                    "duration_ms": duration_ms,
                },
            )

            # Rate limited or server error: retry
            if resp.status_code == 429 or resp.status_code >= 500:
                if retry and attempt < MAX_RETRIES:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Remote returned {resp.status_code}. Retrying in {wait}s "
                        f"(attempt {attempt}/{MAX_RETRIES})"
                    )
                    await asyncio.sleep(wait)
                    continue
                raise RemoteAPIError(_error_message(resp), resp.status_code)

            if resp.status_code >= 400:
                raise RemoteAPIError(_error_message(resp), resp.status_code)

            if not resp.content:
                return None
            return resp.json()

        raise BackendUnavailable("Max retries exhausted")

    async def _read(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """GET rows; any backend error becomes BackendUnavailable."""
        try:
            return await self._request("GET", path, params=params) or []
        except RemoteAPIError as e:
            raise BackendUnavailable(f"Remote read failed: {e}") from e

    async def _write(self, method: str, path: str, **kwargs: Any) -> Any:
        """Mutating request; backend rejections surface their own message."""
        try:
            return await self._request(method, path, **kwargs)
        except RemoteAPIError as e:
            raise BackendWriteError(str(e), e.status_code) from e

    # ── Campaigns ──

    async def list_campaigns(self) -> List[Campaign]:
        rows = await self._read(
            f"/{self.campaigns_table}",
            {"select": "*", "order": "created_at.desc"},
        )
        return [campaign_from_row(r) for r in rows]

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        try:
            rows = await self._request(
                "GET",
                f"/{self.campaigns_table}",
                params={"select": "*", "id": f"eq.{campaign_id}", "limit": 1},
            )
        except RemoteAPIError as e:
            if 400 <= e.status_code < 500:
                # e.g. a non-numeric id against an integer column
                logger.warning(f"Lookup rejected, treating as not found: {e}")
                return None
            raise BackendUnavailable(f"Remote read failed: {e}") from e
        if not rows:
            return None
        return campaign_from_row(rows[0])

    async def _insert_campaign(self, values: Dict[str, Any]) -> Campaign:
        rows = await self._write(
            "POST",
            f"/{self.campaigns_table}",
            json=campaign_to_row(values),
            headers={"Prefer": "return=representation"},
            retry=False,
        )
        if not rows:
            raise BackendWriteError("Backend accepted the insert but returned no row")
        return campaign_from_row(rows[0])

    async def delete_campaign(self, campaign_id: str) -> None:
        # Campaign first: if the scan cleanup fails, orphans are tolerated
        # and a retried delete removes them.
        await self._write(
            "DELETE", f"/{self.campaigns_table}", params={"id": f"eq.{campaign_id}"}
        )
        await self._write(
            "DELETE",
            f"/{self.scans_table}",
            params={self.scan_campaign_column: f"eq.{campaign_id}"},
        )
        logger.info(
            "Campaign deleted", extra={"campaign_id": str(campaign_id), "backend": self.name}
        )

    # ── Scan log ──

    async def list_scans(self) -> List[ScanEvent]:
        rows = await self._read(
            f"/{self.scans_table}",
            {"select": "*", "order": "timestamp.desc"},
        )
        return [scan_from_row(r) for r in rows]

    async def _append_scan(self, event: Dict[str, Any]) -> None:
        await self._write(
            "POST",
            f"/{self.scans_table}",
            json={
                self.scan_campaign_column: event["qr_id"],
                "timestamp": event["timestamp"].isoformat(),
                "device": event["device"],
                "location": event["location"],
                "browser": event["browser"],
            },
            headers={"Prefer": "return=minimal"},
            retry=False,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "backend": self.name,
            "location": self.base_url,
            "key": mask_secret(self.access_key),
        }
