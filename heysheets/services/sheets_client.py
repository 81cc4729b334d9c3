"""
Sheets Client - read and append rows through the spreadsheet gateway.

Every operation is exactly one POST to the gateway:
- read:   {"operation": "read", "storeId", "tabName"}          -> {"data": [row, ...]}
- append: {"operation": "append", "storeId", "tabName", "data"} -> any 2xx

The store owner may edit the sheet at any time, so nothing is cached and every
call hits the gateway. There is no retry here; a caller that wants one decides
for itself.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from heysheets.core.config import Settings

logger = logging.getLogger("heysheets.sheets")


@dataclass
class SheetReadResult:
    """Result of reading one tab."""
    success: bool
    tab_name: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class SheetWriteResult:
    """Result of appending one row."""
    success: bool
    tab_name: str
    error: Optional[str] = None
    status_code: Optional[int] = None


class SheetsClient:
    """
    Async HTTP client for the spreadsheet gateway.

    Uses httpx.AsyncClient with:
    - One request per operation, no retries
    - A finite per-call timeout
    - The caller's bearer token on every request
    - Failures returned as results, never raised
    """

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsClient":
        return cls(base_url=settings.SHEETS_SERVICE_URL, timeout=settings.SHEETS_REQUEST_TIMEOUT)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _headers(self, auth_token: str, request_id: Optional[str]) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {auth_token}"}
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def _post(
        self,
        payload: Dict[str, Any],
        auth_token: str,
        request_id: Optional[str],
    ) -> httpx.Response:
        client = await self._get_client()
        return await client.post(self.base_url, json=payload, headers=self._headers(auth_token, request_id))

    async def read(
        self,
        store_id: str,
        tab_name: str,
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> SheetReadResult:
        """
        Read every row of a tab.

        Returns SheetReadResult with the rows, or the error and status code.
        """
        if not self.base_url:
            return SheetReadResult(
                success=False,
                tab_name=tab_name,
                error="Sheets gateway not configured (missing SHEETS_SERVICE_URL)",
            )

        start_time = time.time()
        try:
            response = await self._post(
                {"operation": "read", "storeId": store_id, "tabName": tab_name},
                auth_token,
                request_id,
            )
        except httpx.TimeoutException:
            logger.warning(f"Reading {tab_name} timed out after {self.timeout}s")
            return SheetReadResult(success=False, tab_name=tab_name, error=f"Timed out reading {tab_name}")
        except httpx.HTTPError as e:
            logger.warning(f"Reading {tab_name} failed: {e}")
            return SheetReadResult(success=False, tab_name=tab_name, error=f"Failed to load {tab_name}: {e}")

        duration_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            logger.warning(
                f"Reading {tab_name} returned {response.status_code} in {duration_ms}ms: {response.text[:200]}"
            )
            return SheetReadResult(
                success=False,
                tab_name=tab_name,
                error=f"Failed to load {tab_name}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            return SheetReadResult(
                success=False,
                tab_name=tab_name,
                error=f"Failed to load {tab_name}: response was not JSON",
                status_code=response.status_code,
            )

        rows = body.get("data") if isinstance(body, dict) else None
        if rows is None:
            rows = []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            return SheetReadResult(
                success=False,
                tab_name=tab_name,
                error=f"Failed to load {tab_name}: unexpected response shape",
                status_code=response.status_code,
            )

        logger.debug(f"Loaded {len(rows)} rows from {tab_name} in {duration_ms}ms")
        return SheetReadResult(success=True, tab_name=tab_name, rows=rows, status_code=response.status_code)

    async def append(
        self,
        store_id: str,
        tab_name: str,
        row: Dict[str, Any],
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> SheetWriteResult:
        """Append one row to a tab."""
        if not self.base_url:
            return SheetWriteResult(
                success=False,
                tab_name=tab_name,
                error="Sheets gateway not configured (missing SHEETS_SERVICE_URL)",
            )

        try:
            response = await self._post(
                {"operation": "append", "storeId": store_id, "tabName": tab_name, "data": row},
                auth_token,
                request_id,
            )
        except httpx.TimeoutException:
            logger.warning(f"Appending to {tab_name} timed out after {self.timeout}s")
            return SheetWriteResult(success=False, tab_name=tab_name, error=f"Timed out appending to {tab_name}")
        except httpx.HTTPError as e:
            logger.warning(f"Appending to {tab_name} failed: {e}")
            return SheetWriteResult(success=False, tab_name=tab_name, error=f"Failed to append to {tab_name}: {e}")

        if not response.is_success:
            logger.warning(f"Appending to {tab_name} returned {response.status_code}")
            return SheetWriteResult(
                success=False,
                tab_name=tab_name,
                error=f"Failed to append to {tab_name}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return SheetWriteResult(success=True, tab_name=tab_name, status_code=response.status_code)
