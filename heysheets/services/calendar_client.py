"""
Calendar Client - scheduled sessions and booking invites through the calendar gateway

Each service that can be booked is linked to a calendar of recurring sessions;
bookings are invites on the store's booking calendar. Which calendar belongs to
which service is the gateway's business: callers only name the store and the
service. Every operation is exactly one POST:
- list_sessions:  {"storeId", "serviceId", "timeMin", "timeMax", "timeZone"} -> {"data": [event, ...]}
- count_bookings: {"storeId", "serviceId", "start"}                          -> {"data": {"count": n}}
- create_event:   {"storeId", "event"}                                        -> {"data": event}

Events use the Google Calendar shape ({"start": {"dateTime": ...}, ...}).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import httpx

from heysheets.core.config import Settings

logger = logging.getLogger("heysheets.calendar")


@dataclass
class CalendarResult:
    """Result of one calendar operation; data is shaped per operation."""
    success: bool
    operation: str
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None


class CalendarClient(Protocol):
    async def list_sessions(
        self,
        store_id: str,
        service_id: str,
        start: datetime,
        end: datetime,
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        """Scheduled session start times (aware datetimes, sorted) within [start, end)."""
        ...

    async def count_bookings(
        self,
        store_id: str,
        service_id: str,
        starts_at: datetime,
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        """Number of bookings already taken for the session starting at starts_at."""
        ...

    async def create_event(
        self,
        store_id: str,
        event: Dict[str, Any],
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        """Create a booking invite on the store's booking calendar."""
        ...

    async def close(self) -> None:
        ...


def parse_event_time(value: str) -> datetime:
    """Parse an RFC 3339 dateTime. Naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


class CalendarGatewayClient:
    """
    Async HTTP client for the calendar gateway.

    Same contract as the sheets client: one request per operation, no retries,
    a finite timeout, the caller's bearer token, failures returned not raised.
    """

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 15.0,
        time_zone: str = "UTC",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.time_zone = time_zone
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CalendarGatewayClient":
        return cls(
            base_url=settings.CALENDAR_SERVICE_URL,
            timeout=settings.CALENDAR_REQUEST_TIMEOUT,
            time_zone=settings.CALENDAR_TIMEZONE,
        )

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

    async def _call(
        self,
        operation: str,
        payload: Dict[str, Any],
        auth_token: str,
        request_id: Optional[str],
    ) -> CalendarResult:
        if not self.base_url:
            return CalendarResult(
                success=False,
                operation=operation,
                error="Calendar gateway not configured (missing CALENDAR_SERVICE_URL)",
            )

        headers = {"Authorization": f"Bearer {auth_token}"}
        if request_id:
            headers["X-Request-ID"] = request_id

        client = await self._get_client()
        try:
            response = await client.post(self.base_url, json={"operation": operation, **payload}, headers=headers)
        except httpx.TimeoutException:
            logger.warning(f"Calendar {operation} timed out after {self.timeout}s")
            return CalendarResult(success=False, operation=operation, error=f"Timed out calling calendar {operation}")
        except httpx.HTTPError as e:
            logger.warning(f"Calendar {operation} failed: {e}")
            return CalendarResult(success=False, operation=operation, error=f"Calendar {operation} failed: {e}")

        if not response.is_success:
            logger.warning(f"Calendar {operation} returned {response.status_code}: {response.text[:200]}")
            return CalendarResult(
                success=False,
                operation=operation,
                error=f"Calendar {operation} failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or body.get("success") is False:
            error = body.get("error") if isinstance(body, dict) else None
            return CalendarResult(
                success=False,
                operation=operation,
                error=error or f"Calendar {operation} failed: unexpected response",
                status_code=response.status_code,
            )

        return CalendarResult(success=True, operation=operation, data=body.get("data"), status_code=response.status_code)

    async def list_sessions(
        self,
        store_id: str,
        service_id: str,
        start: datetime,
        end: datetime,
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        result = await self._call(
            "list_sessions",
            {
                "storeId": store_id,
                "serviceId": service_id,
                "timeMin": start.isoformat(),
                "timeMax": end.isoformat(),
                "timeZone": self.time_zone,
            },
            auth_token,
            request_id,
        )
        if not result.success:
            return result

        try:
            result.data = sorted(parse_event_time(event["start"]["dateTime"]) for event in result.data or [])
        except (KeyError, TypeError, ValueError) as e:
            return CalendarResult(
                success=False,
                operation="list_sessions",
                error=f"Calendar list_sessions failed: unexpected event shape ({e})",
                status_code=result.status_code,
            )
        return result

    async def count_bookings(
        self,
        store_id: str,
        service_id: str,
        starts_at: datetime,
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        result = await self._call(
            "count_bookings",
            {"storeId": store_id, "serviceId": service_id, "start": starts_at.isoformat()},
            auth_token,
            request_id,
        )
        if not result.success:
            return result

        count = result.data.get("count") if isinstance(result.data, dict) else None
        if isinstance(count, bool) or not isinstance(count, int):
            return CalendarResult(
                success=False,
                operation="count_bookings",
                error="Calendar count_bookings failed: response has no count",
                status_code=result.status_code,
            )
        result.data = count
        return result

    async def create_event(
        self,
        store_id: str,
        event: Dict[str, Any],
        auth_token: str,
        request_id: Optional[str] = None,
    ) -> CalendarResult:
        return await self._call("create_event", {"storeId": store_id, "event": event}, auth_token, request_id)
