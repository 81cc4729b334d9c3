"""
Shared test fixtures for the HeySheets function engine tests.
"""
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["SHEETS_SERVICE_URL"] = "https://sheets.test/exec"
os.environ.pop("RANKING_API_KEY", None)
os.environ.pop("OPENROUTER_API_KEY", None)
os.environ.pop("CALENDAR_SERVICE_URL", None)
os.environ.pop("GOOGLE_CALENDAR_FUNCTION_URL", None)

from heysheets.services.calendar_client import CalendarResult  # noqa: E402
from heysheets.services.functions.base import FunctionServices  # noqa: E402
from heysheets.services.functions.executor import FunctionExecutor  # noqa: E402
from heysheets.services.functions.schema import FunctionContext, StoreConfig  # noqa: E402
from heysheets.services.semantic_matcher import RankingError, SemanticMatcher  # noqa: E402
from heysheets.services.sheets_client import SheetReadResult, SheetWriteResult  # noqa: E402


class FakeSheetsClient:
    """In-memory stand-in for the spreadsheet gateway."""

    def __init__(self, tabs: Dict[str, List[Dict[str, Any]]], failing: Optional[set] = None, fail_append: bool = False):
        self.tabs = tabs
        self.failing = failing or set()
        self.fail_append = fail_append
        self.reads: List[Dict[str, Any]] = []
        self.appended: List[Dict[str, Any]] = []
        self.closed = False

    async def read(self, store_id, tab_name, auth_token, request_id=None):
        self.reads.append({"store_id": store_id, "tab_name": tab_name, "auth_token": auth_token, "request_id": request_id})
        if tab_name in self.failing:
            return SheetReadResult(success=False, tab_name=tab_name, error=f"Failed to load {tab_name}: HTTP 500",
                                   status_code=500)
        return SheetReadResult(success=True, tab_name=tab_name, rows=list(self.tabs.get(tab_name, [])),
                               status_code=200)

    async def append(self, store_id, tab_name, row, auth_token, request_id=None):
        if self.fail_append:
            return SheetWriteResult(success=False, tab_name=tab_name, error=f"Failed to append to {tab_name}: HTTP 403",
                                    status_code=403)
        self.appended.append({"store_id": store_id, "tab_name": tab_name, "row": row, "request_id": request_id})
        return SheetWriteResult(success=True, tab_name=tab_name, status_code=200)

    async def close(self):
        self.closed = True


class FakeRankingClient:
    """Ranking collaborator returning canned ids, or failing."""

    def __init__(self, ids: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.ids = ids or []
        self.error = error
        self.calls: List[Dict[str, str]] = []
        self.closed = False

    async def rank(self, query, candidates, kind):
        self.calls.append({"query": query, "candidates": candidates, "kind": kind})
        if self.error is not None:
            raise self.error
        return list(self.ids)

    async def close(self):
        self.closed = True


class FakeCalendarClient:
    """In-memory calendar gateway: session starts per service id, bookings per session start."""

    def __init__(
        self,
        sessions: Optional[Dict[str, List[datetime]]] = None,
        booked: Optional[Dict[datetime, int]] = None,
        failing: Optional[set] = None,
        failing_counts: Optional[set] = None,
    ):
        self.sessions = sessions or {}
        self.booked = booked or {}
        self.failing = failing or set()
        self.failing_counts = failing_counts or set()
        self.calls: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.closed = False

    def _failure(self, operation):
        return CalendarResult(success=False, operation=operation, error=f"Calendar {operation} failed: HTTP 502",
                              status_code=502)

    async def list_sessions(self, store_id, service_id, start, end, auth_token, request_id=None):
        self.calls.append({"operation": "list_sessions", "service_id": service_id, "start": start, "end": end,
                           "request_id": request_id})
        if "list_sessions" in self.failing:
            return self._failure("list_sessions")
        found = sorted(s for s in self.sessions.get(service_id, []) if start <= s < end)
        return CalendarResult(success=True, operation="list_sessions", data=found, status_code=200)

    async def count_bookings(self, store_id, service_id, starts_at, auth_token, request_id=None):
        self.calls.append({"operation": "count_bookings", "service_id": service_id, "start": starts_at,
                           "request_id": request_id})
        if "count_bookings" in self.failing or starts_at in self.failing_counts:
            return self._failure("count_bookings")
        return CalendarResult(success=True, operation="count_bookings", data=self.booked.get(starts_at, 0),
                              status_code=200)

    async def create_event(self, store_id, event, auth_token, request_id=None):
        self.calls.append({"operation": "create_event", "request_id": request_id})
        if "create_event" in self.failing:
            return self._failure("create_event")
        self.events.append({"store_id": store_id, "event": event, "auth_token": auth_token})
        return CalendarResult(success=True, operation="create_event", data={"id": f"evt_{len(self.events)}"},
                              status_code=200)

    async def close(self):
        self.closed = True


@pytest.fixture
def detected_schema() -> Dict[str, Any]:
    return {
        "Store Info": {"columns": ["name", "address", "hours"], "inferredRole": "store_info"},
        "Hours": {"columns": ["day", "openTime", "closeTime", "isOpen"], "inferredRole": "hours"},
        "Our Services": {
            "columns": ["serviceName", "category", "price", "duration", "tags", "startTime", "days"],
            "inferredRole": "services",
        },
        "Product List": {"columns": ["name", "category", "price"], "inferredRole": "products"},
        "Leads": {"columns": ["Date", "Name", "Email", "Phone", "Status"], "inferredRole": "leads"},
        "FAQ": {"columns": ["question", "answer"]},
    }


@pytest.fixture
def sheet_tabs() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "Store Info": [{"name": "Clay Studio", "address": "1 Kiln Road", "hours": "Mon-Fri 9:00-17:00"}],
        "Hours": [{"day": "Monday", "openTime": "09:00", "closeTime": "17:00", "isOpen": "Yes"}],
        "Our Services": [
            {"serviceName": "Intro to Wheel Throwing", "category": "Classes", "price": "$45", "duration": "120",
             "tags": "beginner, pottery", "startTime": "10:00", "days": "Saturday"},
            {"serviceName": "Advanced Glazing", "category": "Classes", "price": "$80", "duration": "90",
             "tags": "glaze", "startTime": "18:00", "days": "Wednesday"},
            {"serviceName": "Private Studio Session", "category": "Rental", "price": "$150", "duration": "60",
             "tags": "private", "startTime": "14:00", "days": "Weekday"},
        ],
        "Product List": [
            {"name": "Green Tea", "category": "Drinks", "price": "4"},
            {"name": "Clay Mug", "category": "Ceramics", "price": "25"},
            {"name": "Iced Coffee", "category": "drinks", "price": "5"},
            {"name": "Glaze Kit", "category": "Supplies", "price": "60"},
        ],
        "FAQ": [
            {"question": "Do you offer parking?", "answer": "Yes, free parking behind the studio."},
            {"question": "Can I bring kids?", "answer": "Children over 8 are welcome."},
        ],
    }


@pytest.fixture
def store_config(detected_schema) -> StoreConfig:
    return StoreConfig.model_validate({"name": "Clay Studio", "detectedSchema": detected_schema})


@pytest.fixture
def context(store_config) -> FunctionContext:
    return FunctionContext(
        store_id="store-1",
        auth_token="token-abc",
        store_config=store_config,
        request_id="req-1",
    )


@pytest.fixture
def fake_sheets(sheet_tabs) -> FakeSheetsClient:
    return FakeSheetsClient(sheet_tabs)


@pytest.fixture
def fake_ranker() -> FakeRankingClient:
    # Fails by default so search falls back to unranked rows unless a test says otherwise
    return FakeRankingClient(error=RankingError("Ranking API key not configured"))


@pytest.fixture
def services(fake_sheets, fake_ranker) -> FunctionServices:
    return FunctionServices(sheets=fake_sheets, matcher=SemanticMatcher(fake_ranker))


@pytest.fixture
def executor(services) -> FunctionExecutor:
    return FunctionExecutor(services)
