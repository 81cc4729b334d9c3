"""
Shared plumbing for function handlers.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from heysheets.core.errors import ErrorKind
from heysheets.services.calendar_client import CalendarClient
from heysheets.services.functions.resolver import resolve_tab
from heysheets.services.functions.schema import FunctionContext, FunctionResult
from heysheets.services.semantic_matcher import SemanticMatcher
from heysheets.services.sheets_client import SheetReadResult, SheetsClient


@dataclass(frozen=True)
class FunctionCall:
    """A validated call: declared parameters (defaults applied) plus the raw arguments they came from."""
    name: str
    params: Dict[str, Any]
    raw_params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionServices:
    """External collaborators, constructed once with explicit configuration and shared by handlers."""
    sheets: SheetsClient
    matcher: SemanticMatcher
    lead_status_value: str = "new"
    calendar: Optional[CalendarClient] = None
    time_zone: str = "UTC"


Handler = Callable[[FunctionCall, FunctionContext, FunctionServices], Awaitable[FunctionResult]]


@dataclass
class TabRows:
    """Rows loaded for a semantic role, or why they could not be."""
    role: str
    tab_name: Optional[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.tab_name is not None

    @property
    def ok(self) -> bool:
        return self.resolved and self.error is None


async def load_role(role: str, context: FunctionContext, services: FunctionServices) -> TabRows:
    """Resolve a role to its tab and read it. Never raises for missing tabs or transport failures."""
    tab_name = resolve_tab(role, context.detected_schema)
    if tab_name is None:
        return TabRows(role=role, tab_name=None, error=f"No tab found for {role}")

    result: SheetReadResult = await services.sheets.read(
        context.store_id,
        tab_name,
        context.auth_token,
        request_id=context.request_id,
    )
    if not result.success:
        return TabRows(role=role, tab_name=tab_name, error=result.error)
    return TabRows(role=role, tab_name=tab_name, rows=result.rows)


def not_configured(label: str, expected_tab: str) -> FunctionResult:
    return FunctionResult.fail(
        f'{label} data not available. Please ensure your sheet has a tab named "{expected_tab}" '
        f"(or reconnect your sheet to detect tabs).",
        ErrorKind.RESOLUTION,
    )


def transport_failure(tab_rows: TabRows) -> FunctionResult:
    return FunctionResult.fail(
        tab_rows.error or f"Failed to load {tab_rows.tab_name}",
        ErrorKind.TRANSPORT,
    )
