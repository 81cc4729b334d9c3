"""
Store Tools - read-only lookups over the store's catalog tabs

- get_store_info: aggregate of store info, hours, services and products
- get_services / get_products: catalog listing with category filter and semantic search
- get_misc_data: any other tab, with a plain text filter
"""

import asyncio
import logging
from typing import Any, Dict, List, Literal

from heysheets.core.errors import ErrorKind
from heysheets.services.functions.base import (
    FunctionCall,
    FunctionServices,
    TabRows,
    load_role,
    not_configured,
    transport_failure,
)
from heysheets.services.functions.resolver import available_tabs, resolve_tab
from heysheets.services.functions.rows import filter_by_category, filter_by_text, row_value
from heysheets.services.functions.schema import FunctionContext, FunctionResult

logger = logging.getLogger(__name__)

STORE_INFO_SCOPES: Dict[str, List[str]] = {
    "hours": ["store_info", "hours"],
    "services": ["store_info", "services"],
    "products": ["store_info", "products"],
    "all": ["store_info", "hours", "services", "products"],
}


def normalize_hours(raw: Any) -> List[Dict[str, Any]]:
    """Hours as a list of day rows, whatever shape the sheet stored them in."""
    if not raw:
        return []
    if isinstance(raw, list):
        return [row for row in raw if isinstance(row, dict)]
    if isinstance(raw, str):
        return [{"day": "Hours", "openTime": raw, "closeTime": "", "isOpen": "Yes"}]
    return []


async def get_store_info(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    info_type = call.params.get("info_type", "all")
    roles = STORE_INFO_SCOPES[info_type]

    # Sub-reads are independent; one failing only empties its own key
    loaded: List[TabRows] = await asyncio.gather(*(load_role(role, context, services) for role in roles))

    data: Dict[str, Any] = {}
    unavailable: List[str] = []
    for tab_rows in loaded:
        if not tab_rows.ok:
            logger.warning(f"get_store_info: {tab_rows.role} unavailable ({tab_rows.error})")
            unavailable.append(tab_rows.role)
        data[tab_rows.role] = tab_rows.rows

    if "hours" in data and not data["hours"] and data.get("store_info"):
        first = data["store_info"][0]
        data["hours"] = normalize_hours(row_value(first, "hours"))

    return FunctionResult.ok({
        "store_name": context.store_config.name or "Unknown",
        "info_type": info_type,
        **data,
        "unavailable": unavailable,
    })


async def _catalog_lookup(
    call: FunctionCall,
    context: FunctionContext,
    services: FunctionServices,
    role: Literal["services", "products"],
    kind: Literal["service", "product"],
) -> FunctionResult:
    query = call.params.get("query")
    category = call.params.get("category")

    tab_rows = await load_role(role, context, services)
    if not tab_rows.resolved:
        return not_configured(role.capitalize(), role.capitalize())
    if not tab_rows.ok:
        return transport_failure(tab_rows)

    rows = filter_by_category(tab_rows.rows, category)

    ranked = False
    if query and rows:
        matches = await services.matcher.match(query, rows, kind)
        if matches:
            rows = matches
            ranked = True

    return FunctionResult.ok({
        role: rows,
        "count": len(rows),
        "query": query or None,
        "category": category or None,
        "ranked": ranked,
    })


async def get_services(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    return await _catalog_lookup(call, context, services, "services", "service")


async def get_products(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    return await _catalog_lookup(call, context, services, "products", "product")


async def get_misc_data(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    requested = call.params["tab_name"]
    query = call.params.get("query")

    actual_tab = resolve_tab(requested, context.detected_schema)
    if actual_tab is None:
        tabs = available_tabs(context.detected_schema)
        listing = ", ".join(tabs) if tabs else "unknown (reconnect sheet to detect tabs)"
        return FunctionResult.fail(
            f'Tab "{requested}" not found. Available tabs: {listing}',
            ErrorKind.RESOLUTION,
        )

    result = await services.sheets.read(
        context.store_id,
        actual_tab,
        context.auth_token,
        request_id=context.request_id,
    )
    if not result.success:
        return FunctionResult.fail(result.error or f"Failed to load {actual_tab}", ErrorKind.TRANSPORT)

    rows = filter_by_text(result.rows, query)
    return FunctionResult.ok({
        "tab_name": actual_tab,
        "data": rows,
        "count": len(rows),
        "query": query or None,
    })
