"""
Lead Tools - capture a customer's contact details into the store's Leads tab

The row written is shaped by the tab's declared columns, never by the
arguments: model-supplied keys that do not name a column are dropped, and two
housekeeping columns (submission time and status) are always filled.

The first two form columns (usually Name and Email) are required. Until both
have a value nothing is written; the caller gets the form fields to collect
instead.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from heysheets.core.errors import ErrorKind
from heysheets.services.functions.base import FunctionCall, FunctionServices
from heysheets.services.functions.resolver import resolve_tab, tab_columns
from heysheets.services.functions.schema import FunctionContext, FunctionResult

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = ("date", "timestamp", "submitted", "submitted at", "created", "created at")
STATUS_COLUMNS = ("status",)
HOUSEKEEPING_COLUMNS = TIMESTAMP_COLUMNS + STATUS_COLUMNS + ("id",)
DEFAULT_TIMESTAMP_COLUMN = "Date"
DEFAULT_STATUS_COLUMN = "Status"
REQUIRED_FORM_FIELDS = 2

# Contact field -> (header words that identify it, argument names the model uses for it, form input type)
CONTACT_FIELDS: List[Tuple[str, Tuple[str, ...], Tuple[str, ...], str]] = [
    ("name", ("name",), ("name", "full_name", "fullname", "customer_name"), "text"),
    ("email", ("email", "e mail"), ("email", "e_mail", "customer_email"), "email"),
    ("phone", ("phone", "mobile", "tel", "telephone", "cell"),
     ("phone", "mobile", "tel", "telephone", "customer_phone"), "tel"),
    ("message", ("message", "note", "notes", "comment", "comments", "interest", "description"),
     ("message", "note", "notes", "comment", "interest"), "textarea"),
]

# A header naming something other than the customer ("Company Name") is not their name
PERSON_NAME_WORDS = {"name", "full", "your", "customer", "client", "contact"}


def _find_column(columns: List[str], candidates: Tuple[str, ...]) -> Optional[str]:
    for column in columns:
        if column.strip().lower() in candidates:
            return column
    return None


def _header_words(column: str) -> List[str]:
    return re.findall(r"[a-z0-9]+", column.lower())


def _has_phrase(words: List[str], phrase: str) -> bool:
    target = phrase.split()
    return any(words[i:i + len(target)] == target for i in range(len(words) - len(target) + 1))


def contact_field(column: str) -> Optional[Tuple[str, Tuple[str, ...], str]]:
    """
    Which contact field a header stands for, as (field, argument aliases, input type).

    Keywords match whole words only, so "Hotel" is not a phone column.
    """
    words = _header_words(column)
    for field_name, keywords, aliases, input_type in CONTACT_FIELDS:
        if not any(_has_phrase(words, keyword) for keyword in keywords):
            continue
        if field_name == "name" and not set(words) <= PERSON_NAME_WORDS:
            continue
        return field_name, aliases, input_type
    return None


def _lookup(params: Mapping[str, Any], key: str) -> Any:
    if key in params:
        return params[key]
    key_lower = key.lower()
    for actual_key, value in params.items():
        if isinstance(actual_key, str) and actual_key.lower() == key_lower:
            return value
    return None


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _value_for_column(column: str, params: Mapping[str, Any]) -> str:
    value = _lookup(params, column)
    if _is_blank(value):
        field = contact_field(column)
        if field is not None:
            for alias in field[1]:
                value = _lookup(params, alias)
                if not _is_blank(value):
                    break
    if _is_blank(value):
        return ""
    return str(value).strip()


def build_lead_fields(columns: List[str]) -> List[Dict[str, Any]]:
    """
    Form fields for the Leads tab: every declared column except housekeeping ones.

    The input type follows the header (email, tel, textarea, else text) and the
    first two fields are required.
    """
    form_columns = [c for c in columns if c.strip().lower() not in HOUSEKEEPING_COLUMNS]
    fields = []
    for index, column in enumerate(form_columns):
        field = contact_field(column)
        fields.append({
            "name": column,
            "label": column,
            "type": field[2] if field else "text",
            "required": index < REQUIRED_FORM_FIELDS,
        })
    return fields


def build_lead_row(
    columns: List[str],
    params: Mapping[str, Any],
    submitted_at: str,
    status_value: str = "new",
) -> Dict[str, str]:
    """
    Map arguments onto the Leads tab's declared columns.

    The timestamp goes to a declared date/timestamp column (else "Date") and the
    status to a declared status column (else "Status"). Nothing else is added.
    """
    timestamp_column = _find_column(columns, TIMESTAMP_COLUMNS) or DEFAULT_TIMESTAMP_COLUMN
    status_column = _find_column(columns, STATUS_COLUMNS) or DEFAULT_STATUS_COLUMN

    row: Dict[str, str] = {}
    for column in columns:
        if column in (timestamp_column, status_column):
            continue
        row[column] = _value_for_column(column, params)

    row[timestamp_column] = submitted_at
    row[status_column] = status_value
    return row


async def submit_lead(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    leads_tab = resolve_tab("leads", context.detected_schema)
    if leads_tab is None:
        return FunctionResult.fail(
            'Lead capture not available. Please add a "Leads" tab to your sheet.',
            ErrorKind.RESOLUTION,
        )

    columns = tab_columns(leads_tab, context.detected_schema)
    if not columns:
        return FunctionResult.fail(
            f'Lead capture not available. The "{leads_tab}" tab has no header row.',
            ErrorKind.RESOLUTION,
        )

    # Validated values win over raw ones; raw arguments only fill declared columns
    values = {**call.raw_params, **call.params}
    submitted_at = datetime.now(timezone.utc).isoformat()
    row = build_lead_row(columns, values, submitted_at, services.lead_status_value)

    fields = build_lead_fields(columns)
    missing_fields = [f["name"] for f in fields if f["required"] and not row.get(f["name"])]
    if missing_fields:
        logger.info(f"submit_lead: waiting for {', '.join(missing_fields)} before writing to {leads_tab}")
        return FunctionResult.ok({
            "awaiting_input": True,
            "missing_fields": missing_fields,
            "fields": fields,
            "defaults": {f["name"]: row[f["name"]] for f in fields if row.get(f["name"])},
            "message": "Please provide your contact information so we can assist you better.",
        })

    logger.info(f"submit_lead: writing {len(row)} columns to {leads_tab}")
    result = await services.sheets.append(
        context.store_id,
        leads_tab,
        row,
        context.auth_token,
        request_id=context.request_id,
    )
    if not result.success:
        logger.error(f"submit_lead: append to {leads_tab} failed ({result.error})")
        return FunctionResult.fail(
            "Failed to save your information. Please try again or contact us directly.",
            ErrorKind.TRANSPORT,
        )

    return FunctionResult.ok({
        "message": "Thank you! We've received your information and will get back to you soon.",
        "lead_id": submitted_at,
        "tab_name": leads_tab,
        "submitted_at": submitted_at,
    })
