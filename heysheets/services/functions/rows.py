"""
Helpers for untyped catalog rows.

Column names vary per store ("Category", "category", "serviceName", "Name"),
so lookups are case-insensitive and names fall back through common aliases.
"""

import re
from typing import Any, Dict, List, Optional

_NAME_KEYS = ("_name", "name", "serviceName", "service_name", "productName", "product_name", "title")


def row_value(row: Dict[str, Any], key: str) -> Any:
    """Value for key, matched exactly first and then case-insensitively."""
    if key in row:
        return row[key]
    key_lower = key.lower()
    for actual_key, value in row.items():
        if isinstance(actual_key, str) and actual_key.lower() == key_lower:
            return value
    return None


def row_text(row: Dict[str, Any], key: str) -> str:
    value = row_value(row, key)
    return "" if value is None else str(value)


def row_name(row: Dict[str, Any]) -> Optional[str]:
    for key in _NAME_KEYS:
        value = row_value(row, key)
        if value not in (None, ""):
            return str(value)
    return None


def filter_by_category(rows: List[Dict[str, Any]], category: Optional[str]) -> List[Dict[str, Any]]:
    """Keep rows whose category contains the given text, case-insensitively."""
    if not category:
        return list(rows)
    category_lower = category.lower()
    return [row for row in rows if category_lower in row_text(row, "category").lower()]


def filter_by_text(rows: List[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    """Keep rows where any value contains the query, case-insensitively."""
    if not query:
        return list(rows)
    query_lower = query.lower()
    return [
        row for row in rows
        if any(query_lower in str(value).lower() for value in row.values() if value is not None)
    ]


def parse_number(value: Any) -> float:
    """Best-effort numeric read of a sheet cell ("$45", "45.00", 45). Unreadable cells count as 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r"-?\d+(?:\.\d+)?", str(value or "").replace(",", ""))
    return float(match.group(0)) if match else 0.0


def parse_time_to_hour(time_str: Any) -> Optional[int]:
    """Hour (0-23) from "HH:MM", "H:MM pm" and similar, or None."""
    if not time_str:
        return None
    text = str(time_str).lower()
    match = re.search(r"(\d{1,2}):(\d{2})", text)
    if not match:
        return None
    hour = int(match.group(1))
    if "pm" in text and hour < 12:
        hour += 12
    if "am" in text and hour == 12:
        hour = 0
    return hour
