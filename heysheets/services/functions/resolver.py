"""
Schema Resolver - maps a semantic tab role to the store's physical tab name

Store owners name their tabs freely ("Our Services", "Product List"), so
handlers ask for a role and the resolver finds the tab. Resolution is a pure
function of (role, detected schema).
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

_SEPARATORS = re.compile(r"[\s_\-]+")


def _normalize(name: str) -> str:
    """Lowercase and collapse separators so "store_info" and "Store Info" compare equal."""
    return _SEPARATORS.sub(" ", name).strip().lower()


def _entry_role(entry: Any) -> Optional[str]:
    if entry is None:
        return None
    if isinstance(entry, Mapping):
        role = entry.get("role") or entry.get("inferredRole")
    else:
        role = getattr(entry, "role", None)
    return role if isinstance(role, str) else None


def resolve_tab(expected_role: str, detected_schema: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Find the physical tab for a semantic role.

    Matching order, first hit wins:
    1. exact (case-insensitive) tab name
    2. substring in either direction, in schema order
    3. exact (case-insensitive) inferred role recorded at onboarding

    Returns None when nothing matches; callers must report the tab as not configured.
    """
    if not expected_role or not isinstance(detected_schema, Mapping) or not detected_schema:
        return None

    expected = _normalize(expected_role)
    if not expected:
        return None

    tab_names = [name for name in detected_schema if isinstance(name, str)]

    for tab in tab_names:
        if _normalize(tab) == expected:
            return tab

    for tab in tab_names:
        actual = _normalize(tab)
        if actual and (expected in actual or actual in expected):
            return tab

    for tab in tab_names:
        role = _entry_role(detected_schema[tab])
        if role and _normalize(role) == expected:
            return tab

    return None


def resolve_many(roles: Iterable[str], detected_schema: Optional[Mapping[str, Any]]) -> Dict[str, Optional[str]]:
    return {role: resolve_tab(role, detected_schema) for role in roles}


def available_tabs(detected_schema: Optional[Mapping[str, Any]]) -> List[str]:
    if not isinstance(detected_schema, Mapping):
        return []
    return [name for name in detected_schema if isinstance(name, str)]


def tab_columns(tab_name: str, detected_schema: Optional[Mapping[str, Any]]) -> List[str]:
    """Declared columns of a resolved tab (row 1 of the sheet)."""
    if not isinstance(detected_schema, Mapping):
        return []
    entry = detected_schema.get(tab_name)
    if entry is None:
        return []
    columns = entry.get("columns") if isinstance(entry, Mapping) else getattr(entry, "columns", None)
    return [c for c in (columns or []) if isinstance(c, str) and c.strip()]
