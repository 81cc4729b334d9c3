"""
Recommendation Tools - suggest services and products for a stated goal

Offerings are filtered by the user's preferences and then ranked against the
goal by the semantic matcher. Soft preferences (experience, time, day,
duration) only narrow the list when at least MIN_SOFT_MATCHES items survive,
since most sheets do not record those attributes.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from heysheets.core.errors import ErrorKind
from heysheets.services.functions.base import FunctionCall, FunctionServices, load_role
from heysheets.services.functions.rows import (
    filter_by_category,
    parse_number,
    parse_time_to_hour,
    row_name,
    row_text,
)
from heysheets.services.functions.schema import FunctionContext, FunctionResult
from heysheets.services.semantic_matcher import MatchKind

logger = logging.getLogger(__name__)

MIN_SOFT_MATCHES = 2

BUDGET_RANGES = {
    "low": (0.0, 50.0),
    "medium": (30.0, 150.0),
    "high": (100.0, float("inf")),
}

LEVEL_KEYWORDS = {
    "beginner": ["beginner", "intro", "introduction", "starter", "basic", "first time", "newbie",
                 "fundamentals", "level 1", "entry"],
    "intermediate": ["intermediate", "level 2", "continuing", "progression", "next level"],
    "advanced": ["advanced", "expert", "pro", "professional", "master", "level 3", "intensive"],
}

TIME_RANGES = {
    "morning": (5, 12),
    "afternoon": (12, 17),
    "evening": (17, 23),
}

DAY_KEYWORDS = {
    "weekday": ["monday", "tuesday", "wednesday", "thursday", "friday", "mon", "tue", "wed", "thu", "fri", "weekday"],
    "weekend": ["saturday", "sunday", "sat", "sun", "weekend"],
}

# Minutes
DURATION_RANGES = {
    "quick": (0, 45),
    "standard": (45, 90),
    "extended": (90, 480),
}

PREFERENCE_FIELDS: List[Dict[str, Any]] = [
    {
        "name": "goal",
        "label": "What are you looking for?",
        "type": "textarea",
        "required": True,
    },
    {
        "name": "experience_level",
        "label": "Experience Level",
        "type": "select",
        "required": False,
        "options": ["beginner", "intermediate", "advanced", "any"],
    },
    {
        "name": "budget",
        "label": "Budget Range",
        "type": "select",
        "required": False,
        "options": ["low", "medium", "high", "any"],
    },
    {
        "name": "time_preference",
        "label": "Preferred Time",
        "type": "select",
        "required": False,
        "options": ["morning", "afternoon", "evening", "any"],
    },
]


def _soft_filter(items: List[Dict[str, Any]], kept: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return kept if len(kept) >= MIN_SOFT_MATCHES else items


def _search_text(item: Dict[str, Any]) -> str:
    return " ".join(
        [item.get("_name") or "", row_text(item, "tags"), row_text(item, "description"), row_text(item, "category")]
    ).lower()


def apply_preference_filters(offerings: List[Dict[str, Any]], preferences: Dict[str, Any]) -> List[Dict[str, Any]]:
    filtered = filter_by_category(offerings, preferences.get("category"))

    budget = preferences.get("budget")
    if budget and budget in BUDGET_RANGES:
        low, high = BUDGET_RANGES[budget]
        filtered = [
            item for item in filtered
            if parse_number(row_text(item, "price")) == 0 or low <= parse_number(row_text(item, "price")) <= high
        ]

    budget_max = preferences.get("budget_max")
    if budget_max:
        filtered = [
            item for item in filtered
            if parse_number(row_text(item, "price")) == 0 or parse_number(row_text(item, "price")) <= budget_max
        ]

    level = preferences.get("experience_level")
    if level in LEVEL_KEYWORDS:
        keywords = LEVEL_KEYWORDS[level]
        filtered = _soft_filter(
            filtered,
            [item for item in filtered if any(kw in _search_text(item) for kw in keywords)],
        )

    time_preference = preferences.get("time_preference")
    if time_preference in TIME_RANGES:
        start, end = TIME_RANGES[time_preference]

        def in_window(item: Dict[str, Any]) -> bool:
            hour = parse_time_to_hour(row_text(item, "startTime") or row_text(item, "time"))
            return hour is None or start <= hour < end

        filtered = _soft_filter(filtered, [item for item in filtered if in_window(item)])

    day_preference = preferences.get("day_preference")
    if day_preference in DAY_KEYWORDS:
        keywords = DAY_KEYWORDS[day_preference]

        def on_days(item: Dict[str, Any]) -> bool:
            days = row_text(item, "days").lower()
            return not days or any(kw in days for kw in keywords)

        filtered = _soft_filter(filtered, [item for item in filtered if on_days(item)])

    duration_preference = preferences.get("duration_preference")
    if duration_preference in DURATION_RANGES:
        shortest, longest = DURATION_RANGES[duration_preference]

        def fits(item: Dict[str, Any]) -> bool:
            minutes = parse_number(row_text(item, "duration"))
            return minutes == 0 or shortest <= minutes <= longest

        filtered = _soft_filter(filtered, [item for item in filtered if fits(item)])

    return filtered


def dominant_kind(offerings: List[Dict[str, Any]]) -> MatchKind:
    """The matcher ranks one kind at a time; a mixed list is ranked as whichever kind it mostly holds."""
    products = sum(1 for item in offerings if item.get("_type") == "product")
    return "product" if products > len(offerings) - products else "service"


async def get_recommendations(
    call: FunctionCall,
    context: FunctionContext,
    services: FunctionServices,
) -> FunctionResult:
    params = call.params
    offering_type = params.get("offering_type", "both")
    goal: Optional[str] = params.get("goal")
    category: Optional[str] = params.get("category")
    limit = max(1, int(params.get("limit") or 3))

    preferences_used = {
        "goal": goal,
        "category": category,
        "experience_level": params.get("experience_level"),
        "budget": params.get("budget"),
        "time_preference": params.get("time_preference"),
    }

    if not goal and not category:
        return FunctionResult.ok({
            "needs_preferences": True,
            "fields": PREFERENCE_FIELDS,
            "defaults": {k: v for k, v in preferences_used.items() if v},
        })

    roles = []
    if offering_type in ("services", "both"):
        roles.append(("services", "service"))
    if offering_type in ("products", "both"):
        roles.append(("products", "product"))

    loaded = await asyncio.gather(*(load_role(role, context, services) for role, _ in roles))

    offerings: List[Dict[str, Any]] = []
    for (role, marker), tab_rows in zip(roles, loaded):
        if not tab_rows.ok:
            logger.warning(f"get_recommendations: {role} unavailable ({tab_rows.error})")
            continue
        for row in tab_rows.rows:
            offerings.append({**row, "_type": marker, "_name": row_name(row)})

    if not offerings:
        return FunctionResult.fail(
            "No offerings available to recommend. Please ensure your sheet has Services or Products data.",
            ErrorKind.RESOLUTION,
        )

    total_available = len(offerings)
    filtered = apply_preference_filters(offerings, params)

    ranked = False
    if goal and filtered:
        matches = await services.matcher.match(goal, filtered, dominant_kind(filtered))
        if matches:
            filtered = matches
            ranked = True

    recommendations = filtered[:limit]
    return FunctionResult.ok({
        "recommendations": recommendations,
        "count": len(recommendations),
        "preferences_used": preferences_used,
        "total_available": total_available,
        "ranked": ranked,
    })
