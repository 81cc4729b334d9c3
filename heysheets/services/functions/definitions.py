"""
Function catalog.

Every function the classifier may name is declared here, once. The executor's
handler table is checked against this list at startup.
"""

from heysheets.services.functions.schema import FunctionDefinition, ParameterSpec

REGISTRY_VERSION = "2"

INFO_TYPES = ["hours", "services", "products", "all"]

# Deadlines cover the longest chain of sequential external calls a handler makes:
# one sheet read then one ranking call for lookups, one sheet read then up to
# three calendar calls for bookings.
LOOKUP_TIMEOUT_MS = 45000
BOOKING_TIMEOUT_MS = 75000


GET_STORE_INFO_DEF = FunctionDefinition(
    name="get_store_info",
    description="""Get general information about the store: opening hours, services and products.
Use info_type to limit the answer to one area, or 'all' for an overview.""",
    parameters=[
        ParameterSpec(
            name="info_type",
            type="enum",
            enum=INFO_TYPES,
            default="all",
            description="Which part of the store information to retrieve",
        ),
    ],
)

GET_SERVICES_DEF = FunctionDefinition(
    name="get_services",
    description="""List the services the store offers.
Pass query for a free-text search ("something relaxing for beginners") and
category to restrict to one category. Without either, every service is returned.""",
    parameters=[
        ParameterSpec(name="query", type="string", description="Free-text description of what the user wants"),
        ParameterSpec(name="category", type="string", description="Service category to filter by"),
    ],
    max_execution_time_ms=LOOKUP_TIMEOUT_MS,
)

GET_PRODUCTS_DEF = FunctionDefinition(
    name="get_products",
    description="""List the products the store sells.
Pass query for a free-text search and category to restrict to one category.""",
    parameters=[
        ParameterSpec(name="query", type="string", description="Free-text description of what the user wants"),
        ParameterSpec(name="category", type="string", description="Product category to filter by"),
    ],
    max_execution_time_ms=LOOKUP_TIMEOUT_MS,
)

SUBMIT_LEAD_DEF = FunctionDefinition(
    name="submit_lead",
    description="""Save the user's contact details so the store can follow up.
Call it as soon as the user wants to be contacted, even without details: when the
Leads tab's required columns are not all filled, nothing is saved and the fields
to collect are returned instead.""",
    parameters=[
        ParameterSpec(name="name", type="string", description="Customer full name"),
        ParameterSpec(name="email", type="string", format="email", description="Customer email address"),
        ParameterSpec(name="phone", type="string", description="Customer phone number"),
        ParameterSpec(name="message", type="string", description="What the customer is interested in"),
    ],
    side_effect=True,
)

GET_MISC_DATA_DEF = FunctionDefinition(
    name="get_misc_data",
    description="""Read any other tab of the store's sheet (FAQ, policies, staff...).
Use tab_name for the kind of data wanted and query to keep only matching rows.""",
    parameters=[
        ParameterSpec(name="tab_name", type="string", required=True, description="Name or topic of the tab to read"),
        ParameterSpec(name="query", type="string", description="Text that matching rows must contain"),
    ],
)

GET_RECOMMENDATIONS_DEF = FunctionDefinition(
    name="get_recommendations",
    description="""Recommend the best services and/or products for the user's goal and preferences.
Needs at least a goal or a category; otherwise the user is asked for preferences first.""",
    parameters=[
        ParameterSpec(
            name="offering_type",
            type="enum",
            enum=["services", "products", "both"],
            default="both",
            description="Which offerings to consider",
        ),
        ParameterSpec(name="goal", type="string", description="What the user wants to achieve"),
        ParameterSpec(name="category", type="string", description="Category to restrict to"),
        ParameterSpec(
            name="budget",
            type="enum",
            enum=["low", "medium", "high", "any"],
            description="Budget range",
        ),
        ParameterSpec(name="budget_max", type="number", description="Maximum price"),
        ParameterSpec(
            name="experience_level",
            type="enum",
            enum=["beginner", "intermediate", "advanced", "any"],
            description="User's experience level",
        ),
        ParameterSpec(
            name="time_preference",
            type="enum",
            enum=["morning", "afternoon", "evening", "any"],
            description="Preferred time of day",
        ),
        ParameterSpec(
            name="day_preference",
            type="enum",
            enum=["weekday", "weekend", "any"],
            description="Preferred days",
        ),
        ParameterSpec(
            name="duration_preference",
            type="enum",
            enum=["quick", "standard", "extended", "any"],
            description="Preferred session length",
        ),
        ParameterSpec(name="limit", type="integer", default=3, description="How many recommendations to return"),
    ],
    max_execution_time_ms=LOOKUP_TIMEOUT_MS,
)

CHECK_AVAILABILITY_DEF = FunctionDefinition(
    name="check_availability",
    description="""Check whether a service has a session with free spots at a given date and time.
Use when the user only asks about availability; to book, use get_booking_slots.""",
    parameters=[
        ParameterSpec(name="service_name", type="string", required=True, description="Name of the service"),
        ParameterSpec(name="date", type="string", required=True, format="date", description="Date in YYYY-MM-DD format"),
        ParameterSpec(name="time", type="string", required=True, format="time", description="Time in HH:MM format"),
    ],
    max_execution_time_ms=BOOKING_TIMEOUT_MS,
)

CREATE_BOOKING_DEF = FunctionDefinition(
    name="create_booking",
    description="""Book the user onto a scheduled session of a service and send them a calendar invite.
Never call without the customer's name and email.""",
    parameters=[
        ParameterSpec(name="service_name", type="string", required=True, description="Name of the service"),
        ParameterSpec(name="date", type="string", required=True, format="date", description="Date in YYYY-MM-DD format"),
        ParameterSpec(name="time", type="string", required=True, format="time", description="Time in HH:MM format"),
        ParameterSpec(
            name="customer_name",
            type="string",
            required=True,
            min_length=2,
            description="Customer full name",
        ),
        ParameterSpec(
            name="customer_email",
            type="string",
            required=True,
            format="email",
            description="Customer email address; the invite is sent here",
        ),
        ParameterSpec(name="customer_phone", type="string", description="Customer phone number"),
    ],
    side_effect=True,
    max_execution_time_ms=BOOKING_TIMEOUT_MS,
)

GET_BOOKING_SLOTS_DEF = FunctionDefinition(
    name="get_booking_slots",
    description="""List the upcoming sessions of a service with their free spots so the user can pick one.
Use whenever the user wants to book, even without a date or time; pass anything
they already said as prefill_* values.""",
    parameters=[
        ParameterSpec(name="service_name", type="string", required=True, description="Name of the service to book"),
        ParameterSpec(name="start_date", type="string", format="date", description="First day to list (default: today)"),
        ParameterSpec(
            name="end_date",
            type="string",
            format="date",
            description="Last day to list (default: 14 days after start_date)",
        ),
        ParameterSpec(name="prefill_date", type="string", format="date", description="Date the user mentioned"),
        ParameterSpec(name="prefill_time", type="string", format="time", description="Time the user mentioned"),
        ParameterSpec(name="prefill_name", type="string", description="Customer name, if given"),
        ParameterSpec(name="prefill_email", type="string", description="Customer email, if given"),
    ],
    max_execution_time_ms=BOOKING_TIMEOUT_MS,
)


FUNCTION_DEFINITIONS = [
    GET_STORE_INFO_DEF,
    GET_SERVICES_DEF,
    GET_PRODUCTS_DEF,
    SUBMIT_LEAD_DEF,
    GET_MISC_DATA_DEF,
    CHECK_AVAILABILITY_DEF,
    CREATE_BOOKING_DEF,
    GET_BOOKING_SLOTS_DEF,
    GET_RECOMMENDATIONS_DEF,
]
