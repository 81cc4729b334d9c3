"""
Booking Tools - check, list and book scheduled sessions of a service

A service is bookable when the calendar gateway has sessions for it. Capacity
and duration come from the service's row in the sheet (20 people and 60
minutes when the row does not say); spots taken are counted from the invites
already on the store's booking calendar. Dates and times are read in the
store's time zone.
"""

import asyncio
import functools
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from heysheets.core.errors import ErrorKind
from heysheets.services.calendar_client import CalendarClient, CalendarResult
from heysheets.services.functions.base import (
    FunctionCall,
    FunctionServices,
    Handler,
    load_role,
    not_configured,
    transport_failure,
)
from heysheets.services.functions.rows import parse_number, row_name, row_text, row_value
from heysheets.services.functions.schema import FunctionContext, FunctionResult

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 20
DEFAULT_DURATION_MINUTES = 60
SLOT_WINDOW_DAYS = 14
MAX_SLOT_WINDOW_DAYS = 62
SAME_SESSION = timedelta(minutes=1)


class BookingStopped(Exception):
    """Ends a booking handler early with the result to return."""

    def __init__(self, result: FunctionResult):
        super().__init__(result.error)
        self.result = result


def _stops_early(handler: Handler) -> Handler:
    @functools.wraps(handler)
    async def wrapper(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
        try:
            return await handler(call, context, services)
        except BookingStopped as e:
            return e.result
    return wrapper


@dataclass(frozen=True)
class BookableService:
    """A row of the Services tab, read for booking."""
    name: str
    service_id: str
    capacity: int
    duration: int
    price: Any = None
    location: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BookableService":
        name = row_name(row) or ""
        service_id = row_value(row, "serviceID") or row_value(row, "service_id") or row_value(row, "id") or name
        capacity = int(parse_number(row_value(row, "capacity")))
        duration = int(parse_number(row_value(row, "duration")))
        return cls(
            name=name,
            service_id=str(service_id),
            capacity=capacity if capacity > 0 else DEFAULT_CAPACITY,
            duration=duration if duration > 0 else DEFAULT_DURATION_MINUTES,
            price=row_value(row, "price"),
            location=row_text(row, "location"),
        )


def match_service(rows: List[Dict[str, Any]], service_name: str) -> Optional[BookableService]:
    """Exact name first, then a name containing the request, then a request containing the name."""
    wanted = service_name.strip().lower()
    named = [(row, (row_name(row) or "").strip().lower()) for row in rows]
    named = [(row, name) for row, name in named if name]

    for matches in (
        lambda name: name == wanted,
        lambda name: wanted in name,
        lambda name: name in wanted,
    ):
        for row, name in named:
            if matches(name):
                return BookableService.from_row(row)
    return None


def store_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown time zone {name!r}, reading booking times as UTC")
        return timezone.utc


def session_start(day: str, at: str, zone: tzinfo) -> datetime:
    return datetime.strptime(f"{day} {at}", "%Y-%m-%d %H:%M").replace(tzinfo=zone)


def find_session(sessions: List[datetime], requested: datetime) -> Optional[datetime]:
    for session in sessions:
        if abs(session - requested) < SAME_SESSION:
            return session
    return None


def _calendar(services: FunctionServices) -> CalendarClient:
    if services.calendar is None:
        raise BookingStopped(FunctionResult.fail(
            "Calendar booking is not enabled for this store. Please contact the store owner.",
            ErrorKind.RESOLUTION,
        ))
    return services.calendar


def _calendar_failure(result: CalendarResult) -> BookingStopped:
    logger.warning(f"Calendar {result.operation} failed: {result.error}")
    return BookingStopped(FunctionResult.fail(
        result.error or f"Calendar {result.operation} failed",
        ErrorKind.TRANSPORT,
    ))


async def _load_service(service_name: str, context: FunctionContext, services: FunctionServices) -> BookableService:
    tab_rows = await load_role("services", context, services)
    if not tab_rows.resolved:
        raise BookingStopped(not_configured("Services", "Services"))
    if not tab_rows.ok:
        raise BookingStopped(transport_failure(tab_rows))

    service = match_service(tab_rows.rows, service_name)
    if service is None:
        raise BookingStopped(FunctionResult.fail(
            f'I couldn\'t find a service matching "{service_name}". Would you like to see all available services?',
            ErrorKind.VALIDATION,
        ))
    return service


async def _sessions_between(
    service: BookableService,
    start: datetime,
    end: datetime,
    context: FunctionContext,
    services: FunctionServices,
) -> List[datetime]:
    result = await _calendar(services).list_sessions(
        context.store_id,
        service.service_id,
        start,
        end,
        context.auth_token,
        request_id=context.request_id,
    )
    if not result.success:
        raise _calendar_failure(result)
    return result.data or []


async def _booked_count(
    service: BookableService,
    session: datetime,
    context: FunctionContext,
    services: FunctionServices,
) -> int:
    result = await _calendar(services).count_bookings(
        context.store_id,
        service.service_id,
        session,
        context.auth_token,
        request_id=context.request_id,
    )
    if not result.success:
        raise _calendar_failure(result)
    return result.data


async def _scheduled_session(
    service: BookableService,
    requested: datetime,
    context: FunctionContext,
    services: FunctionServices,
) -> Optional[datetime]:
    day_start = requested.replace(hour=0, minute=0)
    sessions = await _sessions_between(service, day_start, day_start + timedelta(days=1), context, services)
    return find_session(sessions, requested)


def _spots(count: int) -> str:
    return f"{count} spot{'' if count == 1 else 's'}"


@_stops_early
async def check_availability(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    params = call.params
    _calendar(services)
    service = await _load_service(params["service_name"], context, services)
    requested = session_start(params["date"], params["time"], store_zone(services.time_zone))

    session = await _scheduled_session(service, requested, context, services)
    if session is None:
        return FunctionResult.ok({
            "available": False,
            "service": service.name,
            "date": params["date"],
            "time": params["time"],
            "message": (
                f"{service.name} is not scheduled for {params['date']} at {params['time']}. "
                f"Would you like to see available times?"
            ),
        })

    booked = await _booked_count(service, session, context, services)
    available_spots = max(service.capacity - booked, 0)
    if available_spots:
        message = (
            f"Yes! {service.name} is available on {params['date']} at {params['time']}. "
            f"{_spots(available_spots)} remaining."
        )
        if service.price not in (None, ""):
            message += f" Price: {service.price}"
    else:
        message = (
            f"Sorry, {service.name} is fully booked on {params['date']} at {params['time']}. "
            f"Would you like to try another time?"
        )

    return FunctionResult.ok({
        "available": available_spots > 0,
        "service": service.name,
        "date": params["date"],
        "time": params["time"],
        "capacity": service.capacity,
        "booked": booked,
        "available_spots": available_spots,
        "price": service.price,
        "duration": service.duration,
        "message": message,
    })


def build_booking_event(
    service: BookableService,
    session: datetime,
    params: Dict[str, Any],
    booking_id: str,
    store_name: str,
    time_zone: str,
    booked_at: str,
) -> Dict[str, Any]:
    """Calendar invite for one booking, in the Google Calendar event shape."""
    phone = params.get("customer_phone") or ""
    description = [
        "Booking Confirmation",
        "",
        f"Service: {service.name}",
        f"Price: {service.price if service.price not in (None, '') else 'N/A'}",
        f"Duration: {service.duration} minutes",
        "",
        "Customer Details:",
        f"Name: {params['customer_name']}",
        f"Email: {params['customer_email']}",
    ]
    if phone:
        description.append(f"Phone: {phone}")
    description += [
        "",
        f"Thank you for booking with {store_name}!",
        "If you need to reschedule or cancel, please contact us.",
    ]

    return {
        "summary": f"{service.name} - {params['customer_name']}",
        "description": "\n".join(description),
        "location": service.location,
        "start": {"dateTime": session.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": (session + timedelta(minutes=service.duration)).isoformat(), "timeZone": time_zone},
        "attendees": [{"email": params["customer_email"]}],
        "extendedProperties": {
            "private": {
                "booking_id": booking_id,
                "service_id": service.service_id,
                "customer_name": params["customer_name"],
                "customer_email": params["customer_email"],
                "customer_phone": phone,
                "booked_at": booked_at,
            },
        },
    }


@_stops_early
async def create_booking(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    params = call.params
    calendar = _calendar(services)
    service = await _load_service(params["service_name"], context, services)
    requested = session_start(params["date"], params["time"], store_zone(services.time_zone))

    session = await _scheduled_session(service, requested, context, services)
    if session is None:
        return FunctionResult.fail(
            f"{service.name} is not scheduled for {params['date']} at {params['time']}.",
            ErrorKind.VALIDATION,
        )

    booked = await _booked_count(service, session, context, services)
    if booked >= service.capacity:
        return FunctionResult.fail(
            f"Sorry, {service.name} is fully booked on {params['date']} at {params['time']}.",
            ErrorKind.VALIDATION,
        )

    booking_id = f"bk_{uuid.uuid4().hex[:12]}"
    event = build_booking_event(
        service,
        session,
        params,
        booking_id,
        store_name=context.store_config.name or "us",
        time_zone=services.time_zone,
        booked_at=datetime.now(timezone.utc).isoformat(),
    )

    logger.info(f"create_booking: booking {service.name} at {session.isoformat()} ({booking_id})")
    result = await calendar.create_event(context.store_id, event, context.auth_token, request_id=context.request_id)
    if not result.success:
        logger.error(f"create_booking: invite for {booking_id} failed ({result.error})")
        return FunctionResult.fail(
            "Failed to create your booking. Please try again or contact us directly.",
            ErrorKind.TRANSPORT,
        )

    return FunctionResult.ok({
        "booking_id": booking_id,
        "event_id": result.data.get("id") if isinstance(result.data, dict) else None,
        "service": service.name,
        "date": params["date"],
        "time": params["time"],
        "duration": service.duration,
        "price": service.price,
        "customer_name": params["customer_name"],
        "customer_email": params["customer_email"],
        "available_spots_remaining": service.capacity - booked - 1,
        "message": (
            f"Booking confirmed! You'll receive a calendar invite at {params['customer_email']} "
            f"with all the details. See you on {params['date']} at {params['time']}!"
        ),
    })


@_stops_early
async def get_booking_slots(call: FunctionCall, context: FunctionContext, services: FunctionServices) -> FunctionResult:
    params = call.params
    calendar = _calendar(services)
    zone = store_zone(services.time_zone)
    now = datetime.now(zone)

    first_day = date.fromisoformat(params["start_date"]) if params.get("start_date") else now.date()
    last_day = (
        date.fromisoformat(params["end_date"]) if params.get("end_date")
        else first_day + timedelta(days=SLOT_WINDOW_DAYS)
    )
    if last_day < first_day:
        return FunctionResult.fail("end_date must not be before start_date", ErrorKind.VALIDATION)
    if (last_day - first_day).days > MAX_SLOT_WINDOW_DAYS:
        return FunctionResult.fail(
            f"Please pick a date range of at most {MAX_SLOT_WINDOW_DAYS} days",
            ErrorKind.VALIDATION,
        )

    service = await _load_service(params["service_name"], context, services)
    window_start = datetime.combine(first_day, time.min, tzinfo=zone)
    window_end = datetime.combine(last_day + timedelta(days=1), time.min, tzinfo=zone)
    sessions = [s for s in await _sessions_between(service, window_start, window_end, context, services) if s > now]

    # One failed count drops only that session
    counts = await asyncio.gather(*(
        calendar.count_bookings(context.store_id, service.service_id, s, context.auth_token, request_id=context.request_id)
        for s in sessions
    ))
    failed = [result for result in counts if not result.success]
    if sessions and len(failed) == len(sessions):
        raise _calendar_failure(failed[0])
    if failed:
        logger.warning(f"get_booking_slots: {len(failed)} of {len(sessions)} booking counts failed")

    slots = []
    for session, result in zip(sessions, counts):
        if not result.success:
            continue
        local = session.astimezone(zone)
        available_spots = max(service.capacity - result.data, 0)
        slots.append({
            "date": local.strftime("%Y-%m-%d"),
            "time": local.strftime("%H:%M"),
            "start": session.isoformat(),
            "available_spots": available_spots,
            "available": available_spots > 0,
        })

    open_slots = [slot for slot in slots if slot["available"]]
    prefill = {
        key: params[f"prefill_{key}"]
        for key in ("date", "time", "name", "email")
        if params.get(f"prefill_{key}")
    }
    if open_slots:
        message = f"Here are the available times for {service.name}. Select a slot to continue."
    else:
        message = f"Sorry, no available slots found for {service.name}. Would you like to try a different date?"

    return FunctionResult.ok({
        "service": {"name": service.name, "duration": service.duration, "price": service.price},
        "slots": slots,
        "available_dates": sorted({slot["date"] for slot in open_slots}),
        "unavailable_dates": sorted({slot["date"] for slot in slots} - {slot["date"] for slot in open_slots}),
        "prefill": prefill,
        "message": message,
    })
