"""
Stateless calendar helpers shared by the reconcilers.

Every helper that changes a calendar or an event works on a deep copy, so
callers can treat parsed documents as immutable values.
"""

import copy
import datetime

from dateutil import parser as date_parser
from icalendar import Calendar
from icalendar import Event

from ews_ical_repair.models import DataInconsistencyError
from ews_ical_repair.models import MalformedCalendarError


def parse_calendar(mime_content: str) -> Calendar:
    """Parse MIME calendar text into exactly one VCALENDAR holding at least one VEVENT."""
    try:
        components = Calendar.from_ical(mime_content or "", multiple=True)
    except ValueError as e:
        raise MalformedCalendarError(f"Unparseable calendar text: {e}") from e

    calendars = [c for c in components if c.name == "VCALENDAR"]
    if len(calendars) != 1 or len(calendars) != len(components):
        raise MalformedCalendarError(
            f"Expected exactly one VCALENDAR, found {len(calendars)} "
            f"(out of {len(components)} top-level components)"
        )

    calendar = calendars[0]
    if not events_of(calendar):
        raise MalformedCalendarError("Calendar contains no VEVENT")
    return calendar


def serialize_calendar(calendar: Calendar) -> str:
    return calendar.to_ical().decode("utf-8")


def events_of(calendar: Calendar) -> list[Event]:
    """Return the VEVENTs directly under the VCALENDAR, in document order."""
    return [c for c in calendar.subcomponents if c.name == "VEVENT"]


def copy_event(event: Event) -> Event:
    return copy.deepcopy(event)


def replace_events(calendar: Calendar, events: list[Event]) -> Calendar:
    """Return a copy of calendar whose VEVENTs are exactly ``events``.

    Non-event components (VTIMEZONE, ...) keep their place ahead of the events.
    """
    updated = copy.deepcopy(calendar)
    updated.subcomponents = [c for c in updated.subcomponents if c.name != "VEVENT"]
    updated.subcomponents.extend(events)
    return updated


def to_utc(value) -> datetime.datetime:
    """Normalise a date / datetime to an aware UTC datetime.

    Floating (naive) times are taken as UTC; dates become midnight UTC.
    Anything else raises DataInconsistencyError.
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time(), datetime.timezone.utc)
    raise DataInconsistencyError(f"Not a date or datetime: {value!r}")


def parse_wire_datetime(text: str | None) -> datetime.datetime:
    """Parse an exporter date string (ISO-ish, .NET round-trip format) to UTC.

    Strings without an offset are assumed to be UTC, not server-local time.
    """
    if not text or not text.strip():
        raise DataInconsistencyError("Missing date value in appointment metadata")
    try:
        return to_utc(date_parser.parse(text))
    except (ValueError, OverflowError) as e:
        raise DataInconsistencyError(f"Unparseable date {text!r}: {e}") from e


def event_start(event: Event) -> datetime.datetime:
    uid = event.get("UID", "?")
    if "DTSTART" not in event:
        raise DataInconsistencyError(f"Event {uid} has no DTSTART")
    # Unparseable values are kept by icalendar as raw text.
    try:
        value = event.decoded("DTSTART")
    except (ValueError, TypeError) as e:
        raise DataInconsistencyError(f"Event {uid} has an unreadable DTSTART: {e}") from e
    if not isinstance(value, datetime.date):
        raise DataInconsistencyError(f"Event {uid} has an unreadable DTSTART: {value!r}")
    return to_utc(value)


def has_recurrence_id(event: Event) -> bool:
    return "RECURRENCE-ID" in event


def set_recurrence_id(event: Event, value: datetime.datetime) -> None:
    event.pop("RECURRENCE-ID", None)
    event.add("RECURRENCE-ID", to_utc(value))


def attendees_of(event: Event) -> list:
    value = event.get("ATTENDEE")
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def set_attendees(event: Event, attendees: list) -> None:
    event.pop("ATTENDEE", None)
    for attendee in attendees:
        event.add("ATTENDEE", attendee, encode=False)


def organizer_of(event: Event):
    return event.get("ORGANIZER")


def set_organizer(event: Event, organizer) -> None:
    event.pop("ORGANIZER", None)
    event.add("ORGANIZER", copy.deepcopy(organizer), encode=False)
