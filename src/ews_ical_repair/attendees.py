"""
Mapping of structured attendee records onto iCalendar ATTENDEE / ORGANIZER values.
"""

import re
from enum import Enum
from operator import attrgetter
from types import MappingProxyType

from icalendar import vCalAddress

from ews_ical_repair.messages import AttendeeRecord
from ews_ical_repair.messages import InvitedAttendee
from ews_ical_repair.messages import MailboxType
from ews_ical_repair.messages import MeetingResponseType
from ews_ical_repair.models import AttendeeInvariantError

# Same pattern the exporter uses to decide whether a display name is
# really an address (non-SMTP routed attendees often carry it there).
# Unlike the exporter, matching ignores case and must cover the whole name.
_EMAIL_RE = re.compile(
    r"[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?",
    re.IGNORECASE,
)


class AttendeeKind(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    RESOURCE = "resource"


ROLE_BY_KIND = MappingProxyType(
    {
        AttendeeKind.REQUIRED: "REQ-PARTICIPANT",
        AttendeeKind.OPTIONAL: "OPT-PARTICIPANT",
        AttendeeKind.RESOURCE: "NON-PARTICIPANT",
    }
)

# Works for both an Appointment and a ModifiedOccurrence's ExceptionAttendees.
ATTENDEES_BY_KIND = MappingProxyType(
    {
        AttendeeKind.REQUIRED: attrgetter("required_attendees"),
        AttendeeKind.OPTIONAL: attrgetter("optional_attendees"),
        AttendeeKind.RESOURCE: attrgetter("resources"),
    }
)

_PARTSTAT_BY_RESPONSE = MappingProxyType(
    {
        MeetingResponseType.ACCEPT: "ACCEPTED",
        MeetingResponseType.DECLINE: "DECLINED",
        MeetingResponseType.TENTATIVE: "TENTATIVE",
    }
)

_CUTYPE_BY_MAILBOX = MappingProxyType(
    {
        MailboxType.CONTACT_GROUP: "GROUP",
        MailboxType.PUBLIC_FOLDER: "GROUP",
        MailboxType.PUBLIC_GROUP: "GROUP",
        MailboxType.CONTACT: "INDIVIDUAL",
        MailboxType.MAILBOX: "INDIVIDUAL",
    }
)


def _is_smtp_routed(record: AttendeeRecord) -> bool:
    return (record.routing_type or "").strip().upper() == "SMTP"


def is_email_address(value: str | None) -> bool:
    return bool(value and value.strip() and _EMAIL_RE.fullmatch(value.strip()))


def has_usable_address(record: AttendeeRecord | None) -> bool:
    """Return True when an attendee can be written as a mailto: address.

    SMTP-routed records need a non-blank address; any other routing type
    is accepted only when the display name itself is an email address.
    """
    if record is None:
        return False
    if _is_smtp_routed(record):
        return bool(record.address and record.address.strip())
    return is_email_address(record.name)


def resolve_address(record: AttendeeRecord) -> str:
    if _is_smtp_routed(record):
        return record.address.strip()
    return record.name.strip()


def participation_status(response: MeetingResponseType | None) -> str:
    # Organizer, Unknown and NoResponseReceived all fall through to NEEDS-ACTION.
    return _PARTSTAT_BY_RESPONSE.get(response, "NEEDS-ACTION")


def user_type(kind: AttendeeKind, record: AttendeeRecord) -> str:
    if kind is AttendeeKind.RESOURCE:
        return "RESOURCE"
    return _CUTYPE_BY_MAILBOX.get(record.mailbox_type, "UNKNOWN")


def map_attendee(
    kind: AttendeeKind, is_response_requested: bool, record: InvitedAttendee
) -> vCalAddress:
    """Convert one structured attendee into an iCalendar ATTENDEE value."""
    if not has_usable_address(record):
        raise AttendeeInvariantError(
            f"Attendee {record.name!r} has no usable address (routing type {record.routing_type!r})"
        )

    attendee = vCalAddress(f"mailto:{resolve_address(record)}")
    if record.name:
        attendee.params["CN"] = record.name
    attendee.params["PARTSTAT"] = participation_status(record.response_type)
    attendee.params["CUTYPE"] = user_type(kind, record)
    attendee.params["ROLE"] = ROLE_BY_KIND[kind]
    attendee.params["RSVP"] = "TRUE" if is_response_requested else "FALSE"
    return attendee


def organizer_address(organizer: AttendeeRecord | None) -> str | None:
    """Return the organizer's address, or None when it has none."""
    if organizer is None or not organizer.address or not organizer.address.strip():
        return None
    return organizer.address.strip()


def map_organizer(organizer: AttendeeRecord) -> vCalAddress:
    value = vCalAddress(f"mailto:{organizer_address(organizer)}")
    if organizer.name:
        value.params["CN"] = organizer.name
    return value


def address_of(value) -> str:
    """Strip the mailto: scheme from an ATTENDEE / ORGANIZER value."""
    text = str(value).strip()
    if text.lower().startswith("mailto:"):
        text = text[len("mailto:"):]
    return text


def map_attendees(
    source, is_response_requested: bool, organizer: AttendeeRecord | None
) -> list[vCalAddress]:
    """Map every usable attendee of ``source``, grouped required/optional/resource.

    Attendees whose address matches the organizer's (case-insensitively)
    are left out; the organizer lives in the event's ORGANIZER property.
    """
    excluded = (organizer_address(organizer) or "").lower()
    result = []
    for kind in AttendeeKind:
        for record in ATTENDEES_BY_KIND[kind](source) or ():
            if not has_usable_address(record):
                continue
            attendee = map_attendee(kind, is_response_requested, record)
            if excluded and address_of(attendee).lower() == excluded:
                continue
            result.append(attendee)
    return result
