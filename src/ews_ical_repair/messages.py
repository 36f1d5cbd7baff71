"""
Wire records exchanged with the mailbox exporter.

The exporter serializes its .NET message classes with PascalCase keys and
either enum names or enum ordinals; both are accepted here.  Unknown keys
are ignored because the exported appointment carries far more fields than
the repair pipeline reads.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_pascal


class AppointmentType(str, Enum):
    SINGLE = "Single"
    OCCURRENCE = "Occurrence"
    EXCEPTION = "Exception"
    RECURRING_MASTER = "RecurringMaster"


class MailboxType(str, Enum):
    UNKNOWN = "Unknown"
    ONE_OFF = "OneOff"
    MAILBOX = "Mailbox"
    PUBLIC_FOLDER = "PublicFolder"
    PUBLIC_GROUP = "PublicGroup"
    CONTACT_GROUP = "ContactGroup"
    CONTACT = "Contact"


class MeetingResponseType(str, Enum):
    UNKNOWN = "Unknown"
    ORGANIZER = "Organizer"
    TENTATIVE = "Tentative"
    ACCEPT = "Accept"
    DECLINE = "Decline"
    NO_RESPONSE_RECEIVED = "NoResponseReceived"


def _wire_enum(enum_cls: type[Enum]) -> BeforeValidator:
    """Accept an enum by (case-insensitive) name or by .NET ordinal."""
    members = list(enum_cls)

    def coerce(value):
        if value is None or isinstance(value, enum_cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"{value} is not a valid {enum_cls.__name__} ordinal")
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in members:
                if member.value.lower() == wanted:
                    return member
        return value

    return BeforeValidator(coerce)


def _none_as_empty(value):
    return [] if value is None else value


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )


class AttendeeRecord(WireModel):
    """Structured attendee or organizer as exported from the mailbox."""

    name: str | None = None
    address: str | None = None
    routing_type: str | None = None
    mailbox_type: Annotated[MailboxType | None, _wire_enum(MailboxType)] = None


class InvitedAttendee(AttendeeRecord):
    response_type: Annotated[
        MeetingResponseType | None, _wire_enum(MeetingResponseType)
    ] = None


AttendeeList = Annotated[list[InvitedAttendee], BeforeValidator(_none_as_empty)]


class ItemId(WireModel):
    unique_id: str | None = None
    change_key: str | None = None


class ExceptionAttendees(WireModel):
    required: AttendeeList = Field(default_factory=list)
    optional: AttendeeList = Field(default_factory=list)
    resources: AttendeeList = Field(default_factory=list)

    @property
    def required_attendees(self) -> list[InvitedAttendee]:
        return self.required

    @property
    def optional_attendees(self) -> list[InvitedAttendee]:
        return self.optional


class ModifiedOccurrence(WireModel):
    """One modified instance of a recurring series.

    ``start`` is the instance's own (moved) start; ``original_start`` is the
    start it would have had under the unmodified recurrence rule.
    """

    item_id: ItemId | None = None
    attendees: Annotated[
        ExceptionAttendees, BeforeValidator(lambda v: {} if v is None else v)
    ] = Field(default_factory=ExceptionAttendees)
    start: str
    end: str | None = None
    original_start: str


class Appointment(WireModel):
    """Authoritative appointment metadata for one calendar item."""

    appointment_type: Annotated[AppointmentType, _wire_enum(AppointmentType)]
    subject: str | None = None
    organizer: AttendeeRecord | None = None
    required_attendees: AttendeeList = Field(default_factory=list)
    optional_attendees: AttendeeList = Field(default_factory=list)
    resources: AttendeeList = Field(default_factory=list)
    is_response_requested: bool = False
    modified_occurrences: list[ModifiedOccurrence] | None = None

    def has_invited_attendees(self) -> bool:
        return bool(self.required_attendees or self.optional_attendees or self.resources)


class NewAppointmentDumped(WireModel):
    """Inbound record: one exported appointment and its MIME calendar text."""

    mailbox: str
    folder_id: str
    id: str
    mime_content: str
    source_as_json: str | None = None
    appointment: Appointment


class NewMimeEventExported(WireModel):
    """Outbound record: the repaired calendar text for one appointment."""

    id: uuid.UUID
    creation_date: datetime
    primary_address: str
    calendar_id: str
    appointment_id: str
    mime_content: str

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
