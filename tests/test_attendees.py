"""
Unit tests for the attendee mapper in ews_ical_repair.attendees.
"""

import pytest

from conftest import make_appointment
from conftest import organizer_record
from conftest import smtp_attendee
from ews_ical_repair.attendees import ROLE_BY_KIND
from ews_ical_repair.attendees import AttendeeKind
from ews_ical_repair.attendees import address_of
from ews_ical_repair.attendees import has_usable_address
from ews_ical_repair.attendees import map_attendee
from ews_ical_repair.attendees import map_attendees
from ews_ical_repair.attendees import map_organizer
from ews_ical_repair.attendees import participation_status
from ews_ical_repair.attendees import user_type
from ews_ical_repair.messages import InvitedAttendee
from ews_ical_repair.messages import MailboxType
from ews_ical_repair.messages import MeetingResponseType
from ews_ical_repair.models import AttendeeInvariantError


def _record(**fields) -> InvitedAttendee:
    return InvitedAttendee.model_validate(fields)


# ---------------------------------------------------------------------------
# TestAddressResolution
# ---------------------------------------------------------------------------


class TestAddressResolution:
    def test_smtp_with_address(self):
        assert has_usable_address(_record(Address="bob@x.com", RoutingType="SMTP")) is True

    def test_smtp_routing_case_insensitive(self):
        assert has_usable_address(_record(Address="bob@x.com", RoutingType="smtp")) is True

    def test_smtp_blank_address(self):
        assert has_usable_address(_record(Name="Bob", Address="   ", RoutingType="SMTP")) is False

    def test_exchange_routing_with_email_name(self):
        """A non-SMTP record is usable when its display name is an address."""
        record = _record(Name="carol@example.com", Address="/o=ExchangeLabs/cn=carol", RoutingType="EX")
        assert has_usable_address(record) is True
        attendee = map_attendee(AttendeeKind.REQUIRED, False, record)
        assert str(attendee) == "mailto:carol@example.com"

    def test_exchange_routing_with_plain_name(self):
        record = _record(Name="Carol", Address="/o=ExchangeLabs/cn=carol", RoutingType="EX")
        assert has_usable_address(record) is False

    def test_name_with_surrounding_text_is_not_an_address(self):
        record = _record(Name="Carol <carol@example.com>", RoutingType="EX")
        assert has_usable_address(record) is False

    def test_email_name_matched_case_insensitively(self):
        record = _record(Name="Carol.Jones@Example.COM", RoutingType="EX")
        assert has_usable_address(record) is True

    def test_missing_record(self):
        assert has_usable_address(None) is False

    def test_unusable_record_reaching_mapper_fails_loudly(self):
        with pytest.raises(AttendeeInvariantError):
            map_attendee(AttendeeKind.REQUIRED, True, _record(Name="Nobody", RoutingType="EX"))


# ---------------------------------------------------------------------------
# TestParticipationStatus
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        (MeetingResponseType.ACCEPT, "ACCEPTED"),
        (MeetingResponseType.DECLINE, "DECLINED"),
        (MeetingResponseType.TENTATIVE, "TENTATIVE"),
        (MeetingResponseType.UNKNOWN, "NEEDS-ACTION"),
        (MeetingResponseType.ORGANIZER, "NEEDS-ACTION"),
        (MeetingResponseType.NO_RESPONSE_RECEIVED, "NEEDS-ACTION"),
        (None, "NEEDS-ACTION"),
    ],
)
def test_participation_status(response, expected):
    assert participation_status(response) == expected


# ---------------------------------------------------------------------------
# TestUserType
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("mailbox_type", "expected"),
    [
        (MailboxType.UNKNOWN, "UNKNOWN"),
        (MailboxType.ONE_OFF, "UNKNOWN"),
        (MailboxType.MAILBOX, "INDIVIDUAL"),
        (MailboxType.PUBLIC_FOLDER, "GROUP"),
        (MailboxType.PUBLIC_GROUP, "GROUP"),
        (MailboxType.CONTACT_GROUP, "GROUP"),
        (MailboxType.CONTACT, "INDIVIDUAL"),
        (None, "UNKNOWN"),
    ],
)
def test_user_type_by_mailbox_type(mailbox_type, expected):
    record = _record(Address="a@x.com", RoutingType="SMTP", MailboxType=mailbox_type)
    assert user_type(AttendeeKind.REQUIRED, record) == expected
    assert user_type(AttendeeKind.OPTIONAL, record) == expected


@pytest.mark.parametrize("mailbox_type", list(MailboxType) + [None])
def test_resource_kind_always_resource(mailbox_type):
    record = _record(Address="room@x.com", RoutingType="SMTP", MailboxType=mailbox_type)
    assert user_type(AttendeeKind.RESOURCE, record) == "RESOURCE"


# ---------------------------------------------------------------------------
# TestMapAttendee
# ---------------------------------------------------------------------------


class TestMapAttendee:
    def test_required_accepted(self):
        record = _record(Name="Bob", Address="bob@x.com", RoutingType="SMTP", ResponseType="Accept")
        attendee = map_attendee(AttendeeKind.REQUIRED, True, record)
        assert str(attendee) == "mailto:bob@x.com"
        assert attendee.params["CN"] == "Bob"
        assert attendee.params["PARTSTAT"] == "ACCEPTED"
        assert attendee.params["ROLE"] == "REQ-PARTICIPANT"
        assert attendee.params["RSVP"] == "TRUE"

    def test_role_comes_from_kind(self):
        record = _record(Address="x@x.com", RoutingType="SMTP")
        for kind, role in ROLE_BY_KIND.items():
            assert map_attendee(kind, False, record).params["ROLE"] == role

    def test_rsvp_false(self):
        record = _record(Address="x@x.com", RoutingType="SMTP")
        assert map_attendee(AttendeeKind.OPTIONAL, False, record).params["RSVP"] == "FALSE"

    def test_no_name_no_cn(self):
        attendee = map_attendee(
            AttendeeKind.REQUIRED, False, _record(Address="x@x.com", RoutingType="SMTP")
        )
        assert "CN" not in attendee.params


# ---------------------------------------------------------------------------
# TestMapAttendees
# ---------------------------------------------------------------------------


class TestMapAttendees:
    def test_grouped_required_optional_resource(self):
        appointment = make_appointment(
            RequiredAttendees=[smtp_attendee("R1", "r1@x.com"), smtp_attendee("R2", "r2@x.com")],
            OptionalAttendees=[smtp_attendee("O1", "o1@x.com")],
            Resources=[smtp_attendee("Room", "room@x.com")],
        )
        attendees = map_attendees(appointment, False, appointment.organizer)
        assert [address_of(a) for a in attendees] == [
            "r1@x.com",
            "r2@x.com",
            "o1@x.com",
            "room@x.com",
        ]
        assert [a.params["ROLE"] for a in attendees] == [
            "REQ-PARTICIPANT",
            "REQ-PARTICIPANT",
            "OPT-PARTICIPANT",
            "NON-PARTICIPANT",
        ]

    def test_unusable_attendees_filtered(self):
        appointment = make_appointment(
            RequiredAttendees=[
                smtp_attendee("Bob", "bob@x.com"),
                {"Name": "Legacy", "Address": "/o=Org/cn=legacy", "RoutingType": "EX"},
            ],
        )
        attendees = map_attendees(appointment, False, None)
        assert [address_of(a) for a in attendees] == ["bob@x.com"]

    def test_organizer_excluded_case_insensitive(self):
        appointment = make_appointment(
            Organizer=organizer_record("Olga@Example.com"),
            RequiredAttendees=[
                smtp_attendee("Olga", "OLGA@example.COM"),
                smtp_attendee("Bob", "bob@x.com"),
            ],
        )
        attendees = map_attendees(appointment, True, appointment.organizer)
        assert [address_of(a) for a in attendees] == ["bob@x.com"]

    def test_occurrence_attendees_source(self):
        appointment = make_appointment(
            "RecurringMaster",
            ModifiedOccurrences=[
                {
                    "Start": "2026-03-10T14:00:00Z",
                    "OriginalStart": "2026-03-09T10:00:00Z",
                    "Attendees": {
                        "Required": [smtp_attendee("Dave", "dave@x.com")],
                        "Resources": [smtp_attendee("Room", "room@x.com")],
                    },
                }
            ],
        )
        occurrence = appointment.modified_occurrences[0]
        attendees = map_attendees(occurrence.attendees, False, None)
        assert [a.params["CUTYPE"] for a in attendees] == ["UNKNOWN", "RESOURCE"]


def test_map_organizer():
    appointment = make_appointment(Organizer=organizer_record())
    organizer = map_organizer(appointment.organizer)
    assert str(organizer) == "mailto:olga@example.com"
    assert organizer.params["CN"] == "Olga Organizer"
