"""
Shared pytest fixtures and iCal / appointment helpers.
"""

import logging

import pytest

from ews_ical_repair.messages import Appointment
from ews_ical_repair.messages import NewAppointmentDumped

ORGANIZER_ADDRESS = "olga@example.com"

_DTSTAMP = "20260224T000000Z"


def make_vevent(
    uid: str = "evt-1",
    summary: str = "Test Event",
    dtstart: str = "20260301T100000Z",
    dtend: str = "20260301T110000Z",
    extra_lines: tuple = (),
) -> str:
    """Return a VEVENT iCal string (no VCALENDAR wrapper) with optional extra lines."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"SUMMARY:{summary}",
        f"DTSTART:{dtstart}",
        f"DTEND:{dtend}",
        f"DTSTAMP:{_DTSTAMP}",
    ]
    lines.extend(extra_lines)
    lines.append("END:VEVENT")
    return "\r\n".join(lines) + "\r\n"


def wrap_vcalendar(*vevents: str) -> str:
    """Wrap VEVENT strings in a minimal VCALENDAR."""
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//TestSuite//EN\r\n" + "".join(vevents) + "END:VCALENDAR\r\n"
    )


def make_series(exceptions: tuple = (), master_organizer: bool = True) -> str:
    """Return a weekly series master plus exception VEVENTs.

    ``exceptions`` holds (dtstart, recurrence_id) pairs of UTC basic-format
    stamps.  The exported RECURRENCE-ID is deliberately taken as given so
    tests can check it is rewritten.
    """
    master_lines = ["RRULE:FREQ=WEEKLY;COUNT=6"]
    if master_organizer:
        master_lines.append(f"ORGANIZER;CN=Olga Organizer:mailto:{ORGANIZER_ADDRESS}")
    vevents = [
        make_vevent(
            "series-1",
            "Weekly sync",
            "20260302T100000Z",
            "20260302T110000Z",
            tuple(master_lines),
        )
    ]
    for dtstart, rid in exceptions:
        vevents.append(
            make_vevent(
                "series-1",
                "Weekly sync (moved)",
                dtstart,
                dtstart[:9] + "235900Z",
                (f"RECURRENCE-ID:{rid}",),
            )
        )
    return wrap_vcalendar(*vevents)


def smtp_attendee(name: str, address: str, response: str | None = None, **extra) -> dict:
    record = {"Name": name, "Address": address, "RoutingType": "SMTP"}
    if response is not None:
        record["ResponseType"] = response
    record.update(extra)
    return record


def organizer_record(address: str = ORGANIZER_ADDRESS, name: str = "Olga Organizer") -> dict:
    return {"Name": name, "Address": address, "RoutingType": "SMTP", "MailboxType": "Mailbox"}


def make_appointment(appointment_type: str = "Single", **fields) -> Appointment:
    payload = {"AppointmentType": appointment_type, "Subject": "Planning"}
    payload.update(fields)
    return Appointment.model_validate(payload)


def make_inbound(mime_content: str, appointment: Appointment, **fields) -> NewAppointmentDumped:
    payload = {
        "mailbox": "owner@example.com",
        "folder_id": "calendar-folder-1",
        "id": "appointment-1",
        "mime_content": mime_content,
        "appointment": appointment,
    }
    payload.update(fields)
    return NewAppointmentDumped(**payload)


@pytest.fixture
def repair_logger():
    return logging.getLogger("test_repair")
