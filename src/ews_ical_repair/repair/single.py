"""
Attendee reconciliation for non-recurring appointments.
"""

import logging

from icalendar import Calendar
from icalendar import Event

from ews_ical_repair.attendees import map_attendees
from ews_ical_repair.attendees import map_organizer
from ews_ical_repair.attendees import organizer_address
from ews_ical_repair.messages import Appointment
from ews_ical_repair.models import DataInconsistencyError
from ews_ical_repair.repair.utils import copy_event
from ews_ical_repair.repair.utils import events_of
from ews_ical_repair.repair.utils import organizer_of
from ews_ical_repair.repair.utils import replace_events
from ews_ical_repair.repair.utils import set_attendees
from ews_ical_repair.repair.utils import set_organizer

_logger = logging.getLogger(__name__)


def reconcile_event(event: Event, appointment: Appointment) -> Event:
    """Return a copy of event carrying the appointment's attendees.

    The exported attendee list is replaced, not merged.  ORGANIZER is only
    filled in when the export left it out.
    """
    updated = copy_event(event)
    if not appointment.has_invited_attendees():
        return updated

    attendees = map_attendees(
        appointment, appointment.is_response_requested, appointment.organizer
    )
    set_attendees(updated, attendees)
    _logger.debug("Event %s: %d attendee(s) rebuilt", updated.get("UID", "?"), len(attendees))

    if organizer_of(updated) is None and organizer_address(appointment.organizer):
        set_organizer(updated, map_organizer(appointment.organizer))
    return updated


def reconcile_single(calendar: Calendar, appointment: Appointment) -> Calendar:
    """Rebuild the attendee list of a single (non-recurring) event."""
    if not appointment.has_invited_attendees():
        return calendar

    events = events_of(calendar)
    if len(events) != 1:
        raise DataInconsistencyError(
            f"Single appointment expects exactly one VEVENT, found {len(events)}"
        )
    return replace_events(calendar, [reconcile_event(events[0], appointment)])
