"""
Reconciliation of recurring series (master VEVENT plus exception VEVENTs).

The mailbox export of a recurring series misses attendees on the exception
instances, stamps them with a wrong RECURRENCE-ID and only sometimes carries
ORGANIZER.  Three steps run in order, each returning a new calendar:

  1. attach_attendees:   exceptions and master get their attendees
  2. fix_recurrence_ids: exceptions get RECURRENCE-ID = OriginalStart
  3. repeat_organizer:   every event gets the same ORGANIZER
"""

import logging

from icalendar import Calendar

from ews_ical_repair.attendees import map_attendees
from ews_ical_repair.attendees import organizer_address
from ews_ical_repair.messages import Appointment
from ews_ical_repair.models import DataInconsistencyError
from ews_ical_repair.models import PositionalMismatchError
from ews_ical_repair.repair.single import reconcile_event
from ews_ical_repair.repair.utils import attendees_of
from ews_ical_repair.repair.utils import copy_event
from ews_ical_repair.repair.utils import event_start
from ews_ical_repair.repair.utils import events_of
from ews_ical_repair.repair.utils import has_recurrence_id
from ews_ical_repair.repair.utils import organizer_of
from ews_ical_repair.repair.utils import parse_wire_datetime
from ews_ical_repair.repair.utils import replace_events
from ews_ical_repair.repair.utils import set_attendees
from ews_ical_repair.repair.utils import set_organizer
from ews_ical_repair.repair.utils import set_recurrence_id

_logger = logging.getLogger(__name__)


def _ordered_occurrences(appointment: Appointment) -> list:
    """Return (utc_start, occurrence) pairs sorted by start.

    Pairing with the exported exceptions is positional, so two occurrences
    sharing a start instant would make the order ambiguous.
    """
    pairs = sorted(
        ((parse_wire_datetime(occ.start), occ) for occ in appointment.modified_occurrences),
        key=lambda pair: pair[0],
    )
    for (previous, _), (current, _) in zip(pairs, pairs[1:]):
        if previous == current:
            raise PositionalMismatchError(
                f"Two modified occurrences start at {current.isoformat()}; cannot pair by order"
            )
    return pairs


def attach_attendees(calendar: Calendar, appointment: Appointment) -> Calendar:
    """Append occurrence attendees to exception events and reconcile the master."""
    if not appointment.modified_occurrences:
        return calendar

    occurrences = _ordered_occurrences(appointment)
    events = events_of(calendar)
    exceptions = sorted((ev for ev in events if has_recurrence_id(ev)), key=event_start)
    masters = [ev for ev in events if not has_recurrence_id(ev)]

    if len(masters) != 1:
        raise DataInconsistencyError(
            f"Recurring series expects exactly one master VEVENT, found {len(masters)}"
        )
    # TODO: join on the occurrence ItemId once the export carries it on exception VEVENTs.
    if len(exceptions) != len(occurrences):
        raise PositionalMismatchError(
            f"{len(exceptions)} exception VEVENT(s) but {len(occurrences)} modified occurrence(s)"
        )

    updated_exceptions = []
    for event, (start, occurrence) in zip(exceptions, occurrences):
        updated = copy_event(event)
        added = map_attendees(
            occurrence.attendees, appointment.is_response_requested, appointment.organizer
        )
        set_attendees(updated, attendees_of(updated) + added)
        _logger.debug(
            "Exception %s: %d attendee(s) attached", start.isoformat(), len(added)
        )
        updated_exceptions.append(updated)

    master = reconcile_event(masters[0], appointment)
    return replace_events(calendar, updated_exceptions + [master])


def fix_recurrence_ids(calendar: Calendar, appointment: Appointment) -> Calendar:
    """Restamp each exception's RECURRENCE-ID with its occurrence's original start."""
    if not appointment.modified_occurrences:
        return calendar

    by_start = {parse_wire_datetime(occ.start): occ for occ in appointment.modified_occurrences}

    updated = []
    for event in events_of(calendar):
        if not has_recurrence_id(event):
            updated.append(copy_event(event))
            continue

        start = event_start(event)
        occurrence = by_start.get(start)
        if occurrence is None:
            raise DataInconsistencyError(
                f"No modified occurrence starts at {start.isoformat()} "
                f"(exception {event.get('UID', '?')})"
            )

        fixed = copy_event(event)
        set_recurrence_id(fixed, parse_wire_datetime(occurrence.original_start))
        updated.append(fixed)

    return replace_events(calendar, updated)


def repeat_organizer(calendar: Calendar, appointment: Appointment) -> Calendar:
    """Copy the first ORGANIZER found onto every event of the series."""
    if not appointment.modified_occurrences:
        return calendar
    if not organizer_address(appointment.organizer):
        return calendar

    events = events_of(calendar)
    organizer = next(
        (organizer_of(ev) for ev in events if organizer_of(ev) is not None), None
    )
    if organizer is None:
        return calendar

    updated = []
    for event in events:
        repeated = copy_event(event)
        set_organizer(repeated, organizer)
        updated.append(repeated)
    return replace_events(calendar, updated)


_STEPS = (attach_attendees, fix_recurrence_ids, repeat_organizer)


def reconcile_recurring_master(calendar: Calendar, appointment: Appointment) -> Calendar:
    for step in _STEPS:
        calendar = step(calendar, appointment)
    return calendar
