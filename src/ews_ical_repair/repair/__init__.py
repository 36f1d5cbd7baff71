"""
Appointment-type dispatch: picks the calendar transformer for one appointment.
"""

import logging
from types import MappingProxyType

from icalendar import Calendar

from ews_ical_repair.messages import Appointment
from ews_ical_repair.messages import AppointmentType
from ews_ical_repair.repair.recurring import reconcile_recurring_master
from ews_ical_repair.repair.single import reconcile_single

_logger = logging.getLogger(__name__)


def passthrough(calendar: Calendar, appointment: Appointment) -> Calendar:
    """Occurrences and exceptions are repaired through their recurring master."""
    return calendar


TRANSFORMERS = MappingProxyType(
    {
        AppointmentType.SINGLE: reconcile_single,
        AppointmentType.RECURRING_MASTER: reconcile_recurring_master,
        AppointmentType.EXCEPTION: passthrough,
        AppointmentType.OCCURRENCE: passthrough,
    }
)


def transform_calendar(calendar: Calendar, appointment: Appointment) -> Calendar:
    transformer = TRANSFORMERS[appointment.appointment_type]
    _logger.debug(
        "Dispatching %s appointment to %s",
        appointment.appointment_type.value,
        transformer.__name__,
    )
    return transformer(calendar, appointment)
