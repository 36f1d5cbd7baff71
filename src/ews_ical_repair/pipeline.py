"""
Per-message driver for AppointmentRepairer: parse, dispatch, serialize, publish.
"""

import logging
import uuid
from datetime import datetime
from datetime import timezone
from typing import Callable
from typing import Iterable

from ews_ical_repair.messages import NewAppointmentDumped
from ews_ical_repair.messages import NewMimeEventExported
from ews_ical_repair.models import CalendarRepairError
from ews_ical_repair.models import MalformedCalendarError
from ews_ical_repair.models import RepairStats
from ews_ical_repair.repair import transform_calendar
from ews_ical_repair.repair.utils import parse_calendar
from ews_ical_repair.repair.utils import serialize_calendar
from ews_ical_repair.transport import DecodeFailure

Publisher = Callable[[NewMimeEventExported], None]


def _describe(inbound: NewAppointmentDumped) -> str:
    appointment = inbound.appointment
    organizer = appointment.organizer.address if appointment.organizer else None
    return (
        f"mailbox={inbound.mailbox} subject={appointment.subject!r} "
        f"organizer={organizer or '-'}"
    )


def repair_mime(mime_content: str, appointment) -> str:
    """Return the repaired calendar text for one appointment.

    Raises CalendarRepairError subclasses.  When the transform leaves the
    calendar untouched the original text is returned verbatim.
    """
    calendar = parse_calendar(mime_content)
    repaired = transform_calendar(calendar, appointment)
    if repaired is calendar:
        return mime_content
    return serialize_calendar(repaired)


class AppointmentRepairer:
    """Turns inbound appointment records into repaired outbound records."""

    def __init__(self, publish: Publisher, logger: logging.Logger | None = None):
        self.publish = publish
        self.logger = logger or logging.getLogger(__name__)
        self.stats = RepairStats()

    def handle(self, inbound: NewAppointmentDumped) -> NewMimeEventExported | None:
        """Repair and publish one appointment; failures are logged, never raised."""
        appointment = inbound.appointment
        self.logger.debug(
            "Handling %s appointment %s (%s)",
            appointment.appointment_type.value,
            inbound.id,
            _describe(inbound),
        )

        try:
            mime_content = repair_mime(inbound.mime_content, appointment)
        except MalformedCalendarError as e:
            self.logger.error("Skipping malformed calendar (%s): %s", _describe(inbound), e)
            self.stats.skipped += 1
            return None
        except CalendarRepairError as e:
            self.logger.error(
                "Failed to repair %s appointment (%s): %s",
                appointment.appointment_type.value,
                _describe(inbound),
                e,
            )
            self.stats.failed += 1
            return None
        except Exception:
            self.logger.exception(
                "Unexpected error repairing %s appointment (%s)",
                appointment.appointment_type.value,
                _describe(inbound),
            )
            self.stats.failed += 1
            return None

        message = NewMimeEventExported(
            id=uuid.uuid4(),
            creation_date=datetime.now(timezone.utc),
            primary_address=inbound.mailbox,
            calendar_id=inbound.folder_id,
            appointment_id=inbound.id,
            mime_content=mime_content,
        )
        self.publish(message)
        self.stats.published += 1
        self.logger.info("Published repaired calendar for %s", _describe(inbound))
        return message

    def run(self, messages: Iterable[NewAppointmentDumped | DecodeFailure]) -> RepairStats:
        """Process messages one at a time, in order."""
        for inbound in messages:
            if isinstance(inbound, DecodeFailure):
                self.logger.error("Skipping undecodable record on line %d: %s",
                                  inbound.line_no, inbound.error)
                self.stats.failed += 1
                continue
            self.handle(inbound)
        return self.stats
