"""
Pure data models: configuration, run statistics and the error taxonomy.
"""

from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG = Path.home() / ".config/ews-ical-repair.conf"
CONFIG_ENV_VAR = "EWS_ICAL_REPAIR_CONFIG"
CONFIG_SECTION = "ical-repair"


class CalendarRepairError(Exception):
    """Base exception for calendar repair errors."""

    pass


class MalformedCalendarError(CalendarRepairError):
    """MIME text does not hold exactly one VCALENDAR with events."""

    pass


class DataInconsistencyError(CalendarRepairError):
    """The MIME export and the structured export disagree about one appointment."""

    pass


class PositionalMismatchError(DataInconsistencyError):
    """Exception events and modified occurrences cannot be paired by position."""

    pass


class AttendeeInvariantError(CalendarRepairError):
    """An attendee without a usable address reached the mapper."""

    pass


@dataclass
class RepairConfig:
    """Configuration for a repair run."""

    input_path: Path | None = None
    output_path: Path | None = None
    fail_on_error: bool = False
    verbose: bool = False


@dataclass
class RepairStats:
    """Statistics for a repair run."""

    published: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.published + self.skipped + self.failed
