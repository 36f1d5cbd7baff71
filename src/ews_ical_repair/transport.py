"""
JSON-lines stand-ins for the message queue.

A source is any iterable of inbound records; a publisher is any callable
accepting an outbound record.  These file-backed versions let the pipeline
run from exported dumps without a broker.
"""

import logging
from dataclasses import dataclass
from typing import IO
from typing import Iterator

from pydantic import ValidationError

from ews_ical_repair.messages import NewAppointmentDumped
from ews_ical_repair.messages import NewMimeEventExported

_logger = logging.getLogger(__name__)


@dataclass
class DecodeFailure:
    """Marker yielded in place of an inbound line that could not be decoded."""

    line_no: int
    error: str


def read_inbound(stream: IO[str]) -> Iterator[NewAppointmentDumped | DecodeFailure]:
    """Yield one inbound record per non-blank line of ``stream``."""
    for line_no, line in enumerate(stream, 1):
        if not line.strip():
            continue
        try:
            yield NewAppointmentDumped.model_validate_json(line)
        except ValidationError as e:
            _logger.debug("Line %d failed validation: %s", line_no, e)
            yield DecodeFailure(line_no, f"{e.error_count()} validation error(s): {e}")


class JsonLinesPublisher:
    """Writes each outbound record as one JSON line."""

    def __init__(self, stream: IO[str]):
        self.stream = stream
        self.published = 0

    def __call__(self, message: NewMimeEventExported) -> None:
        self.stream.write(message.to_json() + "\n")
        self.stream.flush()
        self.published += 1
