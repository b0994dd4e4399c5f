"""
PacketReader - sequential cursor over a binary trace buffer.

PacketReader handles:
- Setup vs event record framing
- Forward-only cursor advance
- Clean stop on truncated input

It does not interpret records: classification and dispatch belong to the
event decoder (adapters.binary_adapter).
"""

import logging
import struct
from typing import Iterator, Optional, Union

from .packets import (
    EVENT_FORMAT,
    EVENT_SIZE,
    SETUP_HEADER_FORMAT,
    SETUP_HEADER_SIZE,
    EventRecord,
    SetupRecord,
)
from .record_types import SetupOpcode
from ..core.errors import DiagnosticLog, ErrorCode


logger = logging.getLogger(__name__)

Record = Union[SetupRecord, EventRecord]


class PacketReader:
    """
    Iterate over the records of an immutable byte buffer.

    Usage:
        reader = PacketReader(data)
        for record in reader.records():
            handle(record)

        if reader.truncated:
            print(f"Stopped at offset {reader.offset}")

    Truncation is not an error: iteration simply ends and `truncated` is set.
    """

    def __init__(self, data: bytes, diagnostics: Optional[DiagnosticLog] = None):
        self._data = memoryview(bytes(data))
        self._diagnostics = diagnostics
        self.offset = 0
        self.truncated = False
        self.records_read = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def records(self) -> Iterator[Record]:
        """Yield records until the buffer is exhausted or truncated."""
        while self.offset < len(self._data):
            type_byte = self._data[self.offset]

            if SetupOpcode.is_setup(type_byte):
                record = self._read_setup()
            else:
                record = self._read_event()

            if record is None:
                return

            self.records_read += 1
            yield record

    def _read_setup(self) -> Optional[SetupRecord]:
        start = self.offset

        if self.remaining < SETUP_HEADER_SIZE:
            self._truncate('setup header', SETUP_HEADER_SIZE)
            return None

        opcode, id, name_len = struct.unpack_from(SETUP_HEADER_FORMAT, self._data, start)

        if self.remaining < SETUP_HEADER_SIZE + name_len:
            self._truncate('setup payload', SETUP_HEADER_SIZE + name_len)
            return None

        payload_start = start + SETUP_HEADER_SIZE
        payload = bytes(self._data[payload_start:payload_start + name_len])
        self.offset = payload_start + name_len

        return SetupRecord(
            opcode=opcode,
            id=id,
            text=payload.decode('utf-8', errors='replace'),
            offset=start,
        )

    def _read_event(self) -> Optional[EventRecord]:
        start = self.offset

        if self.remaining < EVENT_SIZE:
            self._truncate('event', EVENT_SIZE)
            return None

        type_byte, id, timestamp = struct.unpack_from(EVENT_FORMAT, self._data, start)
        self.offset = start + EVENT_SIZE

        return EventRecord(type_byte=type_byte, id=id, timestamp=timestamp, offset=start)

    def _truncate(self, what: str, needed: int) -> None:
        self.truncated = True
        logger.debug(
            f"Incomplete {what} at offset {self.offset}: "
            f"need {needed} bytes, have {self.remaining}"
        )
        if self._diagnostics is not None:
            self._diagnostics.add(
                ErrorCode.E1001_TRUNCATED_RECORD,
                offset=self.offset,
                record=what,
                needed=needed,
                available=self.remaining,
            )
