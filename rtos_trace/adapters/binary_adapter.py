"""
Adapter for the native binary profiler trace.

This is the event decoder: it pulls records from a PacketReader, classifies
them by type byte, and dispatches them to symbol tables (setup records) or
to the timeline reconstructor (event records).

    type byte 0x70..0x7F  -> setup record
        0x70 TASK_MAP     -> task symbol table
        0x71 ISR_MAP      -> ISR symbol table
        0x7F INFO         -> clock info ("CLK:<hz>")
        other             -> skipped
    otherwise             -> 10-byte event, kind = type & 0x7F
        0x01 TASK_SWITCH  -> task start/end
        0x02 INTERRUPT    -> ISR enter/exit
        0x03 TASK_CREATE  -> creation marker
        other             -> skipped
"""

import logging

from .base import DecodeSession, TraceAdapter
from ..core.errors import ErrorCode
from ..formats.packets import EventRecord, SetupRecord
from ..formats.reader import PacketReader
from ..formats.record_types import EventKind, SetupOpcode
from ..formats.symbols import ClockInfo
from ..timeline.model import TimelineResult


logger = logging.getLogger(__name__)


class BinaryTraceAdapter(TraceAdapter):
    """Decoder for the binary setup/event record stream."""

    format_name = 'binary'

    def decode(self, data: bytes) -> TimelineResult:
        session = self.new_session()
        reader = PacketReader(data, session.diagnostics)

        for record in reader.records():
            if isinstance(record, SetupRecord):
                self._apply_setup(session, record)
            else:
                self._apply_event(session, record)

        session.truncated = reader.truncated
        logger.debug(
            f"Read {reader.records_read} records, stopped at offset "
            f"{reader.offset} of {len(data)}"
        )
        return session.finish()

    def _apply_setup(self, session: DecodeSession, record: SetupRecord) -> None:
        if record.opcode == SetupOpcode.TASK_MAP:
            session.task_names.define(record.id, record.text)
            logger.debug(f"MAP Task ID {record.id} -> {record.text!r}")

        elif record.opcode == SetupOpcode.ISR_MAP:
            session.isr_names.define(record.id, record.text)
            logger.debug(f"MAP ISR ID {record.id} -> {record.text!r}")

        elif record.opcode == SetupOpcode.INFO:
            logger.debug(f"INFO: {record.text!r}")
            if ClockInfo.is_clock_text(record.text):
                frequency = ClockInfo.parse_frequency(record.text)
                if frequency is None:
                    session.diagnostics.add(
                        ErrorCode.E1004_INVALID_CLOCK_INFO,
                        offset=record.offset,
                        text=record.text,
                    )
                else:
                    session.clock.frequency_hz = frequency

        else:
            session.diagnostics.add(
                ErrorCode.E1002_UNKNOWN_SETUP_OPCODE,
                offset=record.offset,
                opcode=f"0x{record.opcode:02X}",
            )

    def _apply_event(self, session: DecodeSession, record: EventRecord) -> None:
        rec = session.reconstructor
        kind, is_start = record.kind, record.is_start

        if kind == EventKind.TASK_SWITCH:
            if is_start:
                rec.task_start(record.id, record.timestamp)
            else:
                rec.task_end(record.id, record.timestamp)

        elif kind == EventKind.INTERRUPT:
            if is_start:
                rec.isr_enter(record.id, record.timestamp)
            else:
                rec.isr_exit(record.id, record.timestamp)

        elif kind == EventKind.TASK_CREATE:
            rec.task_create(record.id, record.timestamp)

        else:
            session.diagnostics.add(
                ErrorCode.E1003_UNKNOWN_EVENT_KIND,
                offset=record.offset,
                kind=f"0x{kind:02X}",
            )
