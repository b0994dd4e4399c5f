"""
TraceBuilder - encode setup and event records into a binary trace.

Used to produce sample traces (CLI `demo`) and test fixtures.

Usage:
    data = (
        TraceBuilder()
        .task_name(1, "Work")
        .task_start(1, 100)
        .task_end(1, 200)
        .build()
    )
"""

from pathlib import Path
from typing import List

from .packets import EventRecord, SetupRecord
from .record_types import EventKind, SetupOpcode
from .symbols import CLOCK_PREFIX


class TraceBuilder:
    """Fluent builder for binary traces."""

    def __init__(self):
        self._chunks: List[bytes] = []

    def setup(self, opcode: int, id: int, text: str) -> 'TraceBuilder':
        self._chunks.append(SetupRecord(opcode, id, text).encode())
        return self

    def event(self, kind: int, is_start: bool, id: int, timestamp: int) -> 'TraceBuilder':
        self._chunks.append(EventRecord.make(kind, is_start, id, timestamp).encode())
        return self

    def raw(self, data: bytes) -> 'TraceBuilder':
        self._chunks.append(bytes(data))
        return self

    def task_name(self, id: int, name: str) -> 'TraceBuilder':
        return self.setup(SetupOpcode.TASK_MAP, id, name)

    def isr_name(self, id: int, name: str) -> 'TraceBuilder':
        return self.setup(SetupOpcode.ISR_MAP, id, name)

    def info(self, text: str) -> 'TraceBuilder':
        return self.setup(SetupOpcode.INFO, 0, text)

    def clock(self, frequency_hz: int) -> 'TraceBuilder':
        return self.info(f"{CLOCK_PREFIX}{frequency_hz}")

    def task_start(self, id: int, timestamp: int) -> 'TraceBuilder':
        return self.event(EventKind.TASK_SWITCH, True, id, timestamp)

    def task_end(self, id: int, timestamp: int) -> 'TraceBuilder':
        return self.event(EventKind.TASK_SWITCH, False, id, timestamp)

    def task_create(self, id: int, timestamp: int) -> 'TraceBuilder':
        return self.event(EventKind.TASK_CREATE, True, id, timestamp)

    def isr_enter(self, id: int, timestamp: int) -> 'TraceBuilder':
        return self.event(EventKind.INTERRUPT, True, id, timestamp)

    def isr_exit(self, id: int, timestamp: int) -> 'TraceBuilder':
        return self.event(EventKind.INTERRUPT, False, id, timestamp)

    def build(self) -> bytes:
        return b''.join(self._chunks)

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.write_bytes(self.build())
        return path

    def __len__(self) -> int:
        return sum(len(c) for c in self._chunks)
