"""
Packet layouts for the RTOS profiler binary trace.

All multi-byte fields are little-endian.

Setup record (3 + N bytes):
    Byte 0:      opcode     0x70..0x7F
    Byte 1:      id         Task/ISR id (0-255)
    Byte 2:      name_len   Length of the name payload
    Bytes 3..:   name       UTF-8 payload, name_len bytes

Event record (10 bytes):
    Byte 0:      type       bit 7 = start/enter flag, bits 0-6 = kind
    Byte 1:      id         Task/ISR id (0-255)
    Bytes 2-9:   timestamp  (u64) Cycle counter

CRITICAL: Event format is '<BBQ' = 10 bytes. Without '<' struct would pad
the u64 to 16 bytes.
"""

import struct
from dataclasses import dataclass

from .record_types import EventKind, SetupOpcode


SETUP_HEADER_FORMAT = '<BBB'
SETUP_HEADER_SIZE = 3

EVENT_FORMAT = '<BBQ'
EVENT_SIZE = 10

U64_MAX = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class SetupRecord:
    """
    Decoded setup record.

    Attributes:
        opcode: Setup opcode (see SetupOpcode)
        id: Task or ISR id the record refers to
        text: Decoded UTF-8 payload (name or info text)
        offset: Byte offset of the record in the source buffer
    """
    opcode: int
    id: int
    text: str
    offset: int = 0

    @property
    def size(self) -> int:
        return SETUP_HEADER_SIZE + len(self.payload)

    @property
    def payload(self) -> bytes:
        return self.text.encode('utf-8')

    def encode(self) -> bytes:
        """Encode record to bytes."""
        payload = self.payload
        if len(payload) > 0xFF:
            raise ValueError(f"Setup payload too long: {len(payload)} > 255 bytes")
        return struct.pack(SETUP_HEADER_FORMAT, self.opcode, self.id, len(payload)) + payload

    def __repr__(self) -> str:
        return (
            f"SetupRecord({SetupOpcode.name(self.opcode)}, "
            f"id={self.id}, text={self.text!r})"
        )


@dataclass(frozen=True)
class EventRecord:
    """
    Decoded event record.

    Attributes:
        type_byte: Raw type byte
        id: Task or ISR id
        timestamp: Cycle counter value (u64)
        offset: Byte offset of the record in the source buffer
    """
    type_byte: int
    id: int
    timestamp: int
    offset: int = 0

    @property
    def kind(self) -> int:
        return self.type_byte & EventKind.KIND_MASK

    @property
    def is_start(self) -> bool:
        return bool(self.type_byte & EventKind.FLAG_START)

    @property
    def size(self) -> int:
        return EVENT_SIZE

    @classmethod
    def make(cls, kind: int, is_start: bool, id: int, timestamp: int) -> 'EventRecord':
        """Build an event from its logical fields."""
        return cls(EventKind.type_byte(kind, is_start), id, timestamp)

    def encode(self) -> bytes:
        """Encode record to bytes."""
        return struct.pack(EVENT_FORMAT, self.type_byte, self.id, self.timestamp)

    def __repr__(self) -> str:
        edge = 'START' if self.is_start else 'END'
        return (
            f"EventRecord({EventKind.name(self.kind)}:{edge}, "
            f"id={self.id}, t={self.timestamp})"
        )


# Verify struct sizes at module load
assert struct.calcsize(EVENT_FORMAT) == EVENT_SIZE, \
    f"Event format size mismatch: {struct.calcsize(EVENT_FORMAT)} != {EVENT_SIZE}"
assert struct.calcsize(SETUP_HEADER_FORMAT) == SETUP_HEADER_SIZE, \
    f"Setup header size mismatch: {struct.calcsize(SETUP_HEADER_FORMAT)} != {SETUP_HEADER_SIZE}"
