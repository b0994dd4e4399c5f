"""
Record type constants for the RTOS profiler trace format.

Every record starts with one type byte:
- 0x70..0x7F: setup records (name maps, info text)
- anything else: 10-byte event records, where bit 7 is the start/end flag
  and bits 0-6 select the event kind
"""


class SetupOpcode:
    """Setup record opcodes."""

    # Reserved range for setup records
    RANGE_START = 0x70
    RANGE_END = 0x7F

    # Task id -> name
    TASK_MAP = 0x70

    # ISR id -> name
    ISR_MAP = 0x71

    # Free-form info text ("CLK:<hz>")
    INFO = 0x7F

    @classmethod
    def name(cls, opcode: int) -> str:
        """Get human-readable name for a setup opcode."""
        names = {
            cls.TASK_MAP: 'TASK_MAP',
            cls.ISR_MAP: 'ISR_MAP',
            cls.INFO: 'INFO',
        }
        return names.get(opcode, f'UNKNOWN(0x{opcode:02X})')

    @classmethod
    def is_setup(cls, type_byte: int) -> bool:
        """Check if a type byte falls in the setup range."""
        return cls.RANGE_START <= type_byte <= cls.RANGE_END

    @classmethod
    def is_valid(cls, opcode: int) -> bool:
        """Check if opcode is understood."""
        return opcode in (cls.TASK_MAP, cls.ISR_MAP, cls.INFO)


class EventKind:
    """Event record kinds (bits 0-6 of the type byte)."""

    KIND_MASK = 0x7F

    # 1 = START/ENTER, 0 = END/EXIT
    FLAG_START = 0x80

    TASK_SWITCH = 0x01
    INTERRUPT = 0x02
    TASK_CREATE = 0x03

    @classmethod
    def name(cls, kind: int) -> str:
        """Get human-readable name for an event kind."""
        names = {
            cls.TASK_SWITCH: 'TASK_SWITCH',
            cls.INTERRUPT: 'INTERRUPT',
            cls.TASK_CREATE: 'TASK_CREATE',
        }
        return names.get(kind, f'UNKNOWN(0x{kind:02X})')

    @classmethod
    def is_valid(cls, kind: int) -> bool:
        """Check if kind is understood."""
        return kind in (cls.TASK_SWITCH, cls.INTERRUPT, cls.TASK_CREATE)

    @classmethod
    def split(cls, type_byte: int):
        """Split a type byte into (kind, is_start)."""
        return type_byte & cls.KIND_MASK, bool(type_byte & cls.FLAG_START)

    @classmethod
    def type_byte(cls, kind: int, is_start: bool) -> int:
        """Build a type byte from kind and start flag."""
        return (kind & cls.KIND_MASK) | (cls.FLAG_START if is_start else 0)
