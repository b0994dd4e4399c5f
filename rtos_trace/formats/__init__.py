"""Trace format definitions and readers."""

from .record_types import SetupOpcode, EventKind
from .packets import SetupRecord, EventRecord, EVENT_SIZE, SETUP_HEADER_SIZE, U64_MAX
from .reader import PacketReader
from .symbols import SymbolTable, ClockInfo, MAX_SYMBOLS, task_symbols, isr_symbols
from .writer import TraceBuilder

__all__ = [
    'SetupOpcode',
    'EventKind',
    'SetupRecord',
    'EventRecord',
    'EVENT_SIZE',
    'SETUP_HEADER_SIZE',
    'U64_MAX',
    'PacketReader',
    'SymbolTable',
    'ClockInfo',
    'MAX_SYMBOLS',
    'task_symbols',
    'isr_symbols',
    'TraceBuilder',
]
