"""
RTOS-Trace v1.0 - Timeline reconstruction for embedded RTOS profiler traces.

This package provides:
- formats: Binary record layouts, packet reader, symbol tables
- adapters: Format decoders (binary profiler stream, ITM text log)
- timeline: Interval reconstruction, preemption nesting, CPU load stats
- config: YAML configuration with environment variable support
- core: Diagnostics and JSON reports
- cli: Command-line interface
"""

__version__ = "1.0.0"

from .formats import (
    SetupOpcode,
    EventKind,
    SetupRecord,
    EventRecord,
    PacketReader,
    SymbolTable,
    ClockInfo,
    TraceBuilder,
)
from .adapters import (
    TraceAdapter,
    DecodeOptions,
    BinaryTraceAdapter,
    ItmLogAdapter,
    auto_detect,
    decode,
    decode_file,
)
from .timeline import (
    Preemption,
    TaskInstance,
    TaskStats,
    TimelineResult,
    TimelineReconstructor,
    StatisticsAggregator,
)
from .config import TraceConfig, load_config
from .core import ErrorCode, Diagnostic, TimelineReport

__all__ = [
    # Version
    '__version__',
    # Formats
    'SetupOpcode',
    'EventKind',
    'SetupRecord',
    'EventRecord',
    'PacketReader',
    'SymbolTable',
    'ClockInfo',
    'TraceBuilder',
    # Adapters
    'TraceAdapter',
    'DecodeOptions',
    'BinaryTraceAdapter',
    'ItmLogAdapter',
    'auto_detect',
    'decode',
    'decode_file',
    # Timeline
    'Preemption',
    'TaskInstance',
    'TaskStats',
    'TimelineResult',
    'TimelineReconstructor',
    'StatisticsAggregator',
    # Config
    'TraceConfig',
    'load_config',
    # Core
    'ErrorCode',
    'Diagnostic',
    'TimelineReport',
]
