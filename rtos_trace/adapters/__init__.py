"""
Trace format adapters.

Adapters decode raw trace content into a TimelineResult.
Each adapter handles a specific trace format.
"""

import re
from pathlib import Path
from typing import Optional, Union

from .base import TraceAdapter, DecodeOptions, DecodeSession
from .binary_adapter import BinaryTraceAdapter
from .itm_adapter import ItmLogAdapter, ITM_MARKER
from ..formats.packets import SetupRecord
from ..formats.reader import PacketReader
from ..formats.record_types import EventKind, SetupOpcode
from ..timeline.model import TimelineResult


# Bytes inspected when sniffing for ITM frames
PROBE_SIZE = 4096

# An ITM frame at the start of the buffer or of a line
_ITM_LINE = re.compile(rb"(?:\A|[\r\n])\s*" + re.escape(ITM_MARKER))


def frames_as_binary(data: bytes) -> bool:
    """
    Check whether data reads as a clean run of binary records.

    A truncated final record is accepted, since detection reads only the first PROBE_SIZE bytes.
    """
    for record in PacketReader(data).records():
        if isinstance(record, SetupRecord):
            if not SetupOpcode.is_valid(record.opcode):
                return False
        elif not EventKind.is_valid(record.kind):
            return False
    return True


def detect_bytes(data: bytes, options: Optional[DecodeOptions] = None) -> TraceAdapter:
    """
    Pick an adapter from buffer content.

    Text logs need an '<ITM>' frame starting a line and must not also read
    as binary records, so a binary name payload containing the marker stays
    binary.
    """
    head = bytes(data[:PROBE_SIZE])
    if _ITM_LINE.search(head) and not frames_as_binary(head):
        return ItmLogAdapter(options)
    return BinaryTraceAdapter(options)


def auto_detect(path: Union[Path, str], options: Optional[DecodeOptions] = None) -> TraceAdapter:
    """
    Auto-detect trace format from file content.

    Detection order:
    1. Files with '<ITM>' frames starting a line near the top that do not
       read as binary records: ITM text log
    2. Everything else: binary profiler trace

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")

    with open(path, 'rb') as f:
        head = f.read(PROBE_SIZE)

    return detect_bytes(head, options)


def decode(data: bytes, options: Optional[DecodeOptions] = None) -> TimelineResult:
    """Decode a binary trace buffer."""
    return BinaryTraceAdapter(options).decode(data)


def decode_file(path: Union[Path, str], options: Optional[DecodeOptions] = None) -> TimelineResult:
    """Decode a trace file of any supported format."""
    return auto_detect(path, options).decode_file(Path(path))


__all__ = [
    'TraceAdapter',
    'DecodeOptions',
    'DecodeSession',
    'BinaryTraceAdapter',
    'ItmLogAdapter',
    'auto_detect',
    'detect_bytes',
    'frames_as_binary',
    'decode',
    'decode_file',
]
