"""
Symbol tables and clock metadata populated from setup records.

Two SymbolTable instances exist per decode: one for task ids and one for ISR
ids. Both are owned by the decode call; nothing here is process-wide.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional


# Ids are a single byte on the wire
MAX_SYMBOLS = 256

CLOCK_PREFIX = 'CLK:'

_LEADING_DIGITS = re.compile(r'\s*(\d+)')


class SymbolTable:
    """
    Mapping of numeric id (0-255) to name.

    Unresolved ids fall back to '<fallback_prefix><id>', e.g. 'TaskID_7'.
    """

    def __init__(self, fallback_prefix: str):
        self.fallback_prefix = fallback_prefix
        self._names: Dict[int, str] = {}

    def define(self, id: int, name: str) -> None:
        """Bind id to name. A later definition for the same id replaces it."""
        self._names[id] = name

    def resolve(self, id: int) -> str:
        """Return the bound name, or the synthesized fallback label."""
        name = self._names.get(id)
        if name:
            return name
        return f"{self.fallback_prefix}{id}"

    def intern(self, name: str) -> Optional[int]:
        """
        Return the id bound to name, binding the next free id if needed.

        Used by text formats that reference symbols by name. Returns None
        once all 256 ids are taken.
        """
        for id, existing in self._names.items():
            if existing == name:
                return id
        if len(self._names) >= MAX_SYMBOLS:
            return None
        id = len(self._names)
        while id in self._names:
            id = (id + 1) % MAX_SYMBOLS
        self._names[id] = name
        return id

    def to_dict(self) -> Dict[int, str]:
        return dict(self._names)

    def __contains__(self, id: int) -> bool:
        return id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SymbolTable):
            return NotImplemented
        return (
            self.fallback_prefix == other.fallback_prefix
            and self._names == other._names
        )

    def __repr__(self) -> str:
        return f"SymbolTable({self.fallback_prefix!r}, {len(self._names)} names)"


def task_symbols() -> SymbolTable:
    return SymbolTable('TaskID_')


def isr_symbols() -> SymbolTable:
    return SymbolTable('ISRID_')


@dataclass
class ClockInfo:
    """
    Sampling clock metadata carried by INFO setup records.

    Attributes:
        frequency_hz: Cycle counter frequency, None when the trace has none
    """
    frequency_hz: Optional[int] = None

    @property
    def known(self) -> bool:
        return self.frequency_hz is not None and self.frequency_hz > 0

    @staticmethod
    def parse_frequency(text: str) -> Optional[int]:
        """
        Parse 'CLK:<decimal>' info text.

        Leading digits after the prefix are accepted ('CLK:168000000Hz' is
        168000000). Returns None for text without the prefix or digits.
        """
        if not text.startswith(CLOCK_PREFIX):
            return None
        match = _LEADING_DIGITS.match(text[len(CLOCK_PREFIX):])
        if not match:
            return None
        return int(match.group(1))

    @staticmethod
    def is_clock_text(text: str) -> bool:
        return text.startswith(CLOCK_PREFIX)
