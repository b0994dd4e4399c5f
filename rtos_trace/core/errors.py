"""
Error codes for RTOS-Trace.

Structured error codes for machine-parseable diagnostics. None of the
decode-time codes abort a decode: they describe what was skipped or dropped
while producing a best-effort result.

Format: E{category}{number}
- E1xxx: Stream/format errors
- E2xxx: Timeline errors
- E3xxx: Configuration errors
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # E1xxx: Stream/format errors
    E1001_TRUNCATED_RECORD = "E1001"
    E1002_UNKNOWN_SETUP_OPCODE = "E1002"
    E1003_UNKNOWN_EVENT_KIND = "E1003"
    E1004_INVALID_CLOCK_INFO = "E1004"

    # E2xxx: Timeline errors
    E2001_UNMATCHED_END = "E2001"
    E2002_UNMATCHED_OPEN = "E2002"
    E2003_DEGENERATE_TIMELINE = "E2003"
    E2004_SYMBOL_TABLE_FULL = "E2004"

    # E3xxx: Configuration errors
    E3001_INVALID_CONFIG = "E3001"
    E3002_MISSING_ENV_VAR = "E3002"


ERROR_METADATA = {
    ErrorCode.E1001_TRUNCATED_RECORD: {
        'severity': 'warning',
        'message': 'Record truncated, decode stopped early',
        'recoverable': True,
    },
    ErrorCode.E1002_UNKNOWN_SETUP_OPCODE: {
        'severity': 'info',
        'message': 'Unknown setup opcode skipped',
        'recoverable': True,
    },
    ErrorCode.E1003_UNKNOWN_EVENT_KIND: {
        'severity': 'info',
        'message': 'Unknown event kind skipped',
        'recoverable': True,
    },
    ErrorCode.E1004_INVALID_CLOCK_INFO: {
        'severity': 'warning',
        'message': 'Could not parse clock frequency',
        'recoverable': True,
    },
    ErrorCode.E2001_UNMATCHED_END: {
        'severity': 'warning',
        'message': 'End/exit event without matching start/enter',
        'recoverable': True,
    },
    ErrorCode.E2002_UNMATCHED_OPEN: {
        'severity': 'warning',
        'message': 'Start/enter event never closed',
        'recoverable': True,
    },
    ErrorCode.E2003_DEGENERATE_TIMELINE: {
        'severity': 'warning',
        'message': 'Timeline span is zero, statistics zeroed',
        'recoverable': True,
    },
    ErrorCode.E2004_SYMBOL_TABLE_FULL: {
        'severity': 'warning',
        'message': 'Symbol table full, event dropped',
        'recoverable': True,
    },
    ErrorCode.E3001_INVALID_CONFIG: {
        'severity': 'error',
        'message': 'Invalid configuration',
        'recoverable': False,
    },
    ErrorCode.E3002_MISSING_ENV_VAR: {
        'severity': 'warning',
        'message': 'Environment variable not set',
        'recoverable': True,
    },
}


@dataclass(frozen=True)
class Diagnostic:
    """
    Structured diagnostic with context.

    Example:
        diag = Diagnostic(
            code=ErrorCode.E2001_UNMATCHED_END,
            context={'task_id': 3, 'timestamp': 1200},
        )
    """
    code: ErrorCode
    context: Optional[dict] = None

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.code, {}).get('severity', 'error')

    @property
    def message(self) -> str:
        base_msg = ERROR_METADATA.get(self.code, {}).get('message', 'Unknown error')
        if self.context:
            return f"{base_msg}: {self.context}"
        return base_msg

    @property
    def recoverable(self) -> bool:
        return ERROR_METADATA.get(self.code, {}).get('recoverable', False)

    def to_dict(self) -> dict:
        return {
            'code': self.code.value,
            'severity': self.severity,
            'message': self.message,
            'recoverable': self.recoverable,
            'context': self.context,
        }


class DiagnosticLog:
    """
    Per-decode collector of diagnostics.

    Every diagnostic is logged at DEBUG through the supplied logger. When
    collection is disabled, or `limit` entries are already held, they are
    only counted.
    """

    def __init__(self, logger, enabled: bool = True, limit: Optional[int] = None):
        self._logger = logger
        self.enabled = enabled
        self.limit = limit
        self.items = []
        self.counts = {}

    def add(self, code: ErrorCode, **context) -> None:
        diag = Diagnostic(code=code, context=context or None)
        self._logger.debug(f"{code.value}: {diag.message}")
        self.counts[code] = self.counts.get(code, 0) + 1
        if not self.enabled:
            return
        if self.limit is not None and len(self.items) >= self.limit:
            return
        self.items.append(diag)

    def count(self, code: ErrorCode) -> int:
        return self.counts.get(code, 0)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
