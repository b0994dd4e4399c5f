"""Diagnostics and reporting for RTOS-Trace."""

from .errors import ErrorCode, Diagnostic, DiagnosticLog, ERROR_METADATA
from .report import (
    TaskSummary,
    TimelineReport,
    cycles_to_seconds,
    format_cycles,
    sort_task_names,
)

__all__ = [
    # Errors
    'ErrorCode',
    'Diagnostic',
    'DiagnosticLog',
    'ERROR_METADATA',
    # Report
    'TaskSummary',
    'TimelineReport',
    'cycles_to_seconds',
    'format_cycles',
    'sort_task_names',
]
