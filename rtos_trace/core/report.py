"""
Report schema for RTOS-Trace decode results.

Reports are structured JSON documents containing:
- Metadata (version, timestamp, source)
- Clock information
- Timeline span
- Per-task statistics, in display order
- Diagnostics raised during decode

Cycle counts stay integers in the report. Converted times are added next to
them using the effective clock frequency.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..timeline.model import sort_task_names


REPORT_VERSION = 1

TIME_UNITS = {
    's': 1,
    'ms': 1_000,
    'us': 1_000_000,
}


def cycles_to_seconds(cycles: int, frequency_hz: int) -> float:
    """Convert a cycle count to seconds. Only used at the output boundary."""
    if frequency_hz <= 0:
        raise ValueError(f"Invalid clock frequency: {frequency_hz}")
    whole, rem = divmod(cycles, frequency_hz)
    return whole + rem / frequency_hz


def format_cycles(cycles: int, frequency_hz: int, unit: str = 's', precision: int = 6) -> str:
    """Format a cycle count in the given unit ('cycles', 's', 'ms', 'us')."""
    if unit == 'cycles':
        return f"{cycles}"
    if unit not in TIME_UNITS:
        raise ValueError(f"Unknown time unit: {unit}")
    value = cycles_to_seconds(cycles, frequency_hz) * TIME_UNITS[unit]
    return f"{value:.{precision}f}{unit}"


@dataclass
class TaskSummary:
    """One row of the per-task statistics section."""
    name: str
    run_count: int
    total_run_time: int
    actual_run_time: int
    average_run_time: int
    cpu_load: float
    preemption_count: int
    total_preemption_time: int
    actual_run_seconds: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'run_count': self.run_count,
            'total_run_time': self.total_run_time,
            'actual_run_time': self.actual_run_time,
            'average_run_time': self.average_run_time,
            'cpu_load': self.cpu_load,
            'preemption_count': self.preemption_count,
            'total_preemption_time': self.total_preemption_time,
            'actual_run_seconds': self.actual_run_seconds,
        }


@dataclass
class TimelineReport:
    """
    Complete decode report.

    Example:
        result = decode_file(path)
        report = TimelineReport.from_result(result, source_file=str(path))
        print(report.to_json())
    """
    # Metadata
    version: int = REPORT_VERSION
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    # Source information
    source_file: Optional[str] = None
    source_format: Optional[str] = None

    # Clock
    clock_frequency_hz: Optional[int] = None
    clock_from_trace: bool = False

    # Timeline
    span_start: int = 0
    span_end: int = 0
    instance_count: int = 0
    truncated: bool = False

    tasks: List[TaskSummary] = field(default_factory=list)
    task_names: Dict[int, str] = field(default_factory=dict)
    isr_names: Dict[int, str] = field(default_factory=dict)

    # Diagnostics
    diagnostics: List[dict] = field(default_factory=list)
    diagnostic_counts: Dict[str, int] = field(default_factory=dict)
    include_diagnostics: bool = False

    @property
    def span_width(self) -> int:
        return self.span_end - self.span_start

    @property
    def total_cpu_load(self) -> float:
        return sum(t.cpu_load for t in self.tasks)

    @classmethod
    def from_result(
        cls,
        result,
        source_file: Optional[str] = None,
        source_format: Optional[str] = None,
        frequency_hz: Optional[int] = None,
        include_diagnostics: bool = False,
    ) -> 'TimelineReport':
        """
        Build a report from a TimelineResult.

        frequency_hz is the configured fallback. The trace's own CLK: info
        takes precedence when present.
        """
        clock = result.clock
        from_trace = bool(clock is not None and clock.known)
        effective_hz = clock.frequency_hz if from_trace else frequency_hz

        tasks = []
        for name in sort_task_names(result.stats.keys()):
            stats = result.stats[name]
            seconds = None
            if effective_hz:
                seconds = cycles_to_seconds(stats.actual_run_time, effective_hz)
            tasks.append(TaskSummary(
                name=name,
                run_count=stats.run_count,
                total_run_time=stats.total_run_time,
                actual_run_time=stats.actual_run_time,
                average_run_time=stats.average_run_time,
                cpu_load=stats.cpu_load,
                preemption_count=stats.preemption_count,
                total_preemption_time=stats.total_preemption_time,
                actual_run_seconds=seconds,
            ))

        counts: Dict[str, int] = {}
        for diag in result.diagnostics:
            counts[diag.code.value] = counts.get(diag.code.value, 0) + 1

        return cls(
            source_file=source_file,
            source_format=source_format,
            clock_frequency_hz=effective_hz,
            clock_from_trace=from_trace,
            span_start=result.span.start,
            span_end=result.span.end,
            instance_count=len(result.instances),
            truncated=result.truncated,
            tasks=tasks,
            task_names=dict(result.task_names),
            isr_names=dict(result.isr_names),
            diagnostics=[d.to_dict() for d in result.diagnostics],
            diagnostic_counts=counts,
            include_diagnostics=include_diagnostics,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = {
            'version': self.version,
            'created_at': self.created_at,
            'source': {
                'file': self.source_file,
                'format': self.source_format,
            },
            'clock': {
                'frequency_hz': self.clock_frequency_hz,
                'from_trace': self.clock_from_trace,
            },
            'timeline': {
                'start': self.span_start,
                'end': self.span_end,
                'width': self.span_width,
                'instances': self.instance_count,
                'truncated': self.truncated,
            },
            'tasks': [t.to_dict() for t in self.tasks],
            'total_cpu_load': round(self.total_cpu_load, 2),
            'symbols': {
                'tasks': {str(k): v for k, v in sorted(self.task_names.items())},
                'isrs': {str(k): v for k, v in sorted(self.isr_names.items())},
            },
            'diagnostic_counts': self.diagnostic_counts,
        }

        if self.include_diagnostics:
            result['diagnostics'] = self.diagnostics

        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def get_task(self, name: str) -> Optional[TaskSummary]:
        for task in self.tasks:
            if task.name == name:
                return task
        return None
