"""Timeline reconstruction and statistics."""

from .model import (
    GAP_NAME,
    CREATE_NAME,
    ISR_PREFIX,
    IDLE_NAME,
    InstanceKind,
    Preemption,
    TaskInstance,
    TaskStats,
    TimelineSpan,
    TimelineResult,
    sort_task_names,
)
from .reconstructor import TimelineReconstructor
from .aggregator import StatisticsAggregator, compute_span, cpu_load
from .events import EventRow, build_event_table, filter_events

__all__ = [
    'GAP_NAME',
    'CREATE_NAME',
    'ISR_PREFIX',
    'IDLE_NAME',
    'InstanceKind',
    'Preemption',
    'TaskInstance',
    'TaskStats',
    'TimelineSpan',
    'TimelineResult',
    'sort_task_names',
    'TimelineReconstructor',
    'StatisticsAggregator',
    'compute_span',
    'cpu_load',
    'EventRow',
    'build_event_table',
    'filter_events',
]
