"""
Per-name utilization statistics.

CRITICAL: Cycle counters are u64 and sums of durations exceed 2^53, so
every quantity stays an exact int. cpu_load is computed as
(actual * 10_000 // span) and only then divided by 100 into a float.

    >>> float(2**64 - 1) == 2**64 - 1
    False  # floats lose precision long before u64 max
"""

import logging
from typing import Dict, List, Optional, Sequence

from .model import TaskInstance, TaskStats, TimelineSpan
from ..core.errors import DiagnosticLog, ErrorCode


logger = logging.getLogger(__name__)

# cpu_load keeps two decimal places of exact precision
LOAD_SCALE = 10_000


def compute_span(instances: Sequence[TaskInstance]) -> TimelineSpan:
    """Return [min(start_time), max(end_time)] over all instances."""
    if not instances:
        return TimelineSpan()
    return TimelineSpan(
        start=min(i.start_time for i in instances),
        end=max(i.end_time for i in instances),
    )


def cpu_load(actual_run_time: int, span_width: int) -> float:
    """Percentage of span_width, clamped to [0, 100]."""
    if span_width <= 0:
        return 0.0
    scaled = actual_run_time * LOAD_SCALE // span_width
    return max(0.0, min(100.0, scaled / 100))


def group_by_name(instances: Sequence[TaskInstance]) -> Dict[str, List[TaskInstance]]:
    """Group instances by exact name, in first-seen order."""
    groups: Dict[str, List[TaskInstance]] = {}
    for instance in instances:
        groups.setdefault(instance.name, []).append(instance)
    return groups


def aggregate_group(group: Sequence[TaskInstance], span_width: int) -> TaskStats:
    """Compute stats for all instances sharing one name."""
    total_run_time = 0
    actual_run_time = 0
    total_preemption_time = 0
    preemption_count = 0

    for instance in group:
        duration = instance.duration
        total_run_time += duration

        preempted = 0
        if instance.preemptions:
            preemption_count += len(instance.preemptions)
            preempted = sum(p.duration for p in instance.preemptions)
            # An instance can never be preempted for longer than it ran
            preempted = min(preempted, duration)
            total_preemption_time += preempted

        actual_run_time += duration - preempted

    run_count = len(group)

    return TaskStats(
        total_run_time=total_run_time,
        actual_run_time=actual_run_time,
        run_count=run_count,
        cpu_load=cpu_load(actual_run_time, span_width),
        average_run_time=actual_run_time // run_count if run_count else 0,
        preemption_count=preemption_count,
        total_preemption_time=total_preemption_time,
    )


class StatisticsAggregator:
    """
    Terminal aggregation pass over a sorted, finalized instance list.

    Usage:
        aggregator = StatisticsAggregator()
        stats = aggregator.aggregate(instances)
        stats['Work'].cpu_load

    The returned table maps each distinct name to one TaskStats object.
    """

    def __init__(self, diagnostics: Optional[DiagnosticLog] = None):
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog(logger)
        self.span = TimelineSpan()

    def aggregate(self, instances: Sequence[TaskInstance]) -> Dict[str, TaskStats]:
        groups = group_by_name(instances)
        self.span = compute_span(instances)

        if not instances:
            return {}

        if self.span.degenerate:
            self.diagnostics.add(
                ErrorCode.E2003_DEGENERATE_TIMELINE,
                start=self.span.start,
                end=self.span.end,
            )
            return {name: TaskStats() for name in groups}

        table = {
            name: aggregate_group(group, self.span.width)
            for name, group in groups.items()
        }

        total_load = sum(s.cpu_load for s in table.values())
        logger.debug(f"Sum of all calculated CPU loads: {total_load:.2f}%")

        return table
