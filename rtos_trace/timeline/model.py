"""
Timeline data model.

Instances are immutable once finalized. Timestamps and durations are exact
Python integers (cycle counts, up to u64 and beyond when summed); floats only
appear in cpu_load.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


# Synthetic instance names
GAP_NAME = '_RTOS_'
CREATE_NAME = 'RTOS:Create'
ISR_PREFIX = 'ISR:'
IDLE_NAME = 'IDLE'


def _name_rank(name: str) -> int:
    if name == GAP_NAME:
        return 3
    if name == IDLE_NAME:
        return 2
    if name.startswith(ISR_PREFIX):
        return 1
    return 0


def sort_task_names(names: Iterable[str]) -> List[str]:
    """
    Order names for display.

    Regular tasks come first alphabetically, then ISR entries, then IDLE,
    and '_RTOS_' always last.
    """
    return sorted(names, key=lambda n: (_name_rank(n), n))


class InstanceKind(Enum):
    """What produced an instance."""
    TASK = 'task'
    ISR = 'isr'
    GAP = 'gap'
    CREATE = 'create'


@dataclass(frozen=True)
class Preemption:
    """
    ISR execution nested inside a task instance.

    end_time is 0 when the ISR never exited before the task closed; such a
    preemption contributes no time.
    """
    isr_name: str
    start_time: int
    end_time: int = 0

    @property
    def resolved(self) -> bool:
        return self.end_time != 0

    @property
    def duration(self) -> int:
        if self.end_time > self.start_time:
            return self.end_time - self.start_time
        return 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TaskInstance:
    """
    One finalized interval on the timeline.

    Stats are not stored on the instance. Look them up by name through
    TimelineResult.stats_for(), which returns the same object for every
    instance sharing a name.
    """
    name: str
    start_time: int
    end_time: int
    preemptions: Tuple[Preemption, ...] = ()
    kind: InstanceKind = InstanceKind.TASK

    @property
    def duration(self) -> int:
        """Interval length in cycles, clamped to zero."""
        if self.end_time >= self.start_time:
            return self.end_time - self.start_time
        return 0

    @property
    def preemption_time(self) -> int:
        """Total preempted cycles, never more than duration."""
        total = sum(p.duration for p in self.preemptions)
        return min(total, self.duration)

    @property
    def is_gap(self) -> bool:
        return self.kind is InstanceKind.GAP

    @property
    def is_isr(self) -> bool:
        return self.kind is InstanceKind.ISR

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'kind': self.kind.value,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'duration': self.duration,
            'preemptions': [p.to_dict() for p in self.preemptions],
        }

    def __repr__(self) -> str:
        return (
            f"TaskInstance({self.name!r}, {self.start_time}..{self.end_time}, "
            f"preemptions={len(self.preemptions)})"
        )


@dataclass(frozen=True)
class TaskStats:
    """Per-name utilization statistics."""
    total_run_time: int = 0
    actual_run_time: int = 0
    run_count: int = 0
    cpu_load: float = 0.0
    average_run_time: int = 0
    preemption_count: int = 0
    total_preemption_time: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


ZERO_STATS = TaskStats()


@dataclass
class TimelineSpan:
    """Observed timeline bounds."""
    start: int = 0
    end: int = 0

    @property
    def width(self) -> int:
        return self.end - self.start

    @property
    def degenerate(self) -> bool:
        return self.width <= 0


@dataclass
class TimelineResult:
    """
    Everything one decode produces.

    Attributes:
        instances: Finalized instances sorted by start_time
        stats: Name -> TaskStats table
        span: Observed timeline bounds
        clock: Clock metadata from the trace
        task_names / isr_names: Symbol table contents
        diagnostics: Skipped/dropped records (see core.errors)
    """
    instances: List[TaskInstance] = field(default_factory=list)
    stats: Dict[str, TaskStats] = field(default_factory=dict)
    span: TimelineSpan = field(default_factory=TimelineSpan)
    clock: Optional[object] = None
    task_names: Dict[int, str] = field(default_factory=dict)
    isr_names: Dict[int, str] = field(default_factory=dict)
    diagnostics: list = field(default_factory=list)
    truncated: bool = False

    def stats_for(self, instance: TaskInstance) -> TaskStats:
        """Stats shared by every instance with this instance's name."""
        return self.stats.get(instance.name, ZERO_STATS)

    def instances_named(self, name: str) -> List[TaskInstance]:
        return [i for i in self.instances if i.name == name]

    @property
    def total_cpu_load(self) -> float:
        return sum(s.cpu_load for s in self.stats.values())

    def __len__(self) -> int:
        return len(self.instances)
