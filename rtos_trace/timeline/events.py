"""
Flattened event table built from a decoded timeline.

Each task instance contributes a start row ('S') and an end row ('E'); each
ISR instance contributes one 'ISR' row; each preemption nested inside a task
contributes an 'ISR' row naming the task it preempted.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .model import ISR_PREFIX, TaskInstance


@dataclass(frozen=True)
class EventRow:
    """
    One row of the event table.

    Attributes:
        timestamp: Cycle counter value
        type: 'S', 'E' or 'ISR'
        duration: Length in cycles (0 for end rows)
        info: Task name, ISR name, or '<isr> (preempted <task>)'
    """
    timestamp: int
    type: str
    duration: int
    info: str

    def matches(self, term: str) -> bool:
        term = term.lower()
        return (
            term in self.type.lower()
            or term in self.info.lower()
            or term in str(self.timestamp)
            or term in str(self.duration)
        )


def build_event_table(instances: Iterable[TaskInstance]) -> List[EventRow]:
    """Flatten instances into rows sorted by timestamp."""
    rows: List[EventRow] = []

    for instance in instances:
        is_isr = instance.is_isr

        rows.append(EventRow(
            timestamp=instance.start_time,
            type='ISR' if is_isr else 'S',
            duration=instance.duration,
            info=instance.name[len(ISR_PREFIX):] if is_isr else instance.name,
        ))

        if not is_isr:
            rows.append(EventRow(
                timestamp=instance.end_time,
                type='E',
                duration=0,
                info=instance.name,
            ))

        for preemption in instance.preemptions:
            rows.append(EventRow(
                timestamp=preemption.start_time,
                type='ISR',
                duration=preemption.duration,
                info=f"{preemption.isr_name} (preempted {instance.name})",
            ))

    rows.sort(key=lambda r: r.timestamp)
    return rows


def filter_events(rows: Iterable[EventRow], search: Optional[str] = None) -> List[EventRow]:
    """Case-insensitive search over type, info, timestamp and duration."""
    if not search:
        return list(rows)
    return [r for r in rows if r.matches(search)]
