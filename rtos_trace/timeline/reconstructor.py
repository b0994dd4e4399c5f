"""
Timeline reconstruction state machine.

Pairs asynchronous start/end and enter/exit events into finalized instances,
nests ISR preemptions inside the active task, and synthesizes '_RTOS_' gap
instances for unattributed time.

State per task id:  Closed | Open(start, preemptions)
State per ISR id:   Closed | Open(start)
Machine-wide:       last_closed (timestamp or None), active_task (id or None)

Gaps are synthesized on task start and task create only. An end at t followed
by a start at t produces no gap, and end/exit never produce one, so no time
is counted twice.

Example:
    rec = TimelineReconstructor(tasks, isrs)
    rec.task_start(1, 100)
    rec.isr_enter(5, 120)
    rec.isr_exit(5, 150)
    rec.task_end(1, 300)
    instances = rec.finish()
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .model import (
    CREATE_NAME,
    GAP_NAME,
    ISR_PREFIX,
    InstanceKind,
    Preemption,
    TaskInstance,
)
from ..core.errors import DiagnosticLog, ErrorCode
from ..formats.symbols import MAX_SYMBOLS, SymbolTable


logger = logging.getLogger(__name__)


@dataclass
class OpenPreemption:
    """Preemption still being recorded on an open task."""
    isr_name: str
    start_time: int
    end_time: Optional[int] = None

    def finalize(self) -> Preemption:
        end = self.end_time if self.end_time is not None else 0
        return Preemption(self.isr_name, self.start_time, end)


@dataclass
class OpenTaskInterval:
    start_time: int
    preemptions: List[OpenPreemption] = field(default_factory=list)


@dataclass
class OpenInterruptInterval:
    start_time: int


class TimelineReconstructor:
    """
    Single-use state machine for one decode.

    Open intervals live in fixed 256-slot arenas indexed by id. Event ids
    outside 0-255 are reduced modulo 256, matching the one-byte wire field.
    """

    def __init__(
        self,
        task_names: SymbolTable,
        isr_names: SymbolTable,
        diagnostics: Optional[DiagnosticLog] = None,
    ):
        self.task_names = task_names
        self.isr_names = isr_names
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog(logger)

        self._open_tasks: List[Optional[OpenTaskInterval]] = [None] * MAX_SYMBOLS
        self._open_isrs: List[Optional[OpenInterruptInterval]] = [None] * MAX_SYMBOLS

        self.last_closed: Optional[int] = None
        self.active_task: Optional[int] = None

        self._instances: List[TaskInstance] = []
        self._finished = False

    # === Task events ===

    def task_start(self, id: int, timestamp: int) -> None:
        id %= MAX_SYMBOLS
        self._emit_gap(timestamp)

        previous = self._open_tasks[id]
        if previous is not None:
            self.diagnostics.add(
                ErrorCode.E2002_UNMATCHED_OPEN,
                task=self.task_names.resolve(id),
                task_id=id,
                start_time=previous.start_time,
                reopened_at=timestamp,
            )

        self._open_tasks[id] = OpenTaskInterval(start_time=timestamp)
        self.active_task = id
        self.last_closed = None

    def task_end(self, id: int, timestamp: int) -> None:
        id %= MAX_SYMBOLS
        interval = self._open_tasks[id]

        if interval is None:
            self.diagnostics.add(
                ErrorCode.E2001_UNMATCHED_END,
                task=self.task_names.resolve(id),
                task_id=id,
                timestamp=timestamp,
            )
            return

        self._instances.append(TaskInstance(
            name=self.task_names.resolve(id),
            start_time=interval.start_time,
            end_time=timestamp,
            preemptions=tuple(p.finalize() for p in interval.preemptions),
            kind=InstanceKind.TASK,
        ))
        self._open_tasks[id] = None
        self.last_closed = timestamp

        if self.active_task == id:
            self.active_task = None

    def task_create(self, id: int, timestamp: int) -> None:
        """Zero-duration creation marker. Does not open the task."""
        self._emit_gap(timestamp)
        self._instances.append(TaskInstance(
            name=CREATE_NAME,
            start_time=timestamp,
            end_time=timestamp,
            kind=InstanceKind.CREATE,
        ))
        self.last_closed = timestamp

    # === Interrupt events ===

    def isr_enter(self, id: int, timestamp: int) -> None:
        id %= MAX_SYMBOLS

        previous = self._open_isrs[id]
        if previous is not None:
            self.diagnostics.add(
                ErrorCode.E2002_UNMATCHED_OPEN,
                isr=self.isr_names.resolve(id),
                isr_id=id,
                start_time=previous.start_time,
                reopened_at=timestamp,
            )

        self._open_isrs[id] = OpenInterruptInterval(start_time=timestamp)

        task = self._active_interval()
        if task is not None:
            task.preemptions.append(OpenPreemption(
                isr_name=self.isr_names.resolve(id),
                start_time=timestamp,
            ))

    def isr_exit(self, id: int, timestamp: int) -> None:
        id %= MAX_SYMBOLS
        interval = self._open_isrs[id]
        isr_name = self.isr_names.resolve(id)

        if interval is None:
            self.diagnostics.add(
                ErrorCode.E2001_UNMATCHED_END,
                isr=isr_name,
                isr_id=id,
                timestamp=timestamp,
            )
            return

        self._instances.append(TaskInstance(
            name=f"{ISR_PREFIX}{isr_name}",
            start_time=interval.start_time,
            end_time=timestamp,
            kind=InstanceKind.ISR,
        ))
        self._open_isrs[id] = None

        task = self._active_interval()
        if task is None:
            return

        for preemption in reversed(task.preemptions):
            if preemption.isr_name == isr_name and preemption.end_time is None:
                preemption.end_time = timestamp
                return

        logger.debug(
            f"ISR exit {isr_name} at {timestamp}: no open preemption "
            f"on task {self.task_names.resolve(self.active_task)}"
        )

    # === Completion ===

    def finish(self) -> List[TaskInstance]:
        """
        Drop unclosed intervals and return instances sorted by start_time.

        The sort is stable; instances sharing a start_time keep emission order.
        """
        if not self._finished:
            self._report_unclosed()
            self._instances.sort(key=lambda i: i.start_time)
            self._finished = True
        return list(self._instances)

    def _active_interval(self) -> Optional[OpenTaskInterval]:
        if self.active_task is None:
            return None
        return self._open_tasks[self.active_task]

    def _emit_gap(self, timestamp: int) -> None:
        if self.last_closed is not None and timestamp > self.last_closed:
            self._instances.append(TaskInstance(
                name=GAP_NAME,
                start_time=self.last_closed,
                end_time=timestamp,
                kind=InstanceKind.GAP,
            ))

    def _report_unclosed(self) -> None:
        for id, interval in enumerate(self._open_tasks):
            if interval is not None:
                self.diagnostics.add(
                    ErrorCode.E2002_UNMATCHED_OPEN,
                    task=self.task_names.resolve(id),
                    task_id=id,
                    start_time=interval.start_time,
                )
        for id, interval in enumerate(self._open_isrs):
            if interval is not None:
                self.diagnostics.add(
                    ErrorCode.E2002_UNMATCHED_OPEN,
                    isr=self.isr_names.resolve(id),
                    isr_id=id,
                    start_time=interval.start_time,
                )
