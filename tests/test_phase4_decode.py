"""
Tests for Phase 4: End-to-end binary decode.

Covers the documented scenarios plus stream-level properties:
sorted output, name resolution, gap placement, preemption bounds, load range,
determinism and truncation safety.
"""

import random

import pytest

from rtos_trace.adapters import BinaryTraceAdapter, DecodeOptions, decode
from rtos_trace.core.errors import ErrorCode
from rtos_trace.formats.writer import TraceBuilder
from rtos_trace.timeline.model import CREATE_NAME, GAP_NAME, InstanceKind

from conftest import U64_MAX, mixed_trace, preempted_trace, work_trace


def summary(result):
    return [(i.name, i.start_time, i.end_time) for i in result.instances]


class TestScenarios:
    """Documented decode scenarios."""

    def test_single_named_task(self):
        result = decode(work_trace().build())
        assert summary(result) == [("Work", 100, 200)]

    def test_restart_inserts_gap(self):
        data = work_trace().task_start(1, 250).task_end(1, 260).build()
        result = decode(data)
        assert summary(result) == [
            ("Work", 100, 200),
            (GAP_NAME, 200, 250),
            ("Work", 250, 260),
        ]

    def test_restart_without_end_keeps_gap(self):
        """The reopened interval is dropped at stream end; the gap stays."""
        result = decode(work_trace().task_start(1, 250).build())
        assert summary(result) == [("Work", 100, 200), (GAP_NAME, 200, 250)]

    def test_preempted_task(self):
        result = decode(preempted_trace().build())
        work = result.instances_named("Work")[0]
        isr = result.instances_named("ISR:UART")[0]

        assert (work.start_time, work.end_time) == (100, 300)
        assert [(p.isr_name, p.start_time, p.end_time) for p in work.preemptions] == [
            ("UART", 120, 150),
        ]
        assert (isr.start_time, isr.end_time) == (120, 150)

        stats = result.stats_for(work)
        assert stats.total_preemption_time == 30
        assert stats.actual_run_time == 170

    def test_empty_buffer(self):
        result = decode(b'')
        assert result.instances == []
        assert result.stats == {}
        assert not result.truncated


class TestSetupRecords:
    """Setup record handling."""

    def test_clock_info(self):
        result = decode(TraceBuilder().clock(168_000_000).build())
        assert result.clock.frequency_hz == 168_000_000

    def test_clock_missing(self):
        result = decode(work_trace().build())
        assert result.clock.frequency_hz is None

    def test_clock_invalid(self):
        result = decode(TraceBuilder().info("CLK:fast").build())
        assert result.clock.frequency_hz is None
        assert result.diagnostics[0].code == ErrorCode.E1004_INVALID_CLOCK_INFO

    def test_other_info_ignored(self):
        result = decode(TraceBuilder().info("FW:1.4.2").build())
        assert result.clock.frequency_hz is None
        assert result.diagnostics == []

    def test_unknown_setup_opcode_skipped(self):
        data = TraceBuilder().setup(0x72, 1, "Mutex").raw(work_trace().build()).build()
        result = decode(data)
        assert summary(result) == [("Work", 100, 200)]
        assert result.diagnostics[0].code == ErrorCode.E1002_UNKNOWN_SETUP_OPCODE

    def test_name_defined_after_events_applies_at_close(self):
        """Names are resolved when the instance is finalized."""
        data = (
            TraceBuilder()
            .task_start(3, 10)
            .task_name(3, "Late")
            .task_end(3, 20)
            .task_start(4, 30)
            .task_end(4, 40)
            .build()
        )
        result = decode(data)
        assert [i.name for i in result.instances] == ["Late", GAP_NAME, "TaskID_4"]

    def test_symbol_tables_exposed(self):
        result = decode(preempted_trace().build())
        assert result.task_names == {1: "Work"}
        assert result.isr_names == {5: "UART"}


class TestEventKinds:
    """Event classification."""

    def test_unknown_kind_skipped(self):
        data = (
            TraceBuilder()
            .event(0x05, True, 1, 50)
            .raw(work_trace().build())
            .build()
        )
        result = decode(data)
        assert summary(result) == [("Work", 100, 200)]
        assert result.diagnostics[0].code == ErrorCode.E1003_UNKNOWN_EVENT_KIND

    def test_task_create(self):
        data = TraceBuilder().task_create(1, 70).raw(work_trace().build()).build()
        result = decode(data)
        assert summary(result) == [
            (CREATE_NAME, 70, 70),
            (GAP_NAME, 70, 100),
            ("Work", 100, 200),
        ]


class TestProperties:
    """Stream-level invariants."""

    def test_sorted_start_times(self, mixed_result):
        starts = [i.start_time for i in mixed_result.instances]
        assert starts == sorted(starts)

    def test_name_resolution(self, mixed_result):
        names = set(mixed_result.stats)
        assert {"Sensor", "Control", "IDLE", "ISR:SysTick"} <= names
        assert not any(n.startswith("TaskID_") for n in names)

    def test_gaps_fill_between_tasks(self, mixed_result):
        tasks = [i for i in mixed_result.instances if i.kind is InstanceKind.TASK]
        gaps = {(g.start_time, g.end_time) for g in mixed_result.instances if g.is_gap}

        for a, b in zip(tasks, tasks[1:]):
            if b.start_time > a.end_time:
                assert (a.end_time, b.start_time) in gaps

    def test_preemption_within_duration(self, mixed_result):
        for instance in mixed_result.instances:
            assert instance.preemption_time <= instance.duration

    def test_loads_in_range(self, mixed_result):
        for stats in mixed_result.stats.values():
            assert 0.0 <= stats.cpu_load <= 100.0

    def test_loads_in_range_near_u64_max(self):
        base = U64_MAX - 10_000
        data = (
            TraceBuilder()
            .task_name(1, "Hi")
            .isr_name(2, "Tick")
            .task_start(1, base)
            .isr_enter(2, base + 100)
            .isr_exit(2, base + 200)
            .task_end(1, base + 5_000)
            .task_start(1, U64_MAX - 1)
            .task_end(1, U64_MAX)
            .build()
        )
        result = decode(data)

        assert result.span.end == U64_MAX
        for stats in result.stats.values():
            assert 0.0 <= stats.cpu_load <= 100.0
        assert result.stats["Hi"].actual_run_time == 4_901

    def test_stats_identity_per_name(self, mixed_result):
        sensors = mixed_result.instances_named("Sensor")
        assert len(sensors) == 2
        assert mixed_result.stats_for(sensors[0]) is mixed_result.stats_for(sensors[1])

    def test_deterministic(self, mixed_bytes):
        first = decode(mixed_bytes)
        second = decode(mixed_bytes)

        assert first.instances == second.instances
        assert first.stats == second.stats
        assert first.diagnostics == second.diagnostics

    def test_adapter_reusable(self, mixed_bytes):
        adapter = BinaryTraceAdapter()
        assert adapter.decode(mixed_bytes).instances == adapter.decode(mixed_bytes).instances

    def test_truncation_never_raises(self, mixed_bytes):
        """Every prefix decodes to the instances of that prefix."""
        for cut in range(len(mixed_bytes) + 1):
            result = decode(mixed_bytes[:cut])
            starts = [i.start_time for i in result.instances]
            assert starts == sorted(starts)

    def test_truncated_flag(self, mixed_bytes):
        result = decode(mixed_bytes[:-1])
        assert result.truncated
        assert any(d.code == ErrorCode.E1001_TRUNCATED_RECORD for d in result.diagnostics)

    def test_random_garbage_never_raises(self):
        rng = random.Random(0xC0FFEE)
        for _ in range(50):
            data = bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 300)))
            result = decode(data)
            for stats in result.stats.values():
                assert 0.0 <= stats.cpu_load <= 100.0


class TestDiagnosticOptions:
    """Diagnostic collection settings."""

    def test_unclosed_reported(self):
        result = decode(TraceBuilder().task_start(1, 5).isr_enter(2, 6).build())
        codes = [d.code for d in result.diagnostics]
        assert codes.count(ErrorCode.E2002_UNMATCHED_OPEN) == 2

    def test_collection_disabled(self):
        adapter = BinaryTraceAdapter(DecodeOptions(collect_diagnostics=False))
        result = adapter.decode(TraceBuilder().task_end(1, 5).build())
        assert result.diagnostics == []

    def test_collection_limit(self):
        builder = TraceBuilder()
        for t in range(20):
            builder.task_end(1, t)
        adapter = BinaryTraceAdapter(DecodeOptions(max_diagnostics=5))
        assert len(adapter.decode(builder.build()).diagnostics) == 5

    @pytest.mark.parametrize("cut", [1, 2, 9])
    def test_partial_first_event(self, cut):
        data = TraceBuilder().task_start(1, 100).build()[:cut]
        result = decode(data)
        assert result.instances == []
        assert result.truncated
