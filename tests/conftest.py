"""Pytest fixtures and trace builders shared by the test suite."""

import sys
from pathlib import Path

import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from rtos_trace.adapters import decode
from rtos_trace.formats.writer import TraceBuilder


PROJECT_ROOT = Path(__file__).parent.parent

U64_MAX = 0xFFFFFFFFFFFFFFFF


def work_trace() -> TraceBuilder:
    """Task 1 'Work' runs [100, 200)."""
    return (
        TraceBuilder()
        .task_name(1, "Work")
        .task_start(1, 100)
        .task_end(1, 200)
    )


def preempted_trace() -> TraceBuilder:
    """Task 'Work' runs [100, 300), preempted by 'UART' over [120, 150)."""
    return (
        TraceBuilder()
        .task_name(1, "Work")
        .isr_name(5, "UART")
        .task_start(1, 100)
        .isr_enter(5, 120)
        .isr_exit(5, 150)
        .task_end(1, 300)
    )


def mixed_trace() -> TraceBuilder:
    """A few tasks, ISRs, gaps and a creation marker."""
    return (
        TraceBuilder()
        .clock(168_000_000)
        .task_name(0, "IDLE")
        .task_name(1, "Sensor")
        .task_name(2, "Control")
        .isr_name(5, "SysTick")
        .task_create(2, 50)
        .task_start(1, 100)
        .isr_enter(5, 150)
        .isr_exit(5, 170)
        .task_end(1, 400)
        .task_start(2, 450)
        .task_end(2, 900)
        .task_start(0, 900)
        .isr_enter(5, 1_000)
        .isr_exit(5, 1_030)
        .task_end(0, 2_000)
        .task_start(1, 2_100)
        .task_end(1, 2_300)
    )


@pytest.fixture
def builder() -> TraceBuilder:
    return TraceBuilder()


@pytest.fixture
def mixed_bytes() -> bytes:
    return mixed_trace().build()


@pytest.fixture
def mixed_result(mixed_bytes):
    return decode(mixed_bytes)


@pytest.fixture
def trace_file(tmp_path: Path, mixed_bytes: bytes) -> Path:
    """Binary trace written to a temporary file."""
    path = tmp_path / "trace.bin"
    path.write_bytes(mixed_bytes)
    return path


@pytest.fixture
def itm_log_file(tmp_path: Path) -> Path:
    """ITM text log written to a temporary file."""
    path = tmp_path / "trace.log"
    path.write_text(
        "boot banner\n"
        "<ITM>S|64|Work<END>\n"
        "<ITM>ISR|78|UART|START<END>\n"
        "<ITM>ISR|96|UART|END<END>\n"
        "<ITM>E|12C|Work<END>\n"
    )
    return path
