"""
RTOS-Trace CLI.

Commands:
- analyze: Decode a trace and report per-task statistics
- events: Print the flattened event table
- config: Configuration management
- demo: Write a sample binary trace
- version: Show version information
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..adapters import auto_detect
from ..config import TraceConfig, load_config, generate_default_config
from ..core.errors import ErrorCode
from ..core.report import TimelineReport, format_cycles
from ..formats.writer import TraceBuilder
from ..timeline.events import build_event_table, filter_events


logger = logging.getLogger(__name__)

app = typer.Typer(
    name="rtos-trace",
    help="Decode RTOS profiler traces into task timelines and CPU load",
    add_completion=False,
)
console = Console()


# Everything TraceConfig.load can raise for a bad or missing file
CONFIG_LOAD_ERRORS = (OSError, ValueError, TypeError, yaml.YAMLError)


class OutputFormat(str, Enum):
    json = "json"
    table = "table"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
):
    """Decode RTOS profiler traces."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _decode(trace_file: Path, cfg: TraceConfig):
    """Detect format and decode. Exits with code 1 on I/O errors."""
    try:
        adapter = auto_detect(trace_file, cfg.decode.to_options())
        return adapter, adapter.decode_file(trace_file)
    except OSError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)


def _read_cfg(path: Optional[Path]) -> TraceConfig:
    """Load the given config file, or search the default locations. Exits with code 1 on load errors."""
    try:
        return TraceConfig.load(path) if path else load_config()
    except CONFIG_LOAD_ERRORS as e:
        console.print(
            f"[red]{ErrorCode.E3001_INVALID_CONFIG.value} Error loading config:[/] {escape(str(e))}"
        )
        raise typer.Exit(1)


def _load_cfg(config_path: Optional[Path]) -> TraceConfig:
    cfg = _read_cfg(config_path)

    errors = cfg.validate()
    if errors:
        _print_config_errors(errors)
        raise typer.Exit(1)
    return cfg


def _print_config_errors(errors):
    console.print(f"[red]{ErrorCode.E3001_INVALID_CONFIG.value} Invalid configuration:[/]")
    for e in errors:
        console.print(f"  - {e}")


def _format_table(report: TimelineReport, cfg: TraceConfig) -> Table:
    """Format per-task statistics as a rich table."""
    hz = report.clock_frequency_hz or cfg.clock.frequency_hz
    unit = cfg.display.time_unit
    precision = cfg.display.precision

    table = Table(title="Task Statistics")
    table.add_column("Task")
    table.add_column("Runs", justify="right")
    table.add_column("Run Time", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("CPU %", justify="right")
    table.add_column("Preempts", justify="right")
    table.add_column("Preempt Time", justify="right")

    for task in report.tasks:
        if task.name in cfg.display.hidden_tasks:
            continue
        table.add_row(
            task.name,
            f"{task.run_count:,}",
            format_cycles(task.actual_run_time, hz, unit, precision),
            format_cycles(task.average_run_time, hz, unit, precision),
            f"{task.cpu_load:.2f}",
            f"{task.preemption_count:,}",
            format_cycles(task.total_preemption_time, hz, unit, precision),
        )

    return table


def _print_summary(report: TimelineReport, cfg: TraceConfig):
    """Print summary table."""
    hz = report.clock_frequency_hz or cfg.clock.frequency_hz
    source = "trace" if report.clock_from_trace else "config"

    console.print()
    table = Table(title="Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Instances", f"{report.instance_count:,}")
    table.add_row("Tasks", f"{len(report.tasks):,}")
    table.add_row("Clock", f"{hz:,} Hz ({source})")
    table.add_row("Span", format_cycles(report.span_width, hz, cfg.display.time_unit, cfg.display.precision))
    table.add_row("Total CPU", f"{report.total_cpu_load:.2f}%")
    table.add_row("Truncated", "yes" if report.truncated else "no")
    table.add_row("Diagnostics", str(sum(report.diagnostic_counts.values())))

    console.print(table)


# === ANALYZE COMMAND ===

@app.command()
def analyze(
    trace_file: Path = typer.Argument(..., help="Trace file path"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Output file"),
    format: OutputFormat = typer.Option(OutputFormat.table, "-f", "--format"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
    include_diagnostics: bool = typer.Option(False, "--diagnostics", help="Include diagnostics list"),
    quiet: bool = typer.Option(False, "-q", "--quiet"),
):
    """Decode a trace file and report per-task statistics."""
    cfg = _load_cfg(config_path)

    if not quiet:
        console.print(f"[bold blue]RTOS-Trace v{__version__}[/]")
        console.print(f"Analyzing: {trace_file}")

    adapter, result = _decode(trace_file, cfg)

    report = TimelineReport.from_result(
        result,
        source_file=str(trace_file),
        source_format=adapter.format_name,
        frequency_hz=cfg.clock.frequency_hz,
        include_diagnostics=include_diagnostics,
    )

    if format == OutputFormat.json:
        output_text = report.to_json(indent=2)
        if output:
            output.write_text(output_text)
            if not quiet:
                console.print(f"[green]Written to:[/] {output}")
        else:
            print(output_text)
    else:
        console.print(_format_table(report, cfg))
        if output:
            output.write_text(report.to_json(indent=2))
            if not quiet:
                console.print(f"[green]Written to:[/] {output}")

    if not quiet:
        _print_summary(report, cfg)


# === EVENTS COMMAND ===

@app.command()
def events(
    trace_file: Path = typer.Argument(..., help="Trace file path"),
    search: Optional[str] = typer.Option(None, "-s", "--search", help="Filter rows"),
    limit: Optional[int] = typer.Option(None, "-n", "--limit", help="Max rows"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
):
    """Print the flattened event table."""
    cfg = _load_cfg(config_path)
    _, result = _decode(trace_file, cfg)

    hz = cfg.clock.frequency_hz
    if result.clock is not None and result.clock.known:
        hz = result.clock.frequency_hz

    rows = filter_events(
        build_event_table(result.instances),
        search if search is not None else cfg.display.event_filter,
    )
    if limit is not None:
        rows = rows[:limit]

    unit, precision = cfg.display.time_unit, cfg.display.precision

    table = Table(title=f"Events ({len(rows):,})")
    table.add_column("Time", justify="right")
    table.add_column("Type")
    table.add_column("Duration", justify="right")
    table.add_column("Info")

    for row in rows:
        table.add_row(
            format_cycles(row.timestamp, hz, unit, precision),
            row.type,
            format_cycles(row.duration, hz, unit, precision),
            row.info,
        )

    console.print(table)


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        console.print(generate_default_config(), markup=False)

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        cfg = _read_cfg(path)
        errors = cfg.validate()
        if errors:
            _print_config_errors(errors)
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        console.print(_read_cfg(path).to_yaml(), markup=False)

    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === DEMO COMMAND ===

@app.command()
def demo(
    output_dir: Path = typer.Option(Path("./demo_output"), "-o", "--output-dir"),
):
    """Write a sample binary trace."""
    output_dir.mkdir(parents=True, exist_ok=True)
    trace_path = output_dir / "demo_trace.bin"

    builder = (
        TraceBuilder()
        .clock(168_000_000)
        .task_name(0, "IDLE")
        .task_name(1, "Sensor")
        .task_name(2, "Control")
        .isr_name(5, "SysTick")
        .isr_name(6, "UART")
    )

    builder.task_create(1, 500)
    builder.task_create(2, 600)

    t = 1_000
    for tick in range(50):
        builder.task_start(1, t + 100)
        builder.isr_enter(5, t + 400)
        builder.isr_exit(5, t + 460)
        builder.task_end(1, t + 1_800)
        builder.task_start(2, t + 1_900)
        if tick % 5 == 0:
            builder.isr_enter(6, t + 2_500)
            builder.isr_exit(6, t + 2_900)
        builder.task_end(2, t + 4_000)
        builder.task_start(0, t + 4_050)
        builder.task_end(0, t + 9_900)
        t += 10_000

    builder.write(trace_path)
    logger.info(f"Wrote {len(builder)} bytes to {trace_path}")

    console.print(f"[green]Written:[/] {trace_path}")
    console.print(f"Run: rtos-trace analyze {trace_path}")


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]RTOS-Trace v{__version__}[/]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
