"""
Base classes for trace adapters.

TraceAdapter is the abstract base class that all format-specific adapters
inherit. Each adapter turns raw trace content into a TimelineResult by
driving a TimelineReconstructor and a StatisticsAggregator.

Adapters hold only configuration. All mutable decode state (symbol tables,
open intervals, cursor) is created inside each decode() call, so one adapter
can decode any number of traces and identical input always yields identical
output.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.errors import DiagnosticLog
from ..formats.symbols import ClockInfo, SymbolTable, isr_symbols, task_symbols
from ..timeline.aggregator import StatisticsAggregator
from ..timeline.model import TimelineResult
from ..timeline.reconstructor import TimelineReconstructor


logger = logging.getLogger(__name__)


@dataclass
class DecodeOptions:
    """
    Per-adapter decode options.

    Attributes:
        collect_diagnostics: Keep diagnostics on the result (always logged)
        max_diagnostics: Cap on kept diagnostics, None for unlimited
    """
    collect_diagnostics: bool = True
    max_diagnostics: Optional[int] = 1000


class DecodeSession:
    """Mutable state owned by a single decode call."""

    def __init__(self, options: DecodeOptions, log: logging.Logger):
        self.diagnostics = DiagnosticLog(
            log,
            enabled=options.collect_diagnostics,
            limit=options.max_diagnostics,
        )
        self.task_names: SymbolTable = task_symbols()
        self.isr_names: SymbolTable = isr_symbols()
        self.clock = ClockInfo()
        self.reconstructor = TimelineReconstructor(
            self.task_names,
            self.isr_names,
            self.diagnostics,
        )
        self.truncated = False

    def finish(self) -> TimelineResult:
        """Finalize instances, aggregate stats, and package the result."""
        instances = self.reconstructor.finish()

        aggregator = StatisticsAggregator(self.diagnostics)
        stats = aggregator.aggregate(instances)

        result = TimelineResult(
            instances=instances,
            stats=stats,
            span=aggregator.span,
            clock=self.clock,
            task_names=self.task_names.to_dict(),
            isr_names=self.isr_names.to_dict(),
            diagnostics=list(self.diagnostics),
            truncated=self.truncated,
        )

        logger.info(
            f"Decoded {len(instances)} instances, {len(stats)} names, "
            f"{sum(self.diagnostics.counts.values())} diagnostics"
        )
        return result


class TraceAdapter(ABC):
    """
    Abstract base class for trace format adapters.

    Subclasses implement decode(); decode_file() reads the whole file and
    delegates to it.
    """

    format_name = 'unknown'

    def __init__(self, options: Optional[DecodeOptions] = None):
        self.options = options or DecodeOptions()

    def new_session(self) -> DecodeSession:
        return DecodeSession(self.options, logger)

    @abstractmethod
    def decode(self, data: bytes) -> TimelineResult:
        """
        Decode a complete trace buffer.

        Never raises on malformed content: unknown, truncated or unmatched
        records are skipped and reported as diagnostics.
        """
        pass

    def decode_file(self, path: Path) -> TimelineResult:
        """
        Decode a trace file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Trace file not found: {path}")

        return self.decode(path.read_bytes())
