"""
Configuration schema for RTOS-Trace.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- Validation with error messages

Example config (rtos-trace.yml):
    version: 1

    clock:
      frequency_hz: 168000000

    decode:
      collect_diagnostics: true
      max_diagnostics: 1000

    display:
      time_unit: ms
      precision: 3
"""

import logging
import os
import re
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any

import yaml

from ..adapters.base import DecodeOptions
from ..core.errors import ErrorCode
from ..core.report import TIME_UNITS


logger = logging.getLogger(__name__)


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${RTOS_TRACE_CLOCK_HZ} → os.environ.get('RTOS_TRACE_CLOCK_HZ')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                logger.warning(f"{ErrorCode.E3002_MISSING_ENV_VAR.value}: ${{{var_name}}} is not set")
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


@dataclass
class ClockConfig:
    """
    Clock configuration.

    Used only when the trace carries no CLK: info record.
    """
    frequency_hz: int = 168_000_000

    def __post_init__(self):
        if isinstance(self.frequency_hz, str):
            self.frequency_hz = int(self.frequency_hz)

    @property
    def frequency_mhz(self) -> float:
        return self.frequency_hz / 1_000_000

    @property
    def period_ns(self) -> float:
        return 1_000_000_000 / self.frequency_hz


@dataclass
class DecodeConfig:
    """Decoder settings."""
    collect_diagnostics: bool = True
    max_diagnostics: Optional[int] = 1000

    def __post_init__(self):
        if isinstance(self.max_diagnostics, str):
            self.max_diagnostics = int(self.max_diagnostics)

    def to_options(self) -> DecodeOptions:
        return DecodeOptions(
            collect_diagnostics=self.collect_diagnostics,
            max_diagnostics=self.max_diagnostics,
        )


@dataclass
class DisplayConfig:
    """Output formatting settings."""
    time_unit: str = 's'
    precision: int = 6
    event_filter: str = ''
    hidden_tasks: List[str] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.precision, str):
            self.precision = int(self.precision)


@dataclass
class TraceConfig:
    """Root configuration."""

    version: int = 1
    clock: ClockConfig = field(default_factory=ClockConfig)
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def load(cls, path: Path) -> 'TraceConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping: {path}")

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'TraceConfig':
        """Create from dictionary."""
        return cls(
            version=data.get('version', 1),
            clock=ClockConfig(**(data.get('clock') or {})),
            decode=DecodeConfig(**(data.get('decode') or {})),
            display=DisplayConfig(**(data.get('display') or {})),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []

        if self.version != 1:
            errors.append(f"Unsupported config version: {self.version}")

        if self.clock.frequency_hz <= 0:
            errors.append(f"Invalid clock frequency: {self.clock.frequency_hz}")

        if self.decode.max_diagnostics is not None and self.decode.max_diagnostics < 0:
            errors.append(f"Invalid max_diagnostics: {self.decode.max_diagnostics}")

        if self.display.time_unit not in TIME_UNITS and self.display.time_unit != 'cycles':
            errors.append(
                f"Invalid time_unit: {self.display.time_unit} "
                f"(expected one of: cycles, {', '.join(TIME_UNITS)})"
            )

        if not 0 <= self.display.precision <= 12:
            errors.append(f"Invalid precision: {self.display.precision}")

        return errors


def load_config(path: Optional[Path] = None) -> TraceConfig:
    """Load config from file or return defaults."""
    if path and Path(path).exists():
        return TraceConfig.load(path)

    search_paths = [
        Path('./rtos-trace.yml'),
        Path('./rtos-trace.yaml'),
        Path.home() / '.rtos-trace' / 'config.yml',
    ]

    for p in search_paths:
        if p.exists():
            return TraceConfig.load(p)

    return TraceConfig()


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# RTOS-Trace Configuration
version: 1

clock:
  # Used when the trace has no CLK: info record
  frequency_hz: 168000000

decode:
  collect_diagnostics: true
  max_diagnostics: 1000

display:
  time_unit: s
  precision: 6
  event_filter: ""
  hidden_tasks: []
"""
