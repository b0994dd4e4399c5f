"""Configuration management for RTOS-Trace."""

from .schema import (
    TraceConfig,
    ClockConfig,
    DecodeConfig,
    DisplayConfig,
    load_config,
    generate_default_config,
)

__all__ = [
    'TraceConfig',
    'ClockConfig',
    'DecodeConfig',
    'DisplayConfig',
    'load_config',
    'generate_default_config',
]
