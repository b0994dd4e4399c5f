"""Command-line interface for RTOS-Trace."""
