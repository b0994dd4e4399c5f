"""
Tests for Phase 10: CLI.

CRITICAL TESTS:
1. test_version - Version command works
2. test_analyze_json_output - Analyze writes a parseable report
3. test_demo_creates_trace - Demo writes a decodable trace
"""

import json

import pytest

from typer.testing import CliRunner

from rtos_trace import __version__
from rtos_trace.adapters import decode_file
from rtos_trace.cli.main import app


@pytest.fixture
def runner():
    return CliRunner()


class TestVersion:
    """Test version command."""

    def test_version(self, runner):
        """Version command shows version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestConfig:
    """Test config commands."""

    def test_config_init(self, runner):
        """Config init generates valid YAML."""
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert "clock:" in result.stdout
        assert "frequency_hz:" in result.stdout

    def test_config_validate_valid(self, runner, tmp_path):
        config = tmp_path / "valid.yml"
        config.write_text("version: 1\nclock:\n  frequency_hz: 72000000")

        result = runner.invoke(app, ["config", "validate", str(config)])
        assert result.exit_code == 0
        assert "Valid" in result.stdout

    def test_config_validate_invalid(self, runner, tmp_path):
        config = tmp_path / "invalid.yml"
        config.write_text("clock:\n  frequency_hz: -1")

        result = runner.invoke(app, ["config", "validate", str(config)])
        assert result.exit_code == 1
        assert "Invalid" in result.stdout

    def test_config_validate_missing_file(self, runner):
        result = runner.invoke(app, ["config", "validate", "/nonexistent/file.yml"])
        assert result.exit_code == 1

    def test_config_validate_malformed_yaml(self, runner, tmp_path):
        config = tmp_path / "broken.yml"
        config.write_text("clock: [unclosed\n")

        result = runner.invoke(app, ["config", "validate", str(config)])
        assert result.exit_code == 1
        assert "E3001" in result.stdout

    def test_config_dump(self, runner, tmp_path):
        config = tmp_path / "cfg.yml"
        config.write_text("clock:\n  frequency_hz: 72000000\n")

        result = runner.invoke(app, ["config", "dump", str(config)])
        assert result.exit_code == 0
        assert "72000000" in result.stdout

    def test_config_dump_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["config", "dump", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1
        assert "E3001" in result.stdout

    def test_config_unknown_action(self, runner):
        result = runner.invoke(app, ["config", "explode"])
        assert result.exit_code == 1


class TestAnalyze:
    """Test analyze command."""

    def test_analyze_json_output(self, runner, trace_file, tmp_path):
        """
        CRITICAL TEST: JSON report written to file.
        """
        output = tmp_path / "report.json"

        result = runner.invoke(app, [
            "analyze", str(trace_file),
            "-f", "json",
            "-o", str(output),
            "-q",
        ])

        assert result.exit_code == 0
        report = json.loads(output.read_text())
        assert report['source']['format'] == 'binary'
        assert report['clock']['frequency_hz'] == 168_000_000
        names = [t['name'] for t in report['tasks']]
        assert names[-1] == "_RTOS_"
        assert "Sensor" in names

    def test_analyze_json_stdout(self, runner, trace_file):
        result = runner.invoke(app, ["analyze", str(trace_file), "-f", "json", "-q"])
        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report['timeline']['instances'] > 0

    def test_analyze_table_output(self, runner, trace_file):
        result = runner.invoke(app, ["analyze", str(trace_file)])
        assert result.exit_code == 0
        assert "Sensor" in result.stdout
        assert "Summary" in result.stdout

    def test_analyze_itm_log(self, runner, itm_log_file):
        result = runner.invoke(app, ["analyze", str(itm_log_file), "-f", "json", "-q"])
        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report['source']['format'] == 'itm'
        assert report['clock']['from_trace'] is False

    def test_analyze_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.bin")])
        assert result.exit_code == 1

    def test_analyze_invalid_config(self, runner, trace_file, tmp_path):
        config = tmp_path / "bad.yml"
        config.write_text("display:\n  time_unit: parsecs\n")
        result = runner.invoke(app, ["analyze", str(trace_file), "-c", str(config)])
        assert result.exit_code == 1

    def test_analyze_malformed_config(self, runner, trace_file, tmp_path):
        """Unparseable YAML is reported, not raised."""
        config = tmp_path / "bad.yml"
        config.write_text("clock: [unclosed\n")

        result = runner.invoke(app, ["analyze", str(trace_file), "-c", str(config)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "E3001" in result.stdout

    def test_analyze_missing_config(self, runner, trace_file, tmp_path):
        result = runner.invoke(app, ["analyze", str(trace_file), "-c", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1


class TestEvents:
    """Test events command."""

    def test_events(self, runner, trace_file):
        result = runner.invoke(app, ["events", str(trace_file)])
        assert result.exit_code == 0
        assert "Events" in result.stdout
        assert "SysTick" in result.stdout

    def test_events_search(self, runner, trace_file):
        result = runner.invoke(app, ["events", str(trace_file), "-s", "Control"])
        assert result.exit_code == 0
        assert "Sensor" not in result.stdout
        assert "Control" in result.stdout


class TestDemo:
    """Test demo command."""

    def test_demo_creates_trace(self, runner, tmp_path):
        """
        CRITICAL TEST: Demo trace decodes with the expected tasks.
        """
        result = runner.invoke(app, ["demo", "-o", str(tmp_path)])
        assert result.exit_code == 0

        trace = tmp_path / "demo_trace.bin"
        assert trace.exists()

        decoded = decode_file(trace)
        assert {"Sensor", "Control", "IDLE", "ISR:SysTick", "ISR:UART"} <= set(decoded.stats)
        assert decoded.stats["Sensor"].run_count == 50
        assert decoded.clock.frequency_hz == 168_000_000
        assert not decoded.truncated
