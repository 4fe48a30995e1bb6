"""
Tests for the command line entry point
"""

import sys

import pytest

import statebus.__main__ as cli


@pytest.fixture
def logging_calls(monkeypatch):
    """Record setup_logging() arguments instead of installing handlers."""
    calls = []
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: calls.append(kwargs))
    return calls


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "statebus.yaml"
    path.write_text(
        "general:\n"
        "  log_level: DEBUG\n"
        f"  log_file: {tmp_path / 'statebus.log'}\n"
    )
    return path


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["statebus", *argv])
    cli.cli_entry()


class TestLoggingOptions:
    """Test where the CLI takes its log settings from."""

    def test_config_used_without_flags(self, monkeypatch, config_file, logging_calls, capsys):
        run_cli(monkeypatch, "-c", str(config_file), "--list-services")

        assert logging_calls == [{
            "level": "DEBUG",
            "log_file": str(config_file.parent / "statebus.log"),
        }]
        assert "settings" in capsys.readouterr().out

    def test_flags_override_config(self, monkeypatch, config_file, logging_calls, tmp_path):
        other = tmp_path / "other.log"

        run_cli(
            monkeypatch, "-c", str(config_file), "--list-services",
            "--log-level", "ERROR", "--log-file", str(other)
        )

        assert logging_calls == [{"level": "ERROR", "log_file": other}]

    def test_invalid_config_exits_with_error(self, monkeypatch, tmp_path, logging_calls, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("services:\n  content:\n    latency_ms: fast\n")

        with pytest.raises(SystemExit) as excinfo:
            run_cli(monkeypatch, "-c", str(path), "--list-services")

        assert excinfo.value.code == 1
        assert "latency_ms" in capsys.readouterr().err
        assert logging_calls == []
