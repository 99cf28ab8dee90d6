"""
Tests for gnuplot_bridge.logging — tags, command echo and failure retrieval.

Run with: python -m pytest tests/test_logging.py
"""

import logging
import os
import time
from unittest.mock import patch

import pytest

from gnuplot_bridge import logging as bridge_logging
from gnuplot_bridge.logging import (
    LOGGER_NAME,
    get_logger,
    get_recent_errors,
    log_cleanup_failure,
    log_command,
    log_error,
    print_recent_errors,
    setup_logging,
    tagged,
)


@pytest.fixture
def log_dir(tmp_path):
    """Point the logger at tmp_path for one test, then restore the real log dir."""
    with patch.object(bridge_logging, "LOG_DIR", tmp_path):
        yield tmp_path
    setup_logging()


class TestTagged:
    def test_tagged_extra(self):
        assert tagged("command") == {"log_tag": "command"}


class TestGetLogger:
    def test_logger_is_configured(self):
        logger = get_logger()
        assert logger.name == LOGGER_NAME
        assert logger.handlers

    def test_log_dir_follows_env(self):
        # conftest points GNUPLOT_BRIDGE_DIR at a throwaway directory
        assert str(bridge_logging.LOG_DIR).startswith(
            os.path.realpath(os.environ["GNUPLOT_BRIDGE_DIR"])
        )


class TestLogCommand:
    def test_command_logged_at_info_with_tag(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log_command("plot sin(x)")
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "plot sin(x)"
        assert record.log_tag == "command"


class TestPromptFormatter:
    def _record(self, level, message, tag=None):
        record = logging.LogRecord(LOGGER_NAME, level, __file__, 1, message, None, None)
        if tag:
            record.log_tag = tag
        return record

    def test_command_echoed_as_prompt(self):
        record = self._record(logging.INFO, 'plot "/tmp/a.dat" with lines', "command")
        assert bridge_logging._PromptFormatter().format(record) == 'gnuplot> plot "/tmp/a.dat" with lines'

    def test_warning_shows_headline_only(self):
        record = self._record(logging.WARNING, "Could not remove staged data file: locked\n  path: /tmp/a")
        assert bridge_logging._PromptFormatter().format(record) == \
            "[WARNING] Could not remove staged data file: locked"

    def test_info_is_bare(self):
        assert bridge_logging._PromptFormatter().format(self._record(logging.INFO, "hello")) == "hello"


class TestLogError:
    def test_headline_context_and_trace(self, caplog):
        try:
            raise OSError("disk full")
        except OSError as e:
            with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
                log_error("Failed to stage data", e, {"group": "a"})
        record = caplog.records[-1]
        lines = record.getMessage().splitlines()
        assert lines[0] == "Failed to stage data: disk full"
        assert "  group: a" in lines
        assert "  exception: OSError" in lines
        assert any("test_logging.py" in line for line in lines)
        assert record.log_tag == "error"

    def test_empty_exception_message_uses_type(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log_error("Failed to stop gnuplot", BrokenPipeError())
        assert caplog.records[-1].getMessage().splitlines()[0] == \
            "Failed to stop gnuplot: BrokenPipeError"


class TestGetRecentErrors:
    def test_parses_fields_and_context(self, tmp_path):
        log_file = tmp_path / "gnuplot_20261016_120000.log"
        log_file.write_text(
            "2026-10-16 12:00:00 | DEBUG    | - | - | started\n"
            "2026-10-16 12:00:01 | ERROR    | s1 | error | Failed to send command: Broken pipe\n"
            "  command: plot \"/tmp/a.dat\" with lines\n"
            "  exception: CommandWriteError\n"
            "    File \"session.py\", line 10, in send_command\n"
            "2026-10-16 12:00:02 | WARNING  | s1 | cleanup | Could not remove staged data file: locked\n"
            "  path: /tmp/b.dat\n",
            encoding="utf-8",
        )
        with patch.object(bridge_logging, "LOG_DIR", tmp_path):
            errors = get_recent_errors()
        assert [e["level"] for e in errors] == ["ERROR", "WARNING"]
        first, second = errors
        assert first["message"] == "Failed to send command: Broken pipe"
        assert first["session_id"] == "s1"
        assert first["tag"] == "error"
        assert first["command"] == 'plot "/tmp/a.dat" with lines'
        assert first["exception"] == "CommandWriteError"
        assert first["path"] is None
        assert first["details"] == ['    File "session.py", line 10, in send_command']
        assert second["tag"] == "cleanup"
        assert second["path"] == "/tmp/b.dat"

    def test_reads_back_what_log_error_wrote(self, log_dir):
        setup_logging()
        log_error("Failed to stage data for point group 'a'", OSError("disk full"),
                  {"group": "a", "path": "/tmp/a.dat"})
        log_cleanup_failure("/tmp/b.dat", PermissionError("locked"))
        errors = get_recent_errors()
        assert [e["tag"] for e in errors] == ["error", "cleanup"]
        assert errors[0]["group"] == "a"
        assert errors[0]["path"] == "/tmp/a.dat"
        assert errors[0]["exception"] == "OSError"
        assert errors[1]["path"] == "/tmp/b.dat"

    def test_skips_old_files(self, tmp_path):
        log_file = tmp_path / "gnuplot_20200101_000000.log"
        log_file.write_text("2020-01-01 00:00:00 | ERROR    | - | error | old\n", encoding="utf-8")
        old = time.time() - 30 * 86400
        os.utime(log_file, (old, old))
        with patch.object(bridge_logging, "LOG_DIR", tmp_path):
            assert get_recent_errors(days=7) == []

    def test_limit(self, tmp_path):
        lines = "".join(
            f"2026-10-16 12:00:{i:02d} | ERROR    | - | error | err {i}\n" for i in range(5)
        )
        (tmp_path / "gnuplot_20261016_120000.log").write_text(lines, encoding="utf-8")
        with patch.object(bridge_logging, "LOG_DIR", tmp_path):
            assert len(get_recent_errors(limit=3)) == 3


class TestPrintRecentErrors:
    def test_shows_command_and_file(self, tmp_path, capsys):
        (tmp_path / "gnuplot_20261016_120000.log").write_text(
            "2026-10-16 12:00:01 | ERROR    | s1 | error | Failed to send command: Broken pipe\n"
            "  command: replot \"/tmp/a.dat\"\n"
            "2026-10-16 12:00:02 | WARNING  | s1 | cleanup | Could not remove staged data file: locked\n"
            "  path: /tmp/b.dat\n",
            encoding="utf-8",
        )
        with patch.object(bridge_logging, "LOG_DIR", tmp_path):
            print_recent_errors()
        out = capsys.readouterr().out
        assert "ERROR (error) Failed to send command: Broken pipe" in out
        assert 'gnuplot> replot "/tmp/a.dat"' in out
        assert "data file:   /tmp/b.dat" in out

    def test_nothing_logged(self, tmp_path, capsys):
        with patch.object(bridge_logging, "LOG_DIR", tmp_path):
            print_recent_errors(days=3)
        assert "No warnings or errors logged in the last 3 days." in capsys.readouterr().out
