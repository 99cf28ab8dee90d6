"""
Logging for gnuplot-bridge.

Each run writes a DEBUG log to <data_dir>/logs/gnuplot_<timestamp>.log. A
record is one header line

    timestamp | level | session_id | tag | message

followed, for failures, by indented ``key: value`` lines naming the gnuplot
command, staged file and point group involved, then the traceback.
get_recent_errors() reads those fields back, so a failed command can be
inspected (or re-typed at the gnuplot prompt) after the run.

Console output follows the ``console_format`` config key:
    simple  commands echoed as ``gnuplot> ...``, warnings as ``[LEVEL] ...``
    full    the file format
    clean   nothing
"""

import logging
import re
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import config


LOGGER_NAME = "gnuplot-bridge"
LOG_DIR = config.get_data_dir() / "logs"
LOG_PATTERN = "gnuplot_*.log"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(session_id)s | %(log_tag)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# log_error() context keys that get_recent_errors() returns as fields
CONTEXT_FIELDS = ("command", "path", "group")

_HEADER = re.compile(
    r"^(?P<timestamp>\d{4}-\d\d-\d\d \d\d:\d\d:\d\d) \| (?P<level>\w+)\s+\| "
    r"(?P<session_id>\S+) \| (?P<tag>\S+) \| (?P<message>.*)$"
)
_DETAIL = re.compile(r"^  (?P<key>\w+): (?P<value>.*)$")
_REPORTED_LEVELS = ("WARNING", "ERROR", "CRITICAL")


def tagged(tag: str) -> dict:
    """``extra`` for a logger call: ``logger.info(line, extra=tagged("command"))``."""
    return {"log_tag": tag}


class _RecordDefaults(logging.Filter):
    """Stamps the run's session id, and "-" for a missing tag, on every record."""

    session_id = "-"

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = self.session_id
        record.log_tag = getattr(record, "log_tag", "") or "-"
        return True


class _PromptFormatter(logging.Formatter):
    """Console format for "simple": commands as a gnuplot prompt, warnings by headline."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if getattr(record, "log_tag", "") == "command":
            return f"gnuplot> {message}"
        if record.levelno >= logging.WARNING:
            # context and traceback stay in the file
            return f"[{record.levelname}] {message.splitlines()[0]}"
        return message


_record_defaults = _RecordDefaults()
_log_path: Optional[Path] = None


def _console_handler(verbose: bool) -> Optional[logging.Handler]:
    style = config.get("console_format", "simple")
    if style == "clean":
        return None
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if style == "full":
        handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(_PromptFormatter())
    return handler


def setup_logging(verbose: bool = False) -> logging.Logger:
    """(Re)configure the bridge logger with a fresh log file and a console handler.

    Args:
        verbose: Show DEBUG and INFO (including echoed commands) on the
            console; otherwise only warnings and errors.
    """
    global _log_path
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    _log_path = LOG_DIR / f"gnuplot_{datetime.now():%Y%m%d_%H%M%S}.log"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if _record_defaults not in logger.filters:
        logger.addFilter(_record_defaults)

    file_handler = logging.FileHandler(_log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)
    console = _console_handler(verbose)
    if console is not None:
        logger.addHandler(console)

    logger.debug(f"Logging to {_log_path}")
    return logger


def get_logger() -> logging.Logger:
    """The bridge logger, configured with defaults on first use."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        return setup_logging()
    return logger


def set_session_id(session_id: str) -> None:
    """Stamp ``session_id`` on every record logged from now on."""
    _record_defaults.session_id = session_id or "-"


def log_error(
    message: str,
    exc: Optional[BaseException] = None,
    context: Optional[dict] = None,
) -> None:
    """Log a failure as a headline, its context and the traceback.

    The headline is ``message`` plus the exception text. Each context item
    becomes an indented ``key: value`` line; ``command``, ``path`` and
    ``group`` are returned as fields by get_recent_errors().
    """
    headline = message
    if exc is not None:
        headline = f"{message}: {str(exc) or type(exc).__name__}"
    lines = [headline]
    for key, value in (context or {}).items():
        lines.append(f"  {key}: {value}")
    if exc is not None:
        lines.append(f"  exception: {type(exc).__name__}")
        if exc.__traceback__ is not None:
            trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip()
            lines.extend(f"  {line}" for line in trace.splitlines())
    get_logger().error("\n".join(lines), extra=tagged("error"))


def log_command(line: str) -> None:
    """Record a command line sent to gnuplot (debug-mode sessions)."""
    get_logger().info(line, extra=tagged("command"))


def log_cleanup_failure(path: str, exc: BaseException) -> None:
    """Warn that a staged data file could not be deleted."""
    get_logger().warning(
        f"Could not remove staged data file: {exc}\n  path: {path}",
        extra=tagged("cleanup"),
    )


def get_current_log_path() -> Optional[Path]:
    """This run's log file, else the newest one on disk, else None."""
    if _log_path is not None:
        return _log_path
    logs = sorted(LOG_DIR.glob(LOG_PATTERN))
    return logs[-1] if logs else None


def _read_entries(log_file: Path) -> Iterator[dict]:
    """Yield the warning and error records of one log file, oldest first."""
    entry = None
    with open(log_file, encoding="utf-8") as f:
        for raw in f:
            line = raw.rstrip("\n")
            header = _HEADER.match(line)
            if header:
                if entry is not None:
                    yield entry
                entry = None
                if header["level"] in _REPORTED_LEVELS:
                    entry = {
                        **header.groupdict(),
                        **dict.fromkeys(CONTEXT_FIELDS),
                        "exception": None,
                        "details": [],
                    }
                continue
            if entry is None or not line.startswith("  "):
                continue
            detail = _DETAIL.match(line)
            if detail and detail["key"] in entry and entry[detail["key"]] is None:
                entry[detail["key"]] = detail["value"]
            else:
                entry["details"].append(line)
    if entry is not None:
        yield entry


def get_recent_errors(days: int = 7, limit: int = 50) -> list[dict]:
    """Warnings and errors from recent runs, newest log file first.

    Returns:
        Dicts with timestamp, level, session_id, tag and message; the
        command, path and group logged as context (None when absent); the
        exception type; and any other detail lines (traceback).
    """
    cutoff = time.time() - days * 86400
    entries: list[dict] = []
    for log_file in sorted(LOG_DIR.glob(LOG_PATTERN), reverse=True):
        if log_file.stat().st_mtime < cutoff:
            break
        try:
            entries.extend(_read_entries(log_file))
        except OSError as e:
            get_logger().debug(f"Skipping unreadable log {log_file}: {e}")
            continue
        if len(entries) >= limit:
            break
    return entries[:limit]


def print_recent_errors(days: int = 7, limit: int = 10) -> None:
    """Print recent failures with the command, file and point group involved."""
    entries = get_recent_errors(days=days, limit=limit)
    if not entries:
        print(f"No warnings or errors logged in the last {days} days.")
        return

    for entry in entries:
        print(f"[{entry['timestamp']}] {entry['level']} ({entry['tag']}) {entry['message']}")
        if entry["group"]:
            print(f"    point group: {entry['group']}")
        if entry["path"]:
            print(f"    data file:   {entry['path']}")
        if entry["exception"]:
            print(f"    exception:   {entry['exception']}")
        if entry["command"]:
            print(f"    gnuplot> {entry['command']}")
    print(f"\nLogs: {LOG_DIR}")
