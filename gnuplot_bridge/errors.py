"""
Exception types raised by the gnuplot bridge.

Every error derives from GnuplotError so callers can catch the whole family
with one clause. Messages are user-facing.
"""


class GnuplotError(Exception):
    """Base class for all gnuplot bridge errors."""


class InvalidDimensionError(GnuplotError, ValueError):
    """Raised when a session is constructed with dimensions outside 1-3."""


class ProcessStartError(GnuplotError):
    """Raised when the gnuplot process cannot be launched."""


class DimensionMismatchError(GnuplotError, ValueError):
    """Raised when a point group does not match the session's dimensions."""


class NotFoundError(GnuplotError, KeyError):
    """Raised when a point group name is not present in the session."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class DataStagingError(GnuplotError):
    """Raised when a temp data file cannot be created, written, or closed."""


class CommandWriteError(GnuplotError):
    """Raised when a command line cannot be written to gnuplot's stdin."""


class SessionClosedError(CommandWriteError):
    """Raised when a command is issued after the session was closed."""


class CleanupError(GnuplotError):
    """Raised by close() when one or more temp files could not be removed.

    Attributes:
        failures: List of (path, exception) pairs, one per failed removal.
    """

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = failures
        paths = ", ".join(path for path, _ in failures)
        super().__init__(f"Failed to remove {len(failures)} temp file(s): {paths}")
