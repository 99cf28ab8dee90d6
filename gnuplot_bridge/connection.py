"""
gnuplot process connection over a stdin pipe.
Run this file directly to test: python -m gnuplot_bridge.connection
"""
import subprocess
import sys

from config import CLOSE_TIMEOUT, get_gnuplot_path
from gnuplot_bridge.errors import CommandWriteError, ProcessStartError, SessionClosedError
from gnuplot_bridge.logging import get_logger

logger = get_logger()


class GnuplotProcess:
    """A running gnuplot child process that accepts newline-terminated commands.

    Nothing is ever read back from gnuplot; stdout is discarded and stderr is
    inherited so gnuplot's own error messages still reach the terminal.
    """

    def __init__(self, persist: bool = False, executable: str | None = None,
                 close_timeout: float = CLOSE_TIMEOUT):
        self.persist = persist
        self.executable = executable or get_gnuplot_path()
        self.close_timeout = close_timeout
        self._proc: subprocess.Popen | None = None
        self._closed = False

    @property
    def args(self) -> list[str]:
        args = [self.executable]
        if self.persist:
            # Keep the plot window open after gnuplot's stdin closes
            args.append("-persist")
        return args

    @property
    def is_running(self) -> bool:
        return self._proc is not None and not self._closed and self._proc.poll() is None

    def start(self) -> "GnuplotProcess":
        """Launch gnuplot.

        Raises:
            ProcessStartError: If the executable cannot be spawned.
        """
        logger.debug(f"Starting gnuplot: {' '.join(self.args)}")
        try:
            self._proc = subprocess.Popen(
                self.args,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
            )
        except (OSError, ValueError) as e:
            raise ProcessStartError(
                f"Could not start gnuplot ({self.executable}): {e}. "
                f"Install gnuplot or set GNUPLOT_PATH."
            ) from e
        logger.debug(f"gnuplot started (pid {self._proc.pid})")
        return self

    def write_line(self, text: str) -> None:
        """Write one command line to gnuplot's stdin and flush it.

        Raises:
            SessionClosedError: If the process was already closed.
            CommandWriteError: If the pipe write fails.
        """
        if self._closed:
            raise SessionClosedError("gnuplot process is closed; no further commands accepted")
        if self._proc is None or self._proc.stdin is None:
            raise CommandWriteError("gnuplot process was never started")
        try:
            self._proc.stdin.write(text + "\n")
            self._proc.stdin.flush()
        except (OSError, ValueError) as e:
            raise CommandWriteError(f"Failed to write to gnuplot: {e}") from e

    def close(self) -> int | None:
        """Close stdin and wait for gnuplot to exit, killing it on timeout.

        Returns:
            The process exit code, or None if it was never started.
        """
        if self._closed:
            return self._proc.returncode if self._proc is not None else None
        self._closed = True
        if self._proc is None:
            return None

        if self._proc.stdin is not None:
            try:
                self._proc.stdin.close()
            except OSError as e:
                # Broken pipe: gnuplot already gone
                logger.debug(f"gnuplot stdin close failed: {e}")
        try:
            code = self._proc.wait(timeout=self.close_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"gnuplot did not exit within {self.close_timeout}s, killing it")
            self._proc.kill()
            code = self._proc.wait()
        logger.debug(f"gnuplot exited with code {code}")
        return code


def start_gnuplot(persist: bool = False) -> GnuplotProcess:
    """Launch a gnuplot process with the configured executable."""
    return GnuplotProcess(persist=persist).start()


if __name__ == "__main__":
    import argparse as _ap
    _parser = _ap.ArgumentParser(description="Test gnuplot connection")
    _parser.add_argument("--persist", action="store_true", help="Keep the plot window open")
    _cli_args = _parser.parse_args()

    print("Testing gnuplot connection...")
    print(f"gnuplot: {get_gnuplot_path()}")
    print(f"Persist: {_cli_args.persist}")
    print()

    try:
        proc = start_gnuplot(persist=_cli_args.persist)
        proc.write_line("plot sin(x)")
        code = proc.close()
        print(f"Exit code: {code}")
        print("SUCCESS")
        sys.exit(0)
    except Exception as e:
        print(f"FAILED: {e}")
        sys.exit(1)
