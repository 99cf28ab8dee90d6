"""
Registry of temp data files staged for gnuplot.

Each data file is created with tempfile.mkstemp, written once, closed, and
kept on disk until the owning session removes it; gnuplot re-reads the files
on every ``replot``.
"""

import os
import tempfile
from typing import IO, Optional

from config import TEMP_PREFIX, get_temp_dir
from gnuplot_bridge.errors import DataStagingError


class TempFileRegistry:
    """Tracks staged data files by path so they can be flushed and deleted.

    A path maps to its open handle, or to None once the handle is closed.
    """

    def __init__(self, directory: Optional[str] = None, prefix: str = TEMP_PREFIX):
        self.directory = directory
        self.prefix = prefix
        self._files: dict[str, Optional[IO[str]]] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    @property
    def paths(self) -> list[str]:
        return list(self._files)

    def create(self, prefix: Optional[str] = None) -> tuple[IO[str], str]:
        """Create a unique file and register it.

        Returns:
            (handle, path) with the handle open for text writing.
        """
        try:
            fd, path = tempfile.mkstemp(
                prefix=prefix or self.prefix,
                suffix=".dat",
                dir=self.directory or get_temp_dir(),
                text=True,
            )
            handle = os.fdopen(fd, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise DataStagingError(f"Could not create temp data file: {e}") from e
        self._files[path] = handle
        return handle, path

    def write(self, path: str, text: str) -> None:
        handle = self._files.get(path)
        if handle is None:
            raise DataStagingError(f"Temp file is not open for writing: {path}")
        try:
            handle.write(text)
        except (OSError, ValueError) as e:
            raise DataStagingError(f"Could not write temp data file {path}: {e}") from e

    def close(self, path: str) -> None:
        handle = self._files.get(path)
        if handle is None:
            return
        try:
            handle.close()
        except OSError as e:
            raise DataStagingError(f"Could not close temp data file {path}: {e}") from e
        finally:
            self._files[path] = None

    def remove(self, path: str) -> None:
        """Close (if open) and delete a registered file, then forget it.

        The entry is dropped from the registry even when deletion fails.
        """
        handle = self._files.pop(path, None)
        try:
            if handle is not None and not handle.closed:
                handle.close()
        finally:
            if os.path.exists(path):
                os.remove(path)

    def remove_all(self) -> list[tuple[str, Exception]]:
        """Remove every registered file, best-effort.

        Returns:
            (path, exception) pairs for removals that failed. The registry is
            empty afterwards either way.
        """
        failures = []
        for path in list(self._files):
            try:
                self.remove(path)
            except OSError as e:
                failures.append((path, e))
        self._files.clear()
        return failures
