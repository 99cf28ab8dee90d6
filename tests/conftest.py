"""
Shared fixtures.

Log files go to a throwaway directory, and sessions get an in-memory command
sink so no gnuplot binary is needed.
"""

import os
import tempfile

# Must be set before config / gnuplot_bridge.logging are imported
os.environ.setdefault("GNUPLOT_BRIDGE_DIR", tempfile.mkdtemp(prefix="gnuplot-bridge-tests-"))

import pytest

from gnuplot_bridge.session import PlotSession
from gnuplot_bridge.tempfiles import TempFileRegistry


class FakeProcess:
    """Stand-in for GnuplotProcess that records every command line."""

    def __init__(self):
        self.lines: list[str] = []
        self.closed = False

    def write_line(self, text: str) -> None:
        self.lines.append(text)

    def close(self) -> int:
        self.closed = True
        return 0


@pytest.fixture
def fake_process():
    return FakeProcess()


@pytest.fixture
def make_session(fake_process, tmp_path_factory):
    """Factory for sessions wired to the fake sink and staging into a fresh temp dir."""

    # Not tmp_path: its name embeds the test name (e.g. "untitled"), which
    # would leak into rendered plot commands via the data file path.
    staging_dir = tmp_path_factory.mktemp("staging")

    def _make(dimensions: int = 2, debug: bool = False) -> PlotSession:
        session = PlotSession(dimensions, debug=debug, process=fake_process)
        session.tempfiles = TempFileRegistry(directory=str(staging_dir))
        return session

    return _make
