"""
Plot sessions: one gnuplot process plus the point groups drawn in it.

Usage:
    from gnuplot_bridge import PlotSession
    with PlotSession(2, persist=True) as plot:
        plot.add_points("sine", "lines", [xs, ys])
        plot.set_title("Example")
        plot.render_all()
        plot.save("example.png")

Point groups and plot metadata (title, labels, ranges, log scale) are only
state until the next render_all(), which re-issues the whole image.
"""

import numbers
from typing import Callable, Optional

import numpy as np

import config
from gnuplot_bridge.connection import GnuplotProcess
from gnuplot_bridge.errors import (
    CleanupError,
    CommandWriteError,
    DataStagingError,
    DimensionMismatchError,
    GnuplotError,
    InvalidDimensionError,
    NotFoundError,
    ProcessStartError,
    SessionClosedError,
)
from gnuplot_bridge.logging import get_logger, log_cleanup_failure, log_command, log_error
from gnuplot_bridge.pointgroup import (
    Kind,
    Numbers,
    PointGroup,
    Series2D,
    Series3D,
    make_point_group,
)
from gnuplot_bridge.renderer import RenderedSeries, render_point_group
from gnuplot_bridge.tempfiles import TempFileRegistry

logger = get_logger()

SUPPORTED_FORMATS = frozenset({"png", "pdf", "svg", "jpeg", "eps", "gif"})
AXES = ("x", "y", "z")


def _check_axis(axis: str) -> str:
    if axis not in AXES:
        raise ValueError(f"Unknown axis '{axis}'. Use one of: {', '.join(AXES)}")
    return axis


def _bound(value: Optional[float]) -> str:
    # gnuplot autoscales a "*" bound
    return "*" if value is None else str(value)


def _sample(func: Callable, *columns: np.ndarray) -> np.ndarray:
    """Evaluate func over the columns, vectorized when func supports it."""
    n = len(columns[0])
    try:
        result = np.asarray(func(*columns), dtype=float)
        if result.shape == (n,):
            return result
    except (TypeError, ValueError):
        pass
    return np.array([func(*point) for point in zip(*columns)], dtype=float)


class PlotSession:
    """A gnuplot process and the point groups plotted in it.

    Attributes:
        dimensions: 1, 2 or 3; fixed for the session's lifetime.
        point_groups: Name -> PointGroup. Rendered in name order.
        plots_issued: Series drawn into the current image so far.
        tempfiles: Staged data files. Files older than the previous image are
            deleted on each new image, the rest on close().
    """

    def __init__(self, dimensions: int, persist: bool = False, debug: bool = False,
                 process: Optional[GnuplotProcess] = None):
        """Create a session and start gnuplot.

        Args:
            dimensions: Plot dimensionality, 1-3.
            persist: Keep the gnuplot window open after the session closes.
            debug: Log every command sent to gnuplot.
            process: Already-started command sink to use instead of spawning
                gnuplot.

        Raises:
            InvalidDimensionError: If dimensions is not 1, 2 or 3.
            ProcessStartError: If gnuplot cannot be launched.
        """
        if (isinstance(dimensions, bool) or not isinstance(dimensions, numbers.Integral)
                or dimensions not in (1, 2, 3)):
            raise InvalidDimensionError(
                f"Invalid number of dimensions '{dimensions}'. Only 1, 2 and 3-D plots are supported."
            )
        self.dimensions = int(dimensions)
        self.persist = persist
        self.debug = debug
        self.point_groups: dict[str, PointGroup] = {}
        self.plots_issued = 0
        self.tempfiles = TempFileRegistry()

        self.title: Optional[str] = None
        self.format = config.DEFAULT_FORMAT
        self.labels: dict[str, str] = {}
        self.ranges: dict[str, tuple[Optional[float], Optional[float]]] = {}
        self.log_scales: dict[str, Optional[float]] = {}  # None = unset

        # Staged files of the image being drawn and of the one before it.
        # gnuplot may still be reading the previous image's files.
        self._image_files: list[str] = []
        self._previous_files: list[str] = []
        self._release_failures: list[tuple[str, Exception]] = []

        self._closed = False
        if process is None:
            try:
                process = GnuplotProcess(persist=persist).start()
            except ProcessStartError as e:
                log_error("Failed to start gnuplot", e, {"persist": persist})
                raise
        self._proc = process
        logger.debug(f"Plot session started ({dimensions}-D, persist={persist}, debug={debug})")

    def __enter__(self) -> "PlotSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Plot session is closed; no further commands accepted")

    # ---- Point groups -------------------------------------------------------

    def add_point_group(self, group: PointGroup) -> None:
        """Add a point group, replacing any group with the same name.

        Raises:
            DimensionMismatchError: If a numeric group's dimensions differ
                from the session's. Candlestick groups are always accepted.
        """
        if group.kind is not Kind.CANDLESTICK and group.dimensions != self.dimensions:
            raise DimensionMismatchError(
                f"Point group '{group.name}' is {group.dimensions}-D but the plot is "
                f"{self.dimensions}-D."
            )
        if group.name in self.point_groups:
            logger.debug(f"Replacing point group '{group.name}'")
        self.point_groups[group.name] = group

    def add_points(self, name: str, style: str, data) -> PointGroup:
        """Add raw data as a point group, inferring its kind from the data shape.

        Args:
            name: Group name / legend title ("" for untitled).
            style: gnuplot ``with`` style ("" for the default).
            data: A flat sequence (1D), a sequence of 2 or 3 sequences (2D/3D),
                a CandlestickData, or a series object.

        Returns:
            The PointGroup that was added.
        """
        group = make_point_group(name, style, data, self.dimensions)
        self.add_point_group(group)
        return group

    def add_function_2d(self, name: str, style: str, x: Numbers,
                        func: Callable[[float], float]) -> PointGroup:
        """Add y = func(x) sampled at every x as a 2-D point group."""
        x = np.asarray(x, dtype=float)
        group = PointGroup(name=name, data=Series2D(x, _sample(func, x)), style=style)
        self.add_point_group(group)
        return group

    def add_function_3d(self, name: str, style: str, x: Numbers, y: Numbers,
                        func: Callable[[float, float], float]) -> PointGroup:
        """Add z = func(x, y) sampled at each (x[i], y[i]) as a 3-D point group.

        x and y are truncated to the shorter of the two.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        n = min(len(x), len(y))
        x, y = x[:n], y[:n]
        group = PointGroup(name=name, data=Series3D(x, y, _sample(func, x, y)), style=style)
        self.add_point_group(group)
        return group

    def get_point_group(self, name: str) -> PointGroup:
        try:
            return self.point_groups[name]
        except KeyError:
            raise NotFoundError(f"No point group named '{name}' in this plot") from None

    def remove_point_group(self, name: str) -> None:
        """Remove a point group by name.

        Raises:
            NotFoundError: If no group has that name.
        """
        self.get_point_group(name)
        del self.point_groups[name]

    def point_group_names(self) -> list[str]:
        return sorted(self.point_groups)

    def set_style(self, name: str, style: str) -> None:
        self.get_point_group(name).style = style

    def set_point_style(self, name: str, point_type: int, point_size: float) -> None:
        group = self.get_point_group(name)
        group.point_type = point_type
        group.point_size = point_size

    # ---- Plot metadata --------------------------------------------------------

    def set_title(self, title: str) -> None:
        self.title = title

    def set_format(self, fmt: str) -> None:
        """Set the terminal used by save().

        Raises:
            ValueError: If fmt is not a supported terminal.
        """
        fmt = fmt.lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format '{fmt}'. Use one of: {', '.join(sorted(SUPPORTED_FORMATS))}"
            )
        self.format = fmt

    def set_labels(self, x: Optional[str] = None, y: Optional[str] = None,
                   z: Optional[str] = None) -> None:
        for axis, label in zip(AXES, (x, y, z)):
            if label is not None:
                self.labels[axis] = label

    def set_range(self, axis: str, low: Optional[float] = None,
                  high: Optional[float] = None) -> None:
        """Set an axis range; a None bound is autoscaled."""
        self.ranges[_check_axis(axis)] = (low, high)

    def set_log_scale(self, axis: str, base: float = 10) -> None:
        if base <= 1:
            raise ValueError(f"Log scale base must be greater than 1, got {base}")
        self.log_scales[_check_axis(axis)] = base

    def reset_log_scale(self, axis: str) -> None:
        self.log_scales[_check_axis(axis)] = None

    def _preamble(self) -> list[str]:
        """Metadata commands issued ahead of the first series."""
        lines = []
        if self.title is not None:
            lines.append(f'set title "{self.title}"')
        for axis in AXES:
            if axis in self.labels:
                lines.append(f'set {axis}label "{self.labels[axis]}"')
            if axis in self.ranges:
                low, high = self.ranges[axis]
                lines.append(f"set {axis}range [{_bound(low)}:{_bound(high)}]")
            if axis in self.log_scales:
                base = self.log_scales[axis]
                if base is None:
                    lines.append(f"unset logscale {axis}")
                else:
                    lines.append(f"set logscale {axis} {base}")
        return lines

    # ---- Commands ----------------------------------------------------------

    def send_command(self, text: str) -> None:
        """Send a raw gnuplot command line.

        Raises:
            SessionClosedError: If the session was closed.
            CommandWriteError: If the write to gnuplot fails.
        """
        self._ensure_open()
        if self.debug:
            log_command(text)
        try:
            self._proc.write_line(text)
        except CommandWriteError as e:
            log_error("Failed to send command to gnuplot", e, {"command": text})
            raise

    def _start_image(self) -> None:
        """Begin a new image, deleting the files staged two images ago."""
        for path in self._previous_files:
            try:
                self.tempfiles.remove(path)
            except OSError as e:
                log_cleanup_failure(path, e)
                self._release_failures.append((path, e))
        self._previous_files = self._image_files
        self._image_files = []
        self.plots_issued = 0

    def _render_group(self, group: PointGroup) -> RenderedSeries:
        try:
            rendered = render_point_group(group, self.tempfiles, self.plots_issued)
        except DataStagingError as e:
            log_error(f"Failed to stage data for point group '{group.name}'", e,
                      {"group": group.name, "kind": group.kind.value})
            raise
        self._image_files.append(rendered.path)
        for line in rendered.lines:
            self.send_command(line)
        self.plots_issued += 1
        logger.debug(f"Rendered '{group.name}' ({group.kind.value}, {rendered.rows} rows) "
                     f"from {rendered.path}")
        return rendered

    def render_all(self) -> list[RenderedSeries]:
        """Re-issue the whole image: metadata, then every group in name order.

        The first series starts a new plot statement and every later one is
        appended with ``replot``. A failure stops the batch; series already
        sent stay drawn.

        Returns:
            One RenderedSeries per group, in render order.
        """
        self._ensure_open()
        self._start_image()
        for line in self._preamble():
            self.send_command(line)
        return [self._render_group(self.point_groups[name]) for name in self.point_group_names()]

    def render(self, name: str) -> RenderedSeries:
        """Draw one point group onto the current image.

        Starts a new plot when nothing has been drawn yet, otherwise appends
        with ``replot``.
        """
        self._ensure_open()
        return self._render_group(self.get_point_group(name))

    def save(self, filename: str) -> None:
        """Write the current image to a file using the session's format.

        Renders first when nothing has been drawn yet. The interactive
        terminal is restored afterwards.
        """
        self._ensure_open()
        if self.plots_issued == 0:
            self.render_all()
        self.send_command("set terminal push")
        self.send_command(f"set terminal {self.format}")
        self.send_command(f'set output "{filename}"')
        self.send_command("replot")
        self.send_command("set output")
        self.send_command("set terminal pop")
        logger.debug(f"Saved plot as {self.format} to {filename}")

    def reset(self) -> None:
        """Reset gnuplot's settings and start a fresh image. Point groups stay."""
        self.send_command("reset")
        self._start_image()

    def close(self) -> None:
        """Stop gnuplot and delete every staged data file.

        All files are attempted even if stopping gnuplot or some removals
        fail; the registry is empty afterwards. Closing twice is a no-op.

        Raises:
            CleanupError: If any staged file could not be removed. When gnuplot
                also failed to stop, that error is chained as the cause.
            OSError, GnuplotError: If gnuplot failed to stop and every file
                was removed.
        """
        if self._closed:
            return
        self._closed = True
        stop_error = None
        try:
            self._proc.close()
        except (OSError, GnuplotError) as e:
            log_error("Failed to stop gnuplot", e)
            stop_error = e

        removal_failures = self.tempfiles.remove_all()
        for path, exc in removal_failures:
            log_cleanup_failure(path, exc)
        failures = self._release_failures + removal_failures
        self._release_failures = []
        self._image_files = []
        self._previous_files = []
        if failures:
            raise CleanupError(failures) from stop_error
        if stop_error is not None:
            raise stop_error
        logger.debug("Plot session closed")
