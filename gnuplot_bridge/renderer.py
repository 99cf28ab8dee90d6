"""
Series rendering: stage a point group's data in a temp file and build the
gnuplot command lines that draw it.

All kinds share one command shape:

    <token> "<path>" [using <cols>] [title "<name>"] with <style> [palette] [pt <type> ps <size>]

The token is the kind's start token (``plot``, or ``splot`` for 3D) for the
first series of an image and ``replot`` for every later one. Candlesticks
also need palette/fill/boxwidth setup lines before their plot statement.
"""

from dataclasses import dataclass, field

import numpy as np

import config
from gnuplot_bridge.logging import get_logger
from gnuplot_bridge.pointgroup import Kind, PointGroup
from gnuplot_bridge.tempfiles import TempFileRegistry

logger = get_logger()

PLOT = "plot"
SPLOT = "splot"
REPLOT = "replot"

CANDLESTICK_STYLE = "candlesticks"
# x:open:low:high:close maps onto candlesticks' x:box_min:whisker_min:whisker_max:box_max;
# the last column is the palette index, -1 when close < open, else 1
CANDLESTICK_USING = "1:2:4:3:5:($5 < $2 ? -1 : 1)"

_START_TOKENS = {
    Kind.SERIES_1D: PLOT,
    Kind.SERIES_2D: PLOT,
    Kind.SERIES_3D: SPLOT,
    Kind.CANDLESTICK: PLOT,
}


@dataclass
class RenderedSeries:
    """Everything needed to send one series to gnuplot.

    Attributes:
        path: Staged data file.
        rows: Number of data lines written.
        command: The plot statement for this series.
        setup: Commands to send before ``command``, in order.
    """

    path: str
    rows: int
    command: str
    setup: list[str] = field(default_factory=list)

    @property
    def lines(self) -> list[str]:
        return [*self.setup, self.command]


def plot_token(kind: Kind, plots_issued: int) -> str:
    """Start token for the first series of an image, ``replot`` afterwards."""
    if plots_issued > 0:
        return REPLOT
    return _START_TOKENS[kind]


def build_plot_command(
    token: str,
    path: str,
    name: str,
    style: str,
    using: str = "",
    palette: bool = False,
    point_type: int = 0,
    point_size: float = 0.0,
) -> str:
    """Format one plot/splot/replot statement."""
    parts = [f'{token} "{path}"']
    if using:
        parts.append(f"using {using}")
    if name:
        parts.append(f'title "{name}"')
    parts.append(f"with {style}")
    if palette:
        parts.append("palette")
    if point_size > 0:
        parts.append(f"pt {int(point_type)} ps {point_size:.2f}")
    return " ".join(parts)


def format_rows(columns: list[np.ndarray]) -> tuple[str, int]:
    """Lay out parallel columns as whitespace-separated text lines.

    Columns are truncated to the shortest one.

    Returns:
        (text, number_of_rows)
    """
    n = min(len(col) for col in columns)
    if any(len(col) != n for col in columns):
        lengths = ", ".join(str(len(col)) for col in columns)
        logger.debug(f"Column lengths differ ({lengths}); truncating to {n} rows")
    rows = zip(*(col[:n].tolist() for col in columns))
    text = "".join(" ".join(str(v) for v in row) + "\n" for row in rows)
    return text, n


def stage_data(registry: TempFileRegistry, columns: list[np.ndarray]) -> tuple[str, int]:
    """Write columns to a fresh registered temp file.

    Returns:
        (path, number_of_rows)

    Raises:
        DataStagingError: If the file cannot be created, written, or closed.
    """
    text, n = format_rows(columns)
    _, path = registry.create()
    try:
        registry.write(path, text)
    finally:
        registry.close(path)
    return path, n


def _render_series(group: PointGroup, registry: TempFileRegistry, plots_issued: int) -> RenderedSeries:
    """1D, 2D and 3D series: data file plus a single plot statement."""
    path, n = stage_data(registry, group.data.columns())
    if not group.style:
        group.style = config.DEFAULT_STYLE
    command = build_plot_command(
        plot_token(group.kind, plots_issued), path, group.name, group.style,
        point_type=group.point_type, point_size=group.point_size,
    )
    return RenderedSeries(path=path, rows=n, command=command)


def _render_candlestick(group: PointGroup, registry: TempFileRegistry, plots_issued: int) -> RenderedSeries:
    data = group.data
    path, n = stage_data(registry, data.columns())
    if not group.style:
        group.style = CANDLESTICK_STYLE
    setup = [
        f"set palette defined (-1 '{data.down_color}', 1 '{data.up_color}')",
        "set cbrange [-1:1]",
        "unset colorbox",
        "set style fill solid noborder",
        f"set boxwidth {float(data.box_width):f}",
    ]
    command = build_plot_command(
        plot_token(group.kind, plots_issued), path, group.name, group.style,
        using=CANDLESTICK_USING, palette=True,
        point_type=group.point_type, point_size=group.point_size,
    )
    return RenderedSeries(path=path, rows=n, command=command, setup=setup)


_RENDERERS = {
    Kind.SERIES_1D: _render_series,
    Kind.SERIES_2D: _render_series,
    Kind.SERIES_3D: _render_series,
    Kind.CANDLESTICK: _render_candlestick,
}


def render_point_group(group: PointGroup, registry: TempFileRegistry, plots_issued: int) -> RenderedSeries:
    """Stage a point group and build its command lines.

    Args:
        group: The point group to render. An empty style is replaced by the
            kind's default and kept on the group.
        registry: Where the data file is created and tracked.
        plots_issued: Series already drawn in the current image; decides
            between the start token and ``replot``.

    Returns:
        RenderedSeries holding the staged path and the lines to send.

    Raises:
        DataStagingError: If the data file cannot be written.
    """
    return _RENDERERS[group.kind](group, registry, plots_issued)
