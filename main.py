#!/usr/bin/env python3
"""
gnuplot-bridge - Main Entry Point

Plot CSV files with gnuplot. Each file becomes one point group named after
the file.

Usage:
    python main.py data.csv                        # 2-D plot of the first two columns
    python main.py a.csv b.csv --style lines       # Overlay two files
    python main.py pts.csv --dims 3 --columns x,y,z
    python main.py ohlc.csv --candlestick          # x,open,high,low,close
    python main.py data.csv --output plot.png      # Save instead of interactive
    python main.py --errors                        # Show recent errors from logs

Interactive mode:
    Typed lines are sent to gnuplot as raw commands.
    quit - Close gnuplot and exit
"""

import argparse
import sys
import uuid
from datetime import datetime
from pathlib import Path

import pandas as pd

from gnuplot_bridge import CandlestickData, GnuplotError, PlotSession, PointGroup
from gnuplot_bridge.logging import (
    get_current_log_path,
    print_recent_errors,
    set_session_id,
    setup_logging,
)
from gnuplot_bridge.pointgroup import infer_series


def _select_columns(df: pd.DataFrame, columns: list[str] | None, count: int, source: Path) -> pd.DataFrame:
    """Pick the requested columns, or the first ``count`` columns."""
    if columns:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"{source.name}: column(s) not found: {', '.join(missing)}")
        return df[columns]
    if len(df.columns) < count:
        raise ValueError(f"{source.name}: need {count} columns, found {len(df.columns)}")
    return df.iloc[:, :count]


def load_point_group(path: Path, dims: int, style: str = "",
                     columns: list[str] | None = None,
                     candlestick: bool = False) -> PointGroup:
    """Read a CSV file into a PointGroup named after the file stem."""
    df = pd.read_csv(path)
    if candlestick:
        table = _select_columns(df, columns, 5, path).to_numpy(dtype=float)
        data = CandlestickData(x=table[:, 0], candles=table[:, 1:5])
    else:
        table = _select_columns(df, columns, dims, path).to_numpy(dtype=float)
        raw = table[:, 0] if dims == 1 else [table[:, i] for i in range(dims)]
        data = infer_series(raw, dims)
    return PointGroup(name=path.stem, data=data, style=style)


def interactive_loop(session: PlotSession) -> None:
    """Forward typed lines to gnuplot until 'quit' or EOF."""
    print("Type gnuplot commands, or 'quit' to exit.")
    while True:
        try:
            line = input("gnuplot> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.lower() in ("quit", "exit", "q"):
            break
        if line:
            session.send_command(line)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Plot CSV files with gnuplot")
    parser.add_argument("files", nargs="*", type=Path, help="CSV files to plot")
    parser.add_argument("--dims", type=int, default=2, choices=(1, 2, 3),
                        help="Plot dimensions (default 2)")
    parser.add_argument("--style", default="", help="gnuplot style, e.g. lines or points")
    parser.add_argument("--title", default=None, help="Plot title")
    parser.add_argument("--columns", default=None, help="Comma-separated column names to plot")
    parser.add_argument("--candlestick", action="store_true",
                        help="Read x,open,high,low,close and draw candlesticks")
    parser.add_argument("--output", default=None, help="Save the plot to this file and exit")
    parser.add_argument("--format", default=None, help="Output format for --output (png, pdf, svg, ...)")
    parser.add_argument("--persist", action="store_true", help="Keep the gnuplot window open on exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    parser.add_argument("--debug", action="store_true", help="Log every command sent to gnuplot")
    parser.add_argument("--errors", action="store_true", help="Show recent errors from logs and exit")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose or args.debug)
    set_session_id(datetime.now().strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8])

    if args.errors:
        print_recent_errors()
        return 0
    if not args.files:
        parser.error("at least one CSV file is required")

    columns = [c.strip() for c in args.columns.split(",")] if args.columns else None

    try:
        groups = [
            load_point_group(path, args.dims, args.style, columns, args.candlestick)
            for path in args.files
        ]
        with PlotSession(args.dims, persist=args.persist, debug=args.debug) as session:
            for group in groups:
                session.add_point_group(group)
            if args.title is not None:
                session.set_title(args.title)
            if args.format:
                session.set_format(args.format)
            session.render_all()
            if args.output:
                session.save(args.output)
                print(f"Saved {args.output}")
            else:
                interactive_loop(session)
    except (GnuplotError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"Details in log: {get_current_log_path()}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
