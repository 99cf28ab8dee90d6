"""
Point groups: named datasets plus the style they are drawn with.

A PointGroup's data is one of four series types:

    Series1D(values)                      -> 1 column
    Series2D(x, y)                        -> 2 columns
    Series3D(x, y, z)                     -> 3 columns
    CandlestickData(x, candles, ...)      -> x open high low close

Numeric inputs are coerced with numpy.asarray. Columns of one series may
differ in length; the renderer truncates to the shortest.
"""

from collections.abc import Sequence as AbcSequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from gnuplot_bridge.errors import DimensionMismatchError


class Kind(Enum):
    SERIES_1D = "1d"
    SERIES_2D = "2d"
    SERIES_3D = "3d"
    CANDLESTICK = "candlestick"


def _as_column(values, name: str) -> np.ndarray:
    """Coerce a sequence to a 1-D numeric array, or raise ValueError."""
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise ValueError(f"'{name}' must be a flat sequence of numbers, got shape {arr.shape}")
    if arr.size and not np.issubdtype(arr.dtype, np.number):
        raise ValueError(f"'{name}' must contain only numbers, got dtype {arr.dtype}")
    return arr


@dataclass
class Series1D:
    values: np.ndarray

    def __post_init__(self):
        self.values = _as_column(self.values, "values")

    def columns(self) -> list[np.ndarray]:
        return [self.values]


@dataclass
class Series2D:
    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        self.x = _as_column(self.x, "x")
        self.y = _as_column(self.y, "y")

    def columns(self) -> list[np.ndarray]:
        return [self.x, self.y]


@dataclass
class Series3D:
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray

    def __post_init__(self):
        self.x = _as_column(self.x, "x")
        self.y = _as_column(self.y, "y")
        self.z = _as_column(self.z, "z")

    def columns(self) -> list[np.ndarray]:
        return [self.x, self.y, self.z]


@dataclass
class CandlestickData:
    """OHLC candles positioned along x.

    Attributes:
        x: X position of each candle.
        candles: (open, high, low, close) per candle, shape (n, 4).
        up_color: Colour of candles that close at or above their open.
        down_color: Colour of candles that close below their open.
        box_width: Width of each candle body, in x units.
    """

    x: np.ndarray
    candles: np.ndarray
    up_color: str = "green"
    down_color: str = "red"
    box_width: float = 0.5

    def __post_init__(self):
        self.x = _as_column(self.x, "x")
        candles = np.asarray(self.candles)
        if candles.size == 0:
            candles = candles.reshape(0, 4)
        if candles.ndim != 2 or candles.shape[1] != 4:
            raise ValueError(
                f"'candles' must be (open, high, low, close) rows, got shape {candles.shape}"
            )
        if not np.issubdtype(candles.dtype, np.number):
            raise ValueError(f"'candles' must contain only numbers, got dtype {candles.dtype}")
        self.candles = candles

    def columns(self) -> list[np.ndarray]:
        return [self.x] + [self.candles[:, i] for i in range(4)]


SeriesData = Union[Series1D, Series2D, Series3D, CandlestickData]

_KIND_BY_TYPE = {
    Series1D: Kind.SERIES_1D,
    Series2D: Kind.SERIES_2D,
    Series3D: Kind.SERIES_3D,
    CandlestickData: Kind.CANDLESTICK,
}

_DIMENSIONS_BY_KIND = {
    Kind.SERIES_1D: 1,
    Kind.SERIES_2D: 2,
    Kind.SERIES_3D: 3,
    Kind.CANDLESTICK: None,
}


@dataclass
class PointGroup:
    """A named dataset rendered as one gnuplot series.

    Attributes:
        name: Legend title. Empty means untitled (no title clause).
        data: One of Series1D, Series2D, Series3D, CandlestickData.
        style: gnuplot ``with`` style. Empty means the default for the kind.
        point_type: gnuplot ``pt`` marker shape.
        point_size: gnuplot ``ps`` marker size; <= 0 keeps gnuplot's default.
    """

    name: str
    data: SeriesData
    style: str = ""
    point_type: int = 0
    point_size: float = 0.0
    kind: Kind = field(init=False)

    def __post_init__(self):
        # gnuplot titles are double-quoted strings
        if '"' in self.name:
            raise ValueError(f"Point group name cannot contain a double quote: {self.name!r}")
        kind = _KIND_BY_TYPE.get(type(self.data))
        if kind is None:
            raise TypeError(
                f"Point group data must be Series1D, Series2D, Series3D or "
                f"CandlestickData, got {type(self.data).__name__}"
            )
        self.kind = kind

    @property
    def dimensions(self) -> Optional[int]:
        """1, 2 or 3 for numeric series; None for candlesticks."""
        return _DIMENSIONS_BY_KIND[self.kind]


def _is_sequence(value) -> bool:
    if isinstance(value, (str, bytes)):
        return False
    return isinstance(value, (AbcSequence, np.ndarray, pd.Series))


def infer_series(data, dimensions: int) -> SeriesData:
    """Build the series variant for raw data in a plot of the given dimensions.

    A flat sequence is 1D. A sequence of 2 or 3 sequences (or a 2-D array
    with one row per column) is 2D or 3D. Series objects pass through.

    Raises:
        DimensionMismatchError: If the data's shape disagrees with dimensions.
    """
    if isinstance(data, (Series1D, Series2D, Series3D, CandlestickData)):
        return data

    if not _is_sequence(data):
        raise TypeError(f"Unsupported point group data type: {type(data).__name__}")

    if len(data) > 0 and all(_is_sequence(col) for col in data):
        ncols = len(data)
        if ncols != dimensions or dimensions not in (2, 3):
            raise DimensionMismatchError(
                f"Data has {ncols} columns but the plot is {dimensions}-dimensional. "
                f"A {ncols}-column point group needs a {ncols}-D plot."
            )
        if ncols == 2:
            return Series2D(data[0], data[1])
        return Series3D(data[0], data[1], data[2])

    if dimensions != 1:
        raise DimensionMismatchError(
            f"A flat sequence is 1-dimensional data but the plot is {dimensions}-dimensional."
        )
    return Series1D(data)


def make_point_group(name: str, style: str, data, dimensions: int) -> PointGroup:
    """Create a PointGroup from raw data, inferring its kind."""
    return PointGroup(name=name, data=infer_series(data, dimensions), style=style)


# Accepted inputs for the numeric helpers
Numbers = Union[Sequence[float], np.ndarray]
