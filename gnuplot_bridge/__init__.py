"""Drive gnuplot from Python: point groups in, plot commands out."""

from .errors import (
    GnuplotError,
    InvalidDimensionError,
    ProcessStartError,
    DimensionMismatchError,
    NotFoundError,
    DataStagingError,
    CommandWriteError,
    SessionClosedError,
    CleanupError,
)
from .pointgroup import (
    Kind,
    PointGroup,
    Series1D,
    Series2D,
    Series3D,
    CandlestickData,
)
from .session import PlotSession

__all__ = [
    "GnuplotError",
    "InvalidDimensionError",
    "ProcessStartError",
    "DimensionMismatchError",
    "NotFoundError",
    "DataStagingError",
    "CommandWriteError",
    "SessionClosedError",
    "CleanupError",
    "Kind",
    "PointGroup",
    "Series1D",
    "Series2D",
    "Series3D",
    "CandlestickData",
    "PlotSession",
]
