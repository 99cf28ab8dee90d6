"""
Tests for gnuplot_bridge.pointgroup — series variants and kind inference.

Run with: python -m pytest tests/test_pointgroup.py
"""

import numpy as np
import pandas as pd
import pytest

from gnuplot_bridge.errors import DimensionMismatchError
from gnuplot_bridge.pointgroup import (
    CandlestickData,
    Kind,
    PointGroup,
    Series1D,
    Series2D,
    Series3D,
    infer_series,
    make_point_group,
)


class TestSeries:
    def test_lists_coerced_to_arrays(self):
        s = Series2D([1, 2, 3], (4.5, 5.5))
        assert isinstance(s.x, np.ndarray)
        assert isinstance(s.y, np.ndarray)
        assert len(s.columns()) == 2

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError, match="numbers"):
            Series1D(["a", "b"])

    def test_nested_rejected(self):
        with pytest.raises(ValueError, match="flat"):
            Series1D([[1, 2], [3, 4]])

    def test_empty_allowed(self):
        assert len(Series1D([]).values) == 0

    def test_3d_columns(self):
        cols = Series3D([1], [2], [3]).columns()
        assert [c.tolist() for c in cols] == [[1], [2], [3]]


class TestCandlestickData:
    def test_columns_are_x_open_high_low_close(self):
        data = CandlestickData(x=[1, 2], candles=[[10, 12, 8, 11], [11, 13, 9, 9]])
        cols = [c.tolist() for c in data.columns()]
        assert cols == [[1, 2], [10, 11], [12, 13], [8, 9], [11, 9]]

    def test_defaults(self):
        data = CandlestickData(x=[], candles=[])
        assert data.candles.shape == (0, 4)
        assert (data.up_color, data.down_color, data.box_width) == ("green", "red", 0.5)

    def test_wrong_candle_width(self):
        with pytest.raises(ValueError, match="open, high, low, close"):
            CandlestickData(x=[1], candles=[[1, 2, 3]])


class TestPointGroup:
    @pytest.mark.parametrize("data, kind, dims", [
        (Series1D([1]), Kind.SERIES_1D, 1),
        (Series2D([1], [2]), Kind.SERIES_2D, 2),
        (Series3D([1], [2], [3]), Kind.SERIES_3D, 3),
        (CandlestickData(x=[1], candles=[[1, 2, 0, 1]]), Kind.CANDLESTICK, None),
    ])
    def test_kind_and_dimensions(self, data, kind, dims):
        group = PointGroup(name="g", data=data)
        assert group.kind is kind
        assert group.dimensions == dims

    def test_defaults(self):
        group = PointGroup(name="", data=Series1D([1]))
        assert group.style == ""
        assert group.point_size == 0.0

    def test_raw_data_rejected(self):
        with pytest.raises(TypeError):
            PointGroup(name="g", data=[1, 2, 3])

    def test_double_quote_in_name_rejected(self):
        with pytest.raises(ValueError, match="double quote"):
            PointGroup(name='say "hi"', data=Series1D([1]))

    def test_single_quote_in_name_allowed(self):
        assert PointGroup(name="it's", data=Series1D([1])).name == "it's"


class TestInferSeries:
    def test_flat_is_1d(self):
        assert isinstance(infer_series([1, 2], 1), Series1D)

    def test_two_sequences_is_2d(self):
        assert isinstance(infer_series([[1, 2], [3]], 2), Series2D)

    def test_2d_array_rows_are_columns(self):
        series = infer_series(np.arange(6).reshape(3, 2), 3)
        assert isinstance(series, Series3D)
        assert series.z.tolist() == [4, 5]

    def test_pandas_columns_are_2d(self):
        df = pd.DataFrame({"x": [1.0, 2.0, 3.0], "y": [4.0, 5.0, 6.0]})
        series = infer_series([df["x"], df["y"]], 2)
        assert isinstance(series, Series2D)
        assert series.y.tolist() == [4.0, 5.0, 6.0]

    def test_pandas_series_is_1d(self):
        series = infer_series(pd.Series([1, 2, 3]), 1)
        assert isinstance(series, Series1D)
        assert series.values.tolist() == [1, 2, 3]

    def test_range_is_1d(self):
        series = infer_series(range(5), 1)
        assert isinstance(series, Series1D)
        assert series.values.tolist() == [0, 1, 2, 3, 4]

    def test_ranges_are_3d(self):
        series = infer_series((range(3), range(3, 6), range(6, 9)), 3)
        assert isinstance(series, Series3D)
        assert series.z.tolist() == [6, 7, 8]

    def test_series_passes_through(self):
        data = Series2D([1], [2])
        assert infer_series(data, 2) is data

    @pytest.mark.parametrize("data, dims", [
        ([[1], [2]], 3),
        ([[1], [2], [3]], 2),
        ([1, 2, 3], 2),
        ([[1], [2], [3], [4]], 3),
    ])
    def test_mismatch(self, data, dims):
        with pytest.raises(DimensionMismatchError):
            infer_series(data, dims)

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            infer_series("not data", 1)

    def test_make_point_group(self):
        group = make_point_group("g", "lines", [[1, 2], [3, 4]], 2)
        assert group.kind is Kind.SERIES_2D
        assert group.style == "lines"
