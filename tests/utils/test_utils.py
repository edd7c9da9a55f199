import pandas as pd  # type: ignore
import pytest

from electricity_sales_analysis.utils import apply_differences, ensure_iterable, future_index


@pytest.mark.parametrize(
    "input",
    [1, [1, 12], (1,), range(1), iter([1, 12])],
    ids=["int", "list of int", "tuple of int", "range", "iterator"],
)
def test_ensure_diffs_as_iterable(input):
    assert isinstance(ensure_iterable(input), tuple)


@pytest.mark.parametrize(
    "input",
    [1.0, [1.0, 2.0], (1.0,), ["s", 1], True],
    ids=["float", "list of floats", "tuple of float", "list of objects", "bool"],
)
def test_ensure_diffs_as_iterable_raises(input):
    with pytest.raises(TypeError):
        ensure_iterable(input)


def test_apply_seasonal_difference():
    idx = pd.date_range("2020-01-01", periods=36, freq="MS")
    series = pd.Series(range(36), index=idx, dtype=float)
    result = apply_differences(series, 1, 12)
    assert len(result) == 36 - 13
    assert (result == 0).all()
    assert result.index[0] == pd.Timestamp("2021-02-01")


def test_apply_no_differences():
    series = pd.Series([1.0, None, 3.0])
    assert apply_differences(series).tolist() == [1.0, 3.0]


def test_future_index_infers_frequency():
    idx = pd.DatetimeIndex(["2022-10-01", "2022-11-01", "2022-12-01"])
    assert idx.freq is None
    future = future_index(idx, 2)
    assert list(future) == [pd.Timestamp("2023-01-01"), pd.Timestamp("2023-02-01")]


def test_future_index_irregular_raises():
    idx = pd.DatetimeIndex(["2022-01-01", "2022-02-01", "2022-05-01"])
    with pytest.raises(ValueError, match="regular frequency"):
        future_index(idx, 1)
