from collections.abc import Iterable

import pandas as pd  # type: ignore


def ensure_iterable(arg: int | Iterable[int]) -> tuple[int, ...]:
    if isinstance(arg, bool):
        raise TypeError("All values must be integers")
    if isinstance(arg, int):
        return (arg,)

    values = tuple(arg)
    if all(isinstance(i, int) and not isinstance(i, bool) for i in values):
        return values

    raise TypeError("All values must be integers")


def apply_differences(series: pd.Series, *diffs: int) -> pd.Series:
    """Difference a series sequentially at each lag and drop the leading gaps.

    >>> s = pd.Series([1.0, 3.0, 6.0, 10.0])
    >>> apply_differences(s, 1).tolist()
    [2.0, 3.0, 4.0]
    >>> apply_differences(s, 1, 1).tolist()
    [1.0, 1.0]
    """
    for diff in diffs:
        series = series.diff(diff)
    return series.dropna()


def future_index(index: pd.DatetimeIndex, steps: int) -> pd.DatetimeIndex:
    """Build the ``steps`` timestamps following a regular DatetimeIndex.

    >>> idx = pd.date_range("2022-11-01", periods=2, freq="MS")
    >>> [str(d.date()) for d in future_index(idx, 3)]
    ['2023-01-01', '2023-02-01', '2023-03-01']
    """
    freq = index.freq or pd.infer_freq(index)
    if freq is None:
        raise ValueError("Cannot extend an index without a regular frequency")
    return pd.date_range(index[-1], periods=steps + 1, freq=freq)[1:]
