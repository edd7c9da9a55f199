"""Loading and cleaning of monthly retail electricity sales exports.

The loaders target the CSV layout produced by the EIA electricity data browser:
a few metadata lines, then a ``Month`` column holding labels such as
``Feb 2023`` followed by one column per sector, newest month first.
"""

import logging
from os import PathLike
from typing import Annotated

import numpy as np
import pandas as pd  # type: ignore
from pydantic import Field, NonNegativeInt
from pydantic.dataclasses import dataclass

from .exceptions import DataValidationError

logger = logging.getLogger(__name__)

MISSING_MARKERS = ["--", "NA", "NM", "W", "(s)", ""]


@dataclass(frozen=True)
class SalesDataConfig:
    """Describes how a sales export is laid out and which months to keep.

    Examples:
        >>> SalesDataConfig().skiprows
        4
        >>> SalesDataConfig(skiprows=0, start=None).start is None
        True
    """

    skiprows: NonNegativeInt = 4
    date_column: str = "Month"
    date_format: str | None = "%b %Y"
    value_columns: tuple[str, ...] | None = None
    start: str | None = "2010-01"
    end: str | None = None
    freq: Annotated[str, Field(min_length=1)] = "MS"


def read_sales_csv(
    path: str | PathLike[str], config: SalesDataConfig | None = None
) -> pd.DataFrame:
    """Read an export into a wide frame with one float column per sector.

    The result is indexed by month start, sorted ascending, restricted to
    ``config.start``..``config.end`` and laid on a regular monthly grid, so
    months missing from the file appear as NaN rows.

    Args:
        path: Location of the CSV file.
        config: Layout description. Defaults to the EIA export layout.

    Returns:
        Wide DataFrame with a ``DatetimeIndex`` named ``ds``.

    Raises:
        DataValidationError: If the file cannot be parsed, the date column is
            missing or no usable rows remain.
    """
    config = config or SalesDataConfig()
    try:
        raw = pd.read_csv(
            path,
            skiprows=config.skiprows,
            na_values=MISSING_MARKERS,
            thousands=",",
            skipinitialspace=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise DataValidationError(f"Cannot parse {path}: {exc}") from exc
    raw.columns = [str(c).strip() for c in raw.columns]

    if config.date_column not in raw.columns:
        msg = f"Date column {config.date_column!r} not found in {list(raw.columns)}"
        raise DataValidationError(msg)

    dates = pd.to_datetime(
        raw[config.date_column], format=config.date_format, errors="coerce"
    )
    unparsed = int(dates.isna().sum())
    if unparsed:
        logger.warning("Dropping %d rows with unparseable dates", unparsed)

    columns = list(config.value_columns or raw.columns.drop(config.date_column))
    missing = [c for c in columns if c not in raw.columns]
    if missing:
        raise DataValidationError(f"Value columns not found: {missing}")

    values = raw[columns].apply(pd.to_numeric, errors="coerce")
    wide = values.set_index(dates.rename("ds"))
    wide = wide[wide.index.notna()]
    wide = wide.dropna(axis=1, how="all")

    if wide.empty:
        raise DataValidationError(f"No usable observations in {path}")

    wide = wide[~wide.index.duplicated(keep="last")].sort_index()
    wide = wide.loc[config.start : config.end]
    if wide.empty:
        msg = f"No observations between {config.start} and {config.end}"
        raise DataValidationError(msg)

    wide = wide.asfreq(config.freq)
    logger.info(
        "Loaded %d months x %d series from %s (%s to %s)",
        len(wide),
        wide.shape[1],
        path,
        wide.index[0].strftime("%Y-%m"),
        wide.index[-1].strftime("%Y-%m"),
    )
    return wide


def to_long(wide: pd.DataFrame) -> pd.DataFrame:
    """Reshape a wide sector frame into ``unique_id``, ``ds``, ``y`` rows.

    Examples:
        >>> idx = pd.date_range("2020-01-01", periods=2, freq="MS", name="ds")
        >>> wide = pd.DataFrame({"total": [1.0, 2.0], "residential": [0.5, 0.7]}, index=idx)
        >>> long = to_long(wide)
        >>> list(long.columns)
        ['unique_id', 'ds', 'y']
        >>> long["unique_id"].tolist()
        ['residential', 'residential', 'total', 'total']
    """
    return (
        wide.rename_axis("ds")
        .reset_index()
        .melt(id_vars="ds", var_name="unique_id", value_name="y")
        .dropna(subset=["y"])
        .sort_values(["unique_id", "ds"], ignore_index=True)[["unique_id", "ds", "y"]]
    )


def load_sales(
    path: str | PathLike[str],
    config: SalesDataConfig | None = None,
    column: str | None = None,
    min_cycles: int = 2,
    period: int = 12,
) -> pd.Series:
    """Load one sector as a gap free monthly series ready for decomposition.

    Args:
        path: Location of the CSV file.
        config: Layout description. Defaults to the EIA export layout.
        column: Sector column to keep. Defaults to the first value column.
        min_cycles: Minimum number of complete seasonal cycles required.
        period: Observations per seasonal cycle.

    Returns:
        Float series indexed by month start with interior gaps interpolated.

    Raises:
        DataValidationError: If the column is unknown or the series is too short.
    """
    config = config or SalesDataConfig()
    wide = read_sales_csv(path, config)
    column = column or wide.columns[0]
    if column not in wide.columns:
        raise DataValidationError(f"Column {column!r} not in {list(wide.columns)}")

    series = wide[column].astype(float)
    series = series.loc[series.first_valid_index() : series.last_valid_index()]

    gaps = int(series.isna().sum())
    if gaps:
        logger.warning("Interpolating %d missing months in %r", gaps, column)
        series = series.interpolate(method="time")

    if len(series) < min_cycles * period:
        msg = (
            f"Series {column!r} has {len(series)} observations, "
            f"at least {min_cycles * period} are required"
        )
        raise DataValidationError(msg)

    if not np.isfinite(series.to_numpy()).all():
        raise DataValidationError(f"Series {column!r} contains non finite values")

    if series.index.freq is None:
        series = series.asfreq(config.freq)
    return series.rename(column)
