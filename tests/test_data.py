import logging

import numpy as np
import pandas as pd  # type: ignore
import pytest

from electricity_sales_analysis import (
    DataValidationError,
    SalesDataConfig,
    load_sales,
    read_sales_csv,
    to_long,
)


@pytest.fixture
def sectors() -> dict[str, pd.Series]:
    index = pd.date_range("2009-01-01", periods=36, freq="MS")
    total = pd.Series(21000.0 + 10 * np.arange(36), index=index)
    residential = pd.Series(8000.0 + 5 * np.arange(36), index=index)
    total.iloc[20] = np.nan
    return {"all sectors": total, "residential": residential}


def test_read_sales_csv(write_eia_csv, sectors):
    wide = read_sales_csv(write_eia_csv(sectors))

    assert list(wide.columns) == ["all sectors", "residential"]
    assert wide.index.name == "ds"
    assert wide.index.freqstr == "MS"
    assert wide.index.is_monotonic_increasing
    assert wide.index[0] == pd.Timestamp("2010-01-01")
    assert len(wide) == 24
    assert wide.loc["2010-01-01", "all sectors"] == pytest.approx(21120.0)
    assert np.isnan(wide.loc["2010-09-01", "all sectors"])


def test_read_sales_csv_window(write_eia_csv, sectors):
    config = SalesDataConfig(start="2009-06", end="2010-05")
    wide = read_sales_csv(write_eia_csv(sectors), config)
    assert wide.index[0] == pd.Timestamp("2009-06-01")
    assert wide.index[-1] == pd.Timestamp("2010-05-01")


def test_read_sales_csv_fills_missing_months(write_eia_csv, sectors):
    gappy = {name: s.drop(pd.Timestamp("2010-03-01")) for name, s in sectors.items()}
    wide = read_sales_csv(write_eia_csv(gappy))
    assert len(wide) == 24
    assert wide.loc["2010-03-01"].isna().all()


def test_read_sales_csv_select_columns(write_eia_csv, sectors):
    config = SalesDataConfig(value_columns=("residential",))
    wide = read_sales_csv(write_eia_csv(sectors), config)
    assert list(wide.columns) == ["residential"]


@pytest.mark.parametrize(
    "config, match",
    [
        (SalesDataConfig(date_column="Date"), "Date column"),
        (SalesDataConfig(value_columns=("commercial",)), "not found"),
        (SalesDataConfig(start="2015-01"), "No observations"),
    ],
    ids=["date_column", "value_column", "empty_window"],
)
def test_read_sales_csv_raises(write_eia_csv, sectors, config, match):
    with pytest.raises(DataValidationError, match=match):
        read_sales_csv(write_eia_csv(sectors), config)


def test_load_sales_interpolates(write_eia_csv, sectors, caplog):
    with caplog.at_level(logging.WARNING, logger="electricity_sales_analysis.data"):
        series = load_sales(write_eia_csv(sectors))

    assert series.name == "all sectors"
    assert series.index.freqstr == "MS"
    assert not series.isna().any()
    assert series["2010-09-01"] == pytest.approx(21200.0, abs=0.5)
    assert "Interpolating 1 missing months" in caplog.text


def test_load_sales_column(write_eia_csv, sectors):
    series = load_sales(write_eia_csv(sectors), column="residential")
    assert series.name == "residential"
    assert series.iloc[0] == pytest.approx(8060.0)


def test_load_sales_unknown_column(write_eia_csv, sectors):
    with pytest.raises(DataValidationError, match="commercial"):
        load_sales(write_eia_csv(sectors), column="commercial")


def test_load_sales_too_short(write_eia_csv, sectors):
    config = SalesDataConfig(start="2010-06")
    with pytest.raises(DataValidationError, match="at least 24 are required"):
        load_sales(write_eia_csv(sectors), config)


def test_data_validation_error_is_value_error():
    assert issubclass(DataValidationError, ValueError)


def test_to_long(sectors):
    wide = pd.DataFrame(sectors).rename_axis("ds")
    long = to_long(wide)
    assert list(long.columns) == ["unique_id", "ds", "y"]
    assert set(long["unique_id"]) == {"all sectors", "residential"}
    assert len(long) == 2 * 36 - 1
    assert long.groupby("unique_id")["ds"].is_monotonic_increasing.all()


def test_read_sales_csv_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(DataValidationError, match="Cannot parse"):
        read_sales_csv(path, SalesDataConfig(skiprows=0))
