import logging
import warnings

import numpy as np
import pandas as pd  # type: ignore
import pytest

from electricity_sales_analysis.diagnostics import (
    adf_test,
    kpss_test,
    ljung_box_test,
    stationarity_summary,
)


@pytest.fixture
def trending() -> pd.Series:
    rng = np.random.default_rng(5)
    return pd.Series(np.cumsum(rng.normal(size=200)) + 0.5 * np.arange(200))


@pytest.fixture
def mean_reverting() -> pd.Series:
    # over-differenced noise: bounded partial sums keep the KPSS statistic tiny
    rng = np.random.default_rng(5)
    return pd.Series(np.diff(rng.normal(size=201)))


@pytest.fixture
def autocorrelated() -> pd.Series:
    rng = np.random.default_rng(9)
    shocks = rng.normal(size=200)
    values = np.zeros(200)
    for i in range(1, 200):
        values[i] = 0.8 * values[i - 1] + shocks[i]
    return pd.Series(values)


def test_adf_layout(trending: pd.Series) -> None:
    result = adf_test(trending)
    assert result.name == "ADF"
    assert list(result.index) == [
        "Test Statistic",
        "p-value",
        "Lags Used",
        "Observations",
        "Critical Value (1%)",
        "Critical Value (5%)",
        "Critical Value (10%)",
    ]


def test_adf_detects_unit_root(trending: pd.Series, mean_reverting: pd.Series) -> None:
    assert adf_test(trending)["p-value"] > 0.05
    assert adf_test(mean_reverting)["p-value"] < 0.05


def test_adf_with_differences(trending: pd.Series) -> None:
    result = adf_test(trending, 1)
    assert result["p-value"] < 0.05
    assert result["Observations"] + result["Lags Used"] == len(trending) - 2


def test_kpss_layout_and_bounds(trending: pd.Series, mean_reverting: pd.Series) -> None:
    result = kpss_test(trending)
    assert result.name == "KPSS"
    assert "Critical Value (2.5%)" in result.index
    assert result["p-value"] == pytest.approx(0.01)
    assert kpss_test(mean_reverting)["p-value"] == pytest.approx(0.1)


def test_ljung_box(autocorrelated: pd.Series) -> None:
    result = ljung_box_test(autocorrelated, lags=(6, 12))
    assert result.index.name == "lag"
    assert list(result.index) == [6, 12]
    assert list(result.columns) == ["lb_stat", "lb_pvalue"]
    assert (result["lb_pvalue"] < 0.01).all()


def test_ljung_box_skips_invalid_lags(autocorrelated: pd.Series) -> None:
    result = ljung_box_test(autocorrelated, lags=(2, 6, 500), model_df=3)
    assert list(result.index) == [6]


def test_ljung_box_no_valid_lag(autocorrelated: pd.Series) -> None:
    with pytest.raises(ValueError, match="No valid Ljung-Box lag"):
        ljung_box_test(autocorrelated.iloc[:10], lags=24)


@pytest.mark.parametrize(
    "fixture, verdict",
    [("trending", "non-stationary"), ("mean_reverting", "stationary")],
)
def test_stationarity_summary(request: pytest.FixtureRequest, fixture: str, verdict: str) -> None:
    series = request.getfixturevalue(fixture)
    summary = stationarity_summary(series)
    assert summary["verdict"] == verdict
    assert list(summary.index) == ["ADF p-value", "KPSS p-value", "verdict"]


def test_kpss_logs_interpolation_warning(trending: pd.Series, caplog) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with caplog.at_level(logging.DEBUG, logger="electricity_sales_analysis.diagnostics"):
            result = kpss_test(trending)

    assert result["p-value"] == pytest.approx(0.01)
    assert any(
        record.levelno == logging.DEBUG and record.getMessage().startswith("KPSS:")
        for record in caplog.records
    )
