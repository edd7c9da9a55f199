import numpy as np
import pandas as pd  # type: ignore
import pytest
from numpy.linalg import LinAlgError
from pydantic import ValidationError

from electricity_sales_analysis import (
    FAILED_FIT_AIC,
    ArmaFitError,
    ArmaGridSearch,
    ArmaModel,
)


@pytest.fixture(scope="module")
def ar1() -> pd.Series:
    rng = np.random.default_rng(11)
    shocks = rng.normal(scale=100, size=150)
    values = np.zeros(150)
    for i in range(1, 150):
        values[i] = 0.7 * values[i - 1] + shocks[i]
    index = pd.date_range("2010-01-01", periods=150, freq="MS")
    return pd.Series(values, index=index, name="rough")


@pytest.fixture
def small_search() -> ArmaGridSearch:
    return ArmaGridSearch(p_values=(0, 1, 2), q_values=(0, 1))


def test_default_grid_size() -> None:
    assert len(ArmaGridSearch().orders) == 36


@pytest.mark.parametrize(
    "kwargs",
    [{"p_values": ()}, {"q_values": (-1, 0)}, {"d_values": ()}],
    ids=["empty_p", "negative_q", "empty_d"],
)
def test_invalid_grid_raises(kwargs) -> None:
    with pytest.raises(ValidationError):
        ArmaGridSearch(**kwargs)


def test_search_selects_minimum_aic(ar1: pd.Series, small_search: ArmaGridSearch) -> None:
    result = small_search.run(ar1)

    assert len(result.grid) == 6
    assert list(result.grid.columns) == ["p", "d", "q", "aic", "converged", "error"]
    assert result.failures.empty
    assert result.best.aic == pytest.approx(result.grid["aic"].min())
    assert result.best_order[0] >= 1

    table = result.aic_table()
    assert table.shape == (3, 2)
    assert table.loc[0, 0] == pytest.approx(
        result.grid.query("p == 0 and q == 0")["aic"].item()
    )


def test_failed_fits_are_recorded(
    monkeypatch: pytest.MonkeyPatch, ar1: pd.Series, small_search: ArmaGridSearch
) -> None:
    original = ArmaModel.fit.__func__  # type: ignore

    def flaky(cls, series, order):
        if order == (1, 0, 0):
            raise LinAlgError("Schur decomposition solver error")
        if order == (2, 0, 1):
            raise ValueError("non-invertible starting MA parameters")
        return original(cls, series, order)

    monkeypatch.setattr(ArmaModel, "fit", classmethod(flaky))
    result = small_search.run(ar1)

    failed = result.failures.set_index(["p", "q"])
    assert sorted(failed.index) == [(1, 0), (2, 1)]
    assert (failed["aic"] == FAILED_FIT_AIC).all()
    assert not failed["converged"].any()
    assert "Schur" in failed.loc[(1, 0), "error"]
    assert result.best_order not in [(1, 0, 0), (2, 0, 1)]

    table = result.aic_table()
    assert np.isnan(table.loc[1, 0])
    assert np.isnan(table.loc[2, 1])


def test_all_fits_fail(
    monkeypatch: pytest.MonkeyPatch, ar1: pd.Series, small_search: ArmaGridSearch
) -> None:
    def broken(cls, series, order):
        raise ValueError("bad data")

    monkeypatch.setattr(ArmaModel, "fit", classmethod(broken))
    with pytest.raises(ArmaFitError, match="All 6 ARMA fits failed"):
        small_search.run(ar1)


def test_model_properties(ar1: pd.Series) -> None:
    model = ArmaModel.fit(ar1, (1, 0, 0))
    assert model.is_stationary
    assert model.is_invertible
    assert 0.5 < model.params["ar.L1"] < 0.9
    assert model.sigma2 > 0
    assert len(model.residuals) == len(ar1)
    assert model.bic > model.aic


def test_forecast(ar1: pd.Series) -> None:
    forecast = ArmaModel.fit(ar1, (1, 0, 1)).forecast(12, alpha=0.05)
    assert list(forecast.columns) == ["mean", "mean_se", "lower", "upper"]
    assert len(forecast) == 12
    assert forecast.index[0] == pd.Timestamp("2022-07-01")
    assert (forecast["lower"] < forecast["mean"]).all()
    assert (forecast["mean"] < forecast["upper"]).all()
    assert forecast["mean_se"].is_monotonic_increasing


def test_forecast_requires_steps(ar1: pd.Series) -> None:
    with pytest.raises(ValueError):
        ArmaModel.fit(ar1, (0, 0, 0)).forecast(0)


def test_white_noise_spectrum_is_flat(ar1: pd.Series) -> None:
    model = ArmaModel.fit(ar1, (0, 0, 0))
    density = model.spectral_density(np.linspace(0, 0.5, 7))
    assert np.allclose(density, model.sigma2)


def test_ar_spectrum_peaks_at_zero(ar1: pd.Series) -> None:
    model = ArmaModel.fit(ar1, (1, 0, 0))
    density = model.spectral_density([0.0, 0.25, 0.5])
    assert density[0] > density[1] > density[2]
