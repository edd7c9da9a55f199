import numpy as np
import pandas as pd  # type: ignore
import pytest

from electricity_sales_analysis import (
    ArmaModel,
    ComponentForecast,
    STLDecomposition,
    forecast_accuracy,
)
from electricity_sales_analysis.forecast import repeat_seasonal_cycle


@pytest.fixture(scope="module")
def stl(monthly_sales: pd.Series) -> STLDecomposition:
    return STLDecomposition.from_series(monthly_sales)


@pytest.fixture(scope="module")
def forecast(stl: STLDecomposition) -> ComponentForecast:
    model = ArmaModel.fit(stl.rough, (1, 0, 0))
    return ComponentForecast.build(stl, model, steps=24, trend_degree=2, alpha=0.05)


def test_frame_layout(forecast: ComponentForecast) -> None:
    frame = forecast.frame
    assert list(frame.columns) == ["trend", "seasonal", "rough", "forecast", "lower", "upper"]
    assert len(frame) == 24
    assert frame.index[0] == pd.Timestamp("2023-03-01")
    assert frame.index[-1] == pd.Timestamp("2025-02-01")
    assert not frame.isna().any().any()


def test_components_add_up(forecast: ComponentForecast) -> None:
    frame = forecast.frame
    assert np.allclose(frame["trend"] + frame["seasonal"] + frame["rough"], frame["forecast"])
    assert (frame["lower"] < frame["forecast"]).all()
    assert (frame["forecast"] < frame["upper"]).all()
    assert forecast.forecast.equals(frame["forecast"])


def test_seasonal_repeats_last_cycle(forecast: ComponentForecast, stl: STLDecomposition) -> None:
    seasonal = forecast.frame["seasonal"]
    assert seasonal["2023-03-01"] == stl.seasonal["2022-03-01"]
    assert seasonal["2024-02-01"] == stl.seasonal["2023-02-01"]
    assert np.allclose(seasonal.iloc[:12].to_numpy(), seasonal.iloc[12:].to_numpy())


def test_trend_model(forecast: ComponentForecast, stl: STLDecomposition) -> None:
    assert forecast.trend_model.degree == 2
    assert forecast.trend_model.series.equals(stl.trend)


def test_repeat_seasonal_cycle_wraps(stl: STLDecomposition) -> None:
    repeated = repeat_seasonal_cycle(stl, 13)
    assert len(repeated) == 13
    assert repeated.iloc[0] == repeated.iloc[12]


def test_build_requires_steps(stl: STLDecomposition) -> None:
    model = ArmaModel.fit(stl.rough, (0, 0, 0))
    with pytest.raises(ValueError):
        ComponentForecast.build(stl, model, steps=0)


def test_forecast_accuracy_perfect() -> None:
    actual = pd.Series([1.0, 2.0, 3.0])
    scores = forecast_accuracy(actual, actual.copy())
    assert scores["MAE"] == 0
    assert scores["RMSE"] == 0
    assert scores["MAPE (%)"] == 0
    assert scores["Observations"] == 3


def test_forecast_accuracy_aligns_on_index() -> None:
    idx = pd.date_range("2023-01-01", periods=4, freq="MS")
    actual = pd.Series([100.0, 100.0, np.nan, 100.0], index=idx)
    predicted = pd.Series([90.0, 110.0], index=idx[1:3])
    scores = forecast_accuracy(actual, predicted)
    assert scores["Observations"] == 1
    assert scores["MAE"] == pytest.approx(10.0)


def test_forecast_accuracy_no_overlap() -> None:
    with pytest.raises(ValueError, match="do not overlap"):
        forecast_accuracy(pd.Series([1.0], index=[0]), pd.Series([1.0], index=[1]))
