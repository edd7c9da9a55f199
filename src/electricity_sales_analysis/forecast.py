import logging
from dataclasses import dataclass
from typing import Self

import numpy as np
import pandas as pd  # type: ignore

from .arma import ArmaModel
from .decomposition import STLDecomposition
from .trend import PolynomialTrend

logger = logging.getLogger(__name__)


@dataclass
class ComponentForecast:
    """Forecast assembled from separately projected STL components.

    The trend is extrapolated with a polynomial, the seasonal component repeats
    the last observed cycle and the rough is forecast by the selected ARMA
    model. Their sum is the sales forecast; the interval is the ARMA interval
    shifted by the deterministic trend and seasonal parts.

    Attributes:
        frame: DataFrame indexed by future periods with ``trend``, ``seasonal``,
            ``rough``, ``forecast``, ``lower`` and ``upper`` columns.
        trend_model: The polynomial used for the trend.
        alpha: Significance level of the interval.
    """

    frame: pd.DataFrame
    trend_model: PolynomialTrend
    alpha: float = 0.05

    @classmethod
    def build(
        cls,
        decomposition: STLDecomposition,
        arma_model: ArmaModel,
        steps: int,
        trend_degree: int = 2,
        alpha: float = 0.05,
    ) -> Self:
        if steps < 1:
            raise ValueError("steps must be a positive integer")

        trend_model = PolynomialTrend.fit(decomposition.trend, trend_degree)
        trend = trend_model.extrapolate(steps)
        seasonal = repeat_seasonal_cycle(decomposition, steps).set_axis(trend.index)

        rough = arma_model.forecast(steps, alpha=alpha).set_axis(trend.index)
        base = trend + seasonal

        frame = pd.DataFrame(
            {
                "trend": trend,
                "seasonal": seasonal,
                "rough": rough["mean"],
                "forecast": base + rough["mean"],
                "lower": base + rough["lower"],
                "upper": base + rough["upper"],
            }
        )
        logger.info(
            "Forecast %d periods from %s with degree %d trend and ARMA%s",
            steps,
            trend.index[0],
            trend_degree,
            arma_model.order,
        )
        return cls(frame=frame, trend_model=trend_model, alpha=alpha)

    @property
    def forecast(self) -> pd.Series:
        return self.frame["forecast"]


def repeat_seasonal_cycle(decomposition: STLDecomposition, steps: int) -> pd.Series:
    """Continue the seasonal component by repeating its last full cycle.

    The value for each future period is the last observed seasonal value at
    the same position in the cycle, so a forecast starting in March begins
    with the most recent March seasonal effect.

    Examples:
        >>> idx = pd.date_range("2020-01-01", periods=24, freq="MS")
        >>> seasonal = pd.Series(np.tile(np.arange(12.0), 2), index=idx)
        >>> zeros = pd.Series(0.0, index=idx)
        >>> stl = STLDecomposition(seasonal, zeros, seasonal, zeros, period=12)
        >>> repeat_seasonal_cycle(stl, 3).tolist()
        [0.0, 1.0, 2.0]
    """
    cycle = decomposition.seasonal_cycle()
    n = len(decomposition.seasonal)
    positions = (n + np.arange(steps)) % decomposition.period
    return pd.Series(cycle.loc[positions].to_numpy(), name="seasonal")


def forecast_accuracy(actual: pd.Series, predicted: pd.Series) -> pd.Series:
    """Score a forecast against realized values over their common index.

    Returns:
        Series with ``MAE``, ``RMSE``, ``MAPE (%)`` and ``Observations``.

    Raises:
        ValueError: If the two series share no non-null observation.

    Examples:
        >>> actual = pd.Series([100.0, 200.0])
        >>> predicted = pd.Series([110.0, 180.0])
        >>> forecast_accuracy(actual, predicted).round(3).tolist()
        [15.0, 15.811, 10.0, 2.0]
    """
    aligned = pd.concat({"actual": actual, "predicted": predicted}, axis=1).dropna()
    if aligned.empty:
        raise ValueError("Actual and predicted values do not overlap")

    errors = aligned["actual"] - aligned["predicted"]
    nonzero = aligned["actual"] != 0
    mape = (errors[nonzero] / aligned.loc[nonzero, "actual"]).abs().mean() * 100

    return pd.Series(
        {
            "MAE": errors.abs().mean(),
            "RMSE": float(np.sqrt((errors**2).mean())),
            "MAPE (%)": mape,
            "Observations": float(len(aligned)),
        }
    )
