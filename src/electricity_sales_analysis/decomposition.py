import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Self

import numpy as np
import pandas as pd  # type: ignore
from statsmodels.tsa.seasonal import STL  # type: ignore

logger = logging.getLogger(__name__)


@dataclass
class STLDecomposition:
    """Seasonal-Trend decomposition using Loess of a monthly series.

    Splits the observed series into a smooth trend, a seasonal component that
    repeats every ``period`` observations and the rough (remainder) left once
    both are removed. The components are additive, so for every month
    ``trend + seasonal + rough == observed``.

    Attributes:
        observed: The decomposed series.
        trend: Loess trend component.
        seasonal: Seasonal component.
        rough: Remainder component, the input of the ARMA modeling step.
        period: Observations per seasonal cycle.
        robust: Whether robust loess weights were used.

    Examples:
        >>> idx = pd.date_range("2015-01-01", periods=48, freq="MS")
        >>> t = np.arange(48)
        >>> series = pd.Series(100 + t + 10 * np.sin(2 * np.pi * t / 12), index=idx)
        >>> stl = STLDecomposition.from_series(series)
        >>> bool(np.allclose(stl.trend + stl.seasonal + stl.rough, series))
        True
        >>> list(stl.to_frame().columns)
        ['observed', 'trend', 'seasonal', 'rough']
    """

    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    rough: pd.Series
    period: int = 12
    robust: bool = True

    @classmethod
    def from_series(
        cls,
        series: pd.Series,
        period: int = 12,
        robust: bool = True,
        seasonal: int = 13,
    ) -> Self:
        """Decompose ``series`` with statsmodels' STL.

        Args:
            series: Regularly spaced series without missing values.
            period: Observations per seasonal cycle.
            robust: Use robust loess weights, which keeps single unusual
                months in the rough instead of bending trend and seasonal.
            seasonal: Length of the seasonal smoother (odd, at least 7).

        Returns:
            An STLDecomposition holding the fitted components.

        Raises:
            ValueError: If the series has fewer than two full cycles or contains NaN.
        """
        if len(series) < 2 * period:
            msg = f"STL needs at least {2 * period} observations, got {len(series)}"
            raise ValueError(msg)
        if series.isna().any():
            raise ValueError("STL cannot decompose a series with missing values")

        result = STL(series, period=period, seasonal=seasonal, robust=robust).fit()
        logger.debug(
            "STL fitted on %d observations (period=%d, seasonal=%d, robust=%s)",
            len(series),
            period,
            seasonal,
            robust,
        )

        index = series.index
        return cls(
            observed=series,
            trend=pd.Series(np.asarray(result.trend), index=index, name="trend"),
            seasonal=pd.Series(np.asarray(result.seasonal), index=index, name="seasonal"),
            rough=pd.Series(np.asarray(result.resid), index=index, name="rough"),
            period=period,
            robust=robust,
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "observed": self.observed,
                "trend": self.trend,
                "seasonal": self.seasonal,
                "rough": self.rough,
            }
        )

    @cached_property
    def trend_strength(self) -> float:
        """Strength of trend, ``max(0, 1 - var(rough) / var(trend + rough))``."""
        return self._strength(self.trend)

    @cached_property
    def seasonal_strength(self) -> float:
        """Strength of seasonality, ``max(0, 1 - var(rough) / var(seasonal + rough))``."""
        return self._strength(self.seasonal)

    def seasonal_cycle(self) -> pd.Series:
        """Seasonal values of the last complete cycle keyed by cycle position.

        Position ``i`` is the offset from the first observation modulo the
        period, which for monthly data starting in January is the calendar
        month minus one.
        """
        positions = np.arange(len(self.seasonal)) % self.period
        last = self.seasonal.iloc[-self.period :]
        return pd.Series(
            last.to_numpy(), index=positions[-self.period :], name="seasonal"
        ).sort_index()

    def _strength(self, component: pd.Series) -> float:
        denominator = np.var(component + self.rough)
        if denominator == 0:
            return 0.0
        return float(np.clip(1 - np.var(self.rough) / denominator, 0.0, 1.0))
