import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Self

import numpy as np
import pandas as pd  # type: ignore
from numpy.typing import NDArray

from .utils import ensure_iterable, future_index

logger = logging.getLogger(__name__)


@dataclass
class PolynomialTrend:
    """Least squares polynomial fitted over the integer time index of a series.

    Used to carry the STL trend past the end of the sample. Time is measured
    in observations from the first point, so coefficients are comparable
    between series that share a start date.

    Examples:
        >>> idx = pd.date_range("2020-01-01", periods=24, freq="MS")
        >>> series = pd.Series(2.0 + 0.5 * np.arange(24), index=idx)
        >>> trend = PolynomialTrend.fit(series, degree=1)
        >>> bool(np.allclose(trend.coefficients, [0.5, 2.0]))
        True
        >>> trend.extrapolate(2).round(6).tolist()
        [14.0, 14.5]
    """

    series: pd.Series
    degree: int
    coefficients: NDArray[np.floating] = field(repr=False)

    @classmethod
    def fit(cls, series: pd.Series, degree: int = 2) -> Self:
        """Fit a polynomial of ``degree`` to ``series``.

        Raises:
            TypeError: If ``degree`` is not an integer.
            ValueError: If ``degree`` is negative or not smaller than the series length.
        """
        (degree,) = ensure_iterable(degree)
        if degree < 0:
            raise ValueError("Polynomial degree must be non-negative")
        if degree >= len(series):
            msg = f"Degree {degree} needs more than {len(series)} observations"
            raise ValueError(msg)

        x = np.arange(len(series))
        coefficients = np.polyfit(x, series.to_numpy(dtype=float), deg=degree)
        return cls(series, degree, coefficients)

    @property
    def fitted(self) -> pd.Series:
        x = np.arange(len(self.series))
        return pd.Series(
            np.polyval(self.coefficients, x), index=self.series.index, name=f"pf_{self.degree}"
        )

    @property
    def rss(self) -> float:
        return float(np.sum((self.series.to_numpy() - self.fitted.to_numpy()) ** 2))

    @property
    def r_squared(self) -> float:
        centered = self.series.to_numpy() - self.series.mean()
        tss = float(np.sum(centered**2))
        if tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1 - self.rss / tss

    @property
    def aic(self) -> float:
        """Gaussian AIC, ``n * log(RSS / n) + 2 * (degree + 1)``."""
        n = len(self.series)
        rss = max(self.rss, np.finfo(float).tiny)
        return float(n * np.log(rss / n) + 2 * (self.degree + 1))

    def extrapolate(self, steps: int) -> pd.Series:
        """Evaluate the polynomial on the ``steps`` observations after the sample.

        The result is indexed by the following timestamps when the series has a
        regular DatetimeIndex, and by integer positions otherwise.
        """
        if steps < 1:
            raise ValueError("steps must be a positive integer")

        x = np.arange(len(self.series), len(self.series) + steps)
        index: pd.Index
        if isinstance(self.series.index, pd.DatetimeIndex):
            index = future_index(self.series.index, steps)
        else:
            index = pd.RangeIndex(x[0], x[-1] + 1)
        return pd.Series(np.polyval(self.coefficients, x), index=index, name="trend")


def compare_polynomial_degrees(series: pd.Series, degrees: int | Iterable[int]) -> pd.DataFrame:
    """Fit several polynomial degrees and tabulate their goodness of fit.

    Examples:
        >>> series = pd.Series((np.arange(30) - 10.0) ** 2)
        >>> table = compare_polynomial_degrees(series, [1, 2])
        >>> list(table.columns)
        ['degree', 'rss', 'r_squared', 'aic']
        >>> int(table.loc[table["aic"].idxmin(), "degree"])
        2
    """
    rows = []
    for degree in ensure_iterable(degrees):
        trend = PolynomialTrend.fit(series, degree)
        rows.append(
            {
                "degree": degree,
                "rss": trend.rss,
                "r_squared": trend.r_squared,
                "aic": trend.aic,
            }
        )
        logger.debug("Degree %d polynomial: R2=%.4f AIC=%.2f", degree, trend.r_squared, trend.aic)
    return pd.DataFrame(rows)
