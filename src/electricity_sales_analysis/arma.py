import itertools
import logging
import warnings
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import Annotated, Self

import numpy as np
import pandas as pd  # type: ignore
from numpy.linalg import LinAlgError
from numpy.typing import NDArray
from pydantic import Field, NonNegativeInt
from pydantic.dataclasses import dataclass as validated_dataclass
from statsmodels.tools.sm_exceptions import ConvergenceWarning  # type: ignore
from statsmodels.tsa.arima.model import ARIMA, ARIMAResults  # type: ignore
from statsmodels.tsa.arima_process import arma_periodogram  # type: ignore

from .exceptions import ArmaFitError

logger = logging.getLogger(__name__)

Order = tuple[int, int, int]

FAILED_FIT_AIC = -1.0
"""AIC recorded in the search grid for orders whose fit raised an error."""

FIT_ERRORS = (ValueError, LinAlgError, IndexError)


@dataclass
class ArmaModel:
    """A fitted ARMA (or ARIMA) model of the rough component.

    Attributes:
        order: The (p, d, q) order of the model.
        result: The statsmodels results object.
    """

    order: Order
    result: ARIMAResults = field(repr=False)

    @classmethod
    def fit(cls, series: pd.Series, order: Order) -> Self:
        """Fit an ARIMA model of ``order`` to ``series``.

        A constant is estimated for undifferenced models only, since statsmodels
        rejects trend terms of lower order than ``d``.
        """
        trend = "c" if order[1] == 0 else "n"
        result = ARIMA(series, order=order, trend=trend).fit()
        return cls(order, result)

    @property
    def aic(self) -> float:
        return float(self.result.aic)

    @property
    def bic(self) -> float:
        return float(self.result.bic)

    @property
    def params(self) -> pd.Series:
        return pd.Series(self.result.params, index=self.result.model.param_names)

    @property
    def sigma2(self) -> float:
        return float(self.params["sigma2"])

    @property
    def residuals(self) -> pd.Series:
        return pd.Series(self.result.resid, name="residuals")

    @cached_property
    def is_stationary(self) -> bool:
        """True when every autoregressive root lies outside the unit circle."""
        return bool(np.all(np.abs(self.result.arroots) > 1))

    @cached_property
    def is_invertible(self) -> bool:
        """True when every moving-average root lies outside the unit circle."""
        return bool(np.all(np.abs(self.result.maroots) > 1))

    def forecast(self, steps: int, alpha: float = 0.05) -> pd.DataFrame:
        """Forecast the next ``steps`` values with a ``1 - alpha`` interval.

        Returns:
            DataFrame with ``mean``, ``mean_se``, ``lower`` and ``upper`` columns,
            indexed by the following timestamps when the fitted series had a
            DatetimeIndex with a frequency.
        """
        if steps < 1:
            raise ValueError("steps must be a positive integer")

        frame = self.result.get_forecast(steps).summary_frame(alpha=alpha)
        return frame.rename(
            columns={"mean_ci_lower": "lower", "mean_ci_upper": "upper"}
        )[["mean", "mean_se", "lower", "upper"]]

    def spectral_density(self, frequencies: Sequence[float] | NDArray[np.floating]) -> NDArray[np.floating]:
        """ARMA implied spectrum at ``frequencies`` given in cycles per observation.

        Scaled as ``sigma2 * |theta(e^-iw)|^2 / |phi(e^-iw)|^2``, the expected
        value of the periodogram ordinates computed by
        :class:`~electricity_sales_analysis.spectral.Periodogram`, so both can
        be drawn on the same axis.
        """
        omega = 2 * np.pi * np.asarray(frequencies, dtype=float)
        _, density = arma_periodogram(
            self.result.polynomial_ar, self.result.polynomial_ma, worN=omega
        )
        return np.asarray(density) * np.sqrt(2 * np.pi) * self.sigma2


@dataclass
class ArmaSearchResult:
    """Outcome of an ARMA grid search.

    Attributes:
        grid: One row per order tried with ``p``, ``d``, ``q``, ``aic``,
            ``converged`` and ``error`` columns. Failed fits carry
            ``aic == FAILED_FIT_AIC`` and a non-empty ``error``.
        best: The successful model with the smallest AIC.
    """

    grid: pd.DataFrame
    best: ArmaModel

    @property
    def best_order(self) -> Order:
        return self.best.order

    @property
    def failures(self) -> pd.DataFrame:
        return self.grid[self.grid["error"] != ""]

    def aic_table(self, d: int | None = None) -> pd.DataFrame:
        """AIC pivoted to a p x q table for a single differencing order.

        Failed fits appear as NaN rather than the sentinel.
        """
        d = self.best_order[1] if d is None else d
        grid = self.grid[self.grid["d"] == d]
        aic = grid["aic"].where(grid["error"] == "")
        return grid.assign(aic=aic).pivot(index="p", columns="q", values="aic")


@validated_dataclass(frozen=True)
class ArmaGridSearch:
    """Brute-force search of ARIMA(p, d, q) orders minimizing AIC.

    Every combination of the candidate orders is fitted. Fits that raise are
    logged, recorded with ``aic = -1`` and excluded from selection, so a
    handful of numerically awkward orders cannot abort the search.

    Examples:
        >>> search = ArmaGridSearch()
        >>> search.orders[:3]
        [(0, 0, 0), (0, 0, 1), (0, 0, 2)]
        >>> len(search.orders)
        36
        >>> len(ArmaGridSearch(p_values=(0, 1), q_values=(0, 1)).orders)
        4
    """

    p_values: Annotated[tuple[NonNegativeInt, ...], Field(min_length=1)] = tuple(range(6))
    d_values: Annotated[tuple[NonNegativeInt, ...], Field(min_length=1)] = (0,)
    q_values: Annotated[tuple[NonNegativeInt, ...], Field(min_length=1)] = tuple(range(6))

    @property
    def orders(self) -> list[Order]:
        return list(itertools.product(self.p_values, self.d_values, self.q_values))

    def run(self, series: pd.Series) -> ArmaSearchResult:
        """Fit every order to ``series`` and keep the lowest AIC.

        Raises:
            ArmaFitError: If no order could be fitted.
        """
        orders = self.orders
        logger.info("Searching %d ARMA orders on %d observations", len(orders), len(series))

        rows = []
        best: ArmaModel | None = None
        for order in orders:
            row, model = self._try_fit(series, order)
            rows.append(row)
            if model is not None and (best is None or model.aic < best.aic):
                best = model

        grid = pd.DataFrame(rows, columns=["p", "d", "q", "aic", "converged", "error"])
        if best is None:
            raise ArmaFitError(f"All {len(orders)} ARMA fits failed")

        failed = int((grid["error"] != "").sum())
        if failed:
            logger.warning("%d of %d ARMA fits failed", failed, len(orders))
        logger.info("Selected ARMA%s with AIC %.2f", best.order, best.aic)
        return ArmaSearchResult(grid=grid, best=best)

    @staticmethod
    def _try_fit(series: pd.Series, order: Order) -> tuple[dict, ArmaModel | None]:
        p, d, q = order
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                model = ArmaModel.fit(series, order)
            except FIT_ERRORS as exc:
                logger.warning("ARMA%s fit failed: %s", order, exc)
                row = {
                    "p": p,
                    "d": d,
                    "q": q,
                    "aic": FAILED_FIT_AIC,
                    "converged": False,
                    "error": str(exc) or type(exc).__name__,
                }
                return row, None

        converged = not any(issubclass(w.category, ConvergenceWarning) for w in caught)
        if not converged:
            logger.debug("ARMA%s did not converge", order)
        logger.debug("ARMA%s AIC=%.2f", order, model.aic)

        row = {"p": p, "d": d, "q": q, "aic": model.aic, "converged": converged, "error": ""}
        return row, model
