"""Hypothesis tests used to validate the decomposition and the ARMA fit.

ADF and KPSS check stationarity from opposite null hypotheses (unit root for
ADF, stationarity for KPSS); Ljung-Box checks that model residuals carry no
remaining serial correlation.
"""

import logging
import warnings
from collections.abc import Iterable
from typing import Literal

import pandas as pd  # type: ignore
from statsmodels.stats.diagnostic import acorr_ljungbox  # type: ignore
from statsmodels.tools.sm_exceptions import InterpolationWarning  # type: ignore
from statsmodels.tsa.stattools import adfuller, kpss  # type: ignore

from .utils import apply_differences, ensure_iterable

logger = logging.getLogger(__name__)


def adf_test(series: pd.Series, *diffs: int) -> pd.Series:
    """Perform the Augmented Dickey-Fuller test for a unit root.

    Args:
        series: Series to test.
        *diffs: Differencing lags applied sequentially before testing.

    Returns:
        pd.Series indexed by ``Test Statistic``, ``p-value``, ``Lags Used``,
        ``Observations`` and ``Critical Value (1%)``, ``(5%)``, ``(10%)``.

    Notes:
        The null hypothesis is that the series has a unit root. A small
        p-value suggests the series is stationary.
    """
    results = adfuller(apply_differences(series, *diffs), autolag="AIC")

    critical_values = results[4]
    data = (*results[0:4], *critical_values.values())
    index = [
        "Test Statistic",
        "p-value",
        "Lags Used",
        "Observations",
        *("Critical Value (%s)" % key for key in critical_values),
    ]
    return pd.Series(data, index=index, dtype=float, name="ADF")


def kpss_test(
    series: pd.Series, *diffs: int, regression: Literal["c", "ct"] = "c"
) -> pd.Series:
    """Perform the Kwiatkowski-Phillips-Schmidt-Shin stationarity test.

    statsmodels only tabulates p-values between 0.01 and 0.1; outside that
    range the boundary value is reported and the interpolation warning is
    logged instead of raised.

    Args:
        series: Series to test.
        *diffs: Differencing lags applied sequentially before testing.
        regression: "c" tests level stationarity, "ct" trend stationarity.

    Returns:
        pd.Series indexed like :func:`adf_test`, with the 2.5% critical value
        included.

    Notes:
        The null hypothesis is stationarity, so a small p-value is evidence
        against it, the opposite reading from ADF.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", InterpolationWarning)
        statistic, p_value, lags, critical_values = kpss(
            apply_differences(series, *diffs), regression=regression, nlags="auto"
        )
    for warning in caught:
        logger.debug("KPSS: %s", warning.message)

    data = (statistic, p_value, lags, *critical_values.values())
    index = [
        "Test Statistic",
        "p-value",
        "Lags Used",
        *("Critical Value (%s)" % key for key in critical_values),
    ]
    return pd.Series(data, index=index, dtype=float, name="KPSS")


def ljung_box_test(
    residuals: pd.Series, lags: int | Iterable[int] = (6, 12, 24), model_df: int = 0
) -> pd.DataFrame:
    """Test residuals for autocorrelation up to each of ``lags``.

    Lags that are not larger than ``model_df`` or not smaller than the number
    of observations are skipped, since the statistic is undefined there.

    Args:
        residuals: Model residuals.
        lags: Lag or lags at which to evaluate the cumulative statistic.
        model_df: Degrees of freedom consumed by the model, ``p + q`` for ARMA.

    Returns:
        DataFrame indexed by lag with ``lb_stat`` and ``lb_pvalue`` columns.

    Raises:
        ValueError: If no requested lag can be evaluated.
    """
    residuals = residuals.dropna()
    requested = ensure_iterable(lags)
    valid = [lag for lag in requested if model_df < lag < len(residuals)]
    skipped = sorted(set(requested) - set(valid))
    if skipped:
        logger.debug("Ljung-Box lags %s skipped for %d residuals", skipped, len(residuals))
    if not valid:
        raise ValueError(f"No valid Ljung-Box lag among {list(requested)}")

    result = acorr_ljungbox(residuals, lags=valid, model_df=model_df)
    return result.rename_axis("lag")


def stationarity_summary(series: pd.Series, *diffs: int, alpha: float = 0.05) -> pd.Series:
    """Combine ADF and KPSS into a single verdict.

    - ADF rejects, KPSS does not: "stationary".
    - KPSS rejects, ADF does not: "non-stationary".
    - Neither rejects: "trend-stationary".
    - Both reject: "difference-stationary".
    """
    adf = adf_test(series, *diffs)
    kpss_result = kpss_test(series, *diffs)

    adf_stationary = adf["p-value"] < alpha
    kpss_stationary = kpss_result["p-value"] >= alpha

    if adf_stationary and kpss_stationary:
        verdict = "stationary"
    elif not adf_stationary and not kpss_stationary:
        verdict = "non-stationary"
    elif kpss_stationary:
        verdict = "trend-stationary"
    else:
        verdict = "difference-stationary"

    logger.info(
        "Stationarity: ADF p=%.3f, KPSS p=%.3f -> %s",
        adf["p-value"],
        kpss_result["p-value"],
        verdict,
    )
    return pd.Series(
        {
            "ADF p-value": adf["p-value"],
            "KPSS p-value": kpss_result["p-value"],
            "verdict": verdict,
        },
        name="stationarity",
    )
