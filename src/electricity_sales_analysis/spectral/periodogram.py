import math
from dataclasses import dataclass
from fractions import Fraction
from functools import cached_property
from typing import Any, Self

import numpy as np
import pandas as pd  # type: ignore
from numpy.typing import NDArray

from electricity_sales_analysis.shared.interfaces import Detrend, SpectralAnalysis
from electricity_sales_analysis.utils import apply_differences


@dataclass
class Periodogram(SpectralAnalysis):
    """Raw periodogram of a monthly series.

    Ordinates are ``|X(f)|^2 / n`` at the Fourier frequencies ``k / n``
    (cycles per observation), so a white noise series with variance
    ``sigma2`` has ordinates averaging ``sigma2``. For monthly sales the
    annual cycle sits at frequency 1/12 and the semi-annual one at 1/6.

    Attributes:
        power: Periodogram ordinates.
        frequencies: Fourier frequencies matching ``power``.
        dominant_freq: Frequency of the largest ordinate.
        n_obs: Number of observations transformed.
    """

    power: NDArray[np.floating[Any]]
    frequencies: NDArray[np.floating[Any]]
    dominant_freq: float
    n_obs: int

    @classmethod
    def from_series(cls, series: pd.Series, detrend: Detrend = "linear") -> Self:
        """Compute the periodogram of ``series`` after optional detrending.

        Args:
            series: Time series data to analyze.
            detrend: Detrending method to apply first:
                - "linear": Remove a least squares linear trend.
                - "mean": Remove the sample mean.
                - Iterable[int]: Apply differencing at specified lags.
                - None: No detrending.

        Examples:
            >>> import pandas as pd
            >>> import numpy as np
            >>> months = np.arange(120)
            >>> annual = pd.Series(np.sin(2 * np.pi * months / 12))
            >>> pgram = Periodogram.from_series(annual)
            >>> round(pgram.dominant_period, 6)
            12.0
            >>> semiannual = annual + 2 * np.cos(2 * np.pi * months / 6)
            >>> round(Periodogram.from_series(semiannual).dominant_period, 6)
            6.0
        """
        values: NDArray[np.floating[Any]]
        if detrend is None:
            values = series.to_numpy(dtype=float)
        elif detrend == "linear":
            x = np.arange(len(series))
            values = series.to_numpy(dtype=float)
            values = values - np.polyval(np.polyfit(x, values, 1), x)
        elif detrend == "mean":
            values = series.to_numpy(dtype=float) - series.mean()
        elif isinstance(detrend, str):
            raise ValueError(f"Unknown detrend method {detrend!r}")
        else:
            values = apply_differences(series, *detrend).to_numpy(dtype=float)

        n_obs = len(values)
        power = np.abs(np.fft.rfft(values)) ** 2 / n_obs
        frequencies = np.fft.rfftfreq(n_obs)
        dominant_freq = float(frequencies[np.argmax(power)])

        return cls(power, frequencies, dominant_freq, n_obs)

    @cached_property
    def periods(self) -> NDArray[np.floating[Any]]:
        """Periods (1/frequency) for each ordinate, 0 for the DC component.

        Examples:
            >>> pgram = Periodogram.from_series(pd.Series(np.arange(24.0)), detrend=None)
            >>> float(pgram.periods[0]), round(float(pgram.periods[2]), 6)
            (0.0, 12.0)
        """
        period = 1 / np.where(self.frequencies == 0, 1, self.frequencies)
        return np.where(self.frequencies == 0, 0, period)

    @cached_property
    def dominant_period(self) -> float:
        """Period of the largest ordinate, inf when the DC component dominates.

        Examples:
            >>> Periodogram.from_series(pd.Series([5.0] * 36), detrend=None).dominant_period
            inf
        """
        if self.dominant_freq > 0:
            return float(1.0 / self.dominant_freq)
        return float("inf")

    @cached_property
    def max_power(self) -> np.floating:
        return self.power.max()

    @cached_property
    def peak(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "frequency": [self.dominant_freq],
                "period": [self.dominant_period],
                "power": [self.max_power],
            }
        )

    def get_spectrum(self, max_freq: float = 0.5) -> pd.DataFrame:
        """Get the ordinates with frequency up to ``max_freq``.

        Examples:
            >>> pgram = Periodogram.from_series(pd.Series(np.random.default_rng(0).normal(size=60)))
            >>> spectrum = pgram.get_spectrum(max_freq=0.2)
            >>> list(spectrum.columns)
            ['frequency', 'period', 'power']
            >>> bool(spectrum["frequency"].max() <= 0.2)
            True
        """
        keep = self.frequencies <= max_freq
        return pd.DataFrame(
            {
                "frequency": self.frequencies[keep],
                "period": self.periods[keep],
                "power": self.power[keep],
            }
        )

    def get_peaks(self, max_freq: float = 0.5, threshold: float = 0.5) -> pd.DataFrame:
        """Get ordinates above ``threshold`` times the maximum power, largest first."""
        data = self.get_spectrum(max_freq)
        peaks = data[data["power"] > self.max_power * threshold]
        return peaks.sort_values("power", ascending=False, ignore_index=True)

    def power_at(self, period: float) -> float:
        """Ordinate at the Fourier frequency closest to ``1 / period``."""
        idx = int(np.argmin(np.abs(self.frequencies - 1 / period)))
        return float(self.power[idx])

    def fisher_g_test(self) -> tuple[float, float]:
        """Fisher's exact test for the largest periodogram ordinate.

        The DC and Nyquist ordinates are left out. Under a Gaussian white noise
        null ``g = max(I) / sum(I)`` over the remaining ``m`` ordinates has

            P(G > g) = sum_{j=1}^{floor(1/g)} (-1)^(j-1) C(m, j) (1 - j g)^(m-1)

        which is summed in exact rational arithmetic because the alternating
        terms cancel catastrophically in floating point.

        Returns:
            Tuple ``(g, p_value)``.

        Examples:
            >>> months = np.arange(120)
            >>> noise = np.random.default_rng(1).normal(scale=0.5, size=120)
            >>> cycle = pd.Series(np.sin(2 * np.pi * months / 12) + noise)
            >>> g, p_value = Periodogram.from_series(cycle).fisher_g_test()
            >>> bool(p_value < 0.01)
            True
        """
        stop = len(self.power) - 1 if self.n_obs % 2 == 0 else len(self.power)
        ordinates = self.power[1:stop]
        m = len(ordinates)
        total = float(ordinates.sum())
        if m < 2 or total == 0:
            return float("nan"), float("nan")

        g = float(ordinates.max()) / total
        g_exact = Fraction(g)
        p_value = sum(
            (-1) ** (j - 1) * math.comb(m, j) * (1 - j * g_exact) ** (m - 1)
            for j in range(1, math.floor(1 / g) + 1)
            if j * g_exact < 1
        )
        return g, float(min(max(p_value, Fraction(0)), Fraction(1)))
