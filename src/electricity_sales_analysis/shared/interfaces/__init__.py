from collections.abc import Iterable
from typing import Any, Literal, Protocol, Self

import numpy as np
import pandas as pd  # type: ignore
from numpy.typing import NDArray

Detrend = Literal["linear", "mean"] | Iterable[int] | None


class SpectralAnalysis(Protocol):  # pragma: no cover
    """Protocol defining the interface for spectral analysis of monthly series.

    Implementations estimate the power carried by each Fourier frequency of a
    series and expose helpers to locate the cycles (annual, semi-annual, ...)
    that dominate it. Frequencies are expressed in cycles per observation, so
    for monthly data a frequency of 1/12 is the annual cycle.
    """

    power: NDArray[np.floating[Any]]
    frequencies: NDArray[np.floating[Any]]
    dominant_freq: float

    @classmethod
    def from_series(cls, series: pd.Series, detrend: Detrend = "linear") -> Self:
        """Create a spectral analysis instance from a pandas Series.

        Args:
            series: Time series data to analyze.
            detrend: Detrending method to apply before analysis:
                - "linear": Remove a least squares linear trend.
                - "mean": Remove the sample mean only.
                - Iterable[int]: Apply differencing at specified lags.
                - None: No detrending.

        Returns:
            A spectral analysis instance containing the results.
        """
        ...

    @property
    def periods(self) -> NDArray[np.floating[Any]]:
        """Periods (1/frequency) for every frequency, 0 for the DC component."""
        ...

    @property
    def dominant_period(self) -> float:
        """Period of the largest spectral ordinate, inf for a constant signal."""
        ...

    @property
    def max_power(self) -> np.floating:
        """Largest spectral ordinate."""
        ...

    @property
    def peak(self) -> pd.DataFrame:
        """Single row DataFrame describing the dominant ordinate."""
        ...

    def get_spectrum(self, max_freq: float = 0.5) -> pd.DataFrame:
        """Get the spectrum up to a maximum frequency.

        Args:
            max_freq: Maximum frequency to include.

        Returns:
            DataFrame with frequency, period, and power columns.
        """
        ...

    def get_peaks(self, max_freq: float = 0.5, threshold: float = 0.5) -> pd.DataFrame:
        """Get ordinates above a fraction of the maximum power.

        Args:
            max_freq: Maximum frequency to include.
            threshold: Threshold as a fraction of the maximum power.

        Returns:
            DataFrame with frequency, period, and power of the peaks, largest first.
        """
        ...

    def fisher_g_test(self) -> tuple[float, float]:
        """Test whether the largest ordinate is a significant periodic component.

        Returns:
            Tuple with the g statistic and its p-value under a white noise null.
        """
        ...
