import warnings
from collections.abc import Iterable
from dataclasses import field
from typing import Annotated

import numpy as np
import pandas as pd  # type: ignore
from numpy.typing import NDArray
from pydantic import Field, PositiveFloat, PositiveInt
from pydantic.dataclasses import dataclass


@dataclass(slots=True)
class HarmonicSeasonality:
    """Harmonic (Fourier series) description of a seasonal pattern.

    Represents a cycle of ``period_length`` observations as a sum of sines and
    cosines at the harmonics ``k / period_length``. Fitting it by least squares
    to the STL seasonal component tells how much of the monthly pattern the
    annual (k=1) and semi-annual (k=2) cycles found in the periodogram
    explain.

    Attributes:
        period_length (int): Observations per cycle, 12 for monthly data with
            a yearly cycle. Must be at least 3.
        harmonics (int | None): Number of harmonics. If None, uses
            period_length // 2, the Nyquist frequency of the cycle.

    Examples:
        >>> model = HarmonicSeasonality(period_length=12, harmonics=2)
        >>> model.get_names()
        ('sin_h1', 'sin_h2', 'cos_h1', 'cos_h2')
        >>> model.compute_features(range(24)).shape
        (24, 4)
        >>> HarmonicSeasonality(period_length=12).harmonics
        6
    """

    period_length: Annotated[int, Field(ge=3)] = 12
    """Number of observations in one complete cycle."""
    harmonics: PositiveInt | None = None
    """Number of harmonics to use. If None, the Nyquist frequency."""

    _base_angular_frequency: PositiveFloat = field(init=False, repr=False)
    _nyquist_frequency: PositiveInt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._nyquist_frequency = self.period_length // 2
        self._base_angular_frequency = 2 * np.pi / self.period_length
        self.harmonics = self.harmonics or self._nyquist_frequency

        if self.harmonics > self._nyquist_frequency:
            msg = (
                f"Using {self.harmonics} harmonics, more than the Nyquist Frequency "
                f"({self._nyquist_frequency}), may result in aliasing."
            )
            warnings.warn(msg, UserWarning)

    @property
    def nyquist_frequency(self) -> PositiveInt:
        return self._nyquist_frequency

    @property
    def base_angular_frequency(self) -> PositiveFloat:
        return self._base_angular_frequency

    def compute_features(self, t: Iterable[int | float]) -> NDArray[np.float64]:
        """Harmonic design matrix, sine columns first then cosine columns.

        Examples:
            >>> model = HarmonicSeasonality(period_length=4, harmonics=1)
            >>> bool(np.allclose(model.compute_features([1]), model.compute_features([5])))
            True
        """
        frequencies = [k * self._base_angular_frequency for k in self._range()]
        angles = np.outer(np.asarray(list(t), dtype=float), frequencies)
        return np.hstack([np.sin(angles), np.cos(angles)])

    def get_names(self) -> tuple[str, ...]:
        return tuple(f"{w}_h{k}" for w in ["sin", "cos"] for k in self._range())

    def fit(self, series: pd.Series) -> pd.DataFrame:
        """Least squares fit of the harmonics to ``series``.

        Time is the position of each observation, so harmonic phases are
        relative to the first observation.

        Returns:
            DataFrame with one row per harmonic: ``harmonic``, ``period``,
            ``amplitude``, ``phase`` (radians), ``variance_share`` (fraction of
            the series variance carried by that harmonic) and
            ``cumulative_share``.

        Examples:
            >>> t = np.arange(48)
            >>> seasonal = pd.Series(3 * np.sin(2 * np.pi * t / 12) + np.cos(2 * np.pi * t / 6))
            >>> table = HarmonicSeasonality(12, harmonics=2).fit(seasonal)
            >>> table["amplitude"].round(6).tolist()
            [3.0, 1.0]
            >>> round(float(table["cumulative_share"].iloc[-1]), 6)
            1.0
        """
        values = series.to_numpy(dtype=float)
        k = self.harmonics or self._nyquist_frequency
        harmonic = np.arange(1, k + 1)
        nyquist = 2 * harmonic == self.period_length

        # sin(pi t) vanishes, so the Nyquist sine column is left out of the fit
        keep = np.concatenate([~nyquist, np.ones(k, dtype=bool)])
        features = self.compute_features(np.arange(len(values)))[:, keep]
        design = np.column_stack([np.ones(len(values)), features])
        solution, *_ = np.linalg.lstsq(design, values, rcond=None)

        coefficients = np.zeros(2 * k)
        coefficients[keep] = solution[1:]
        sin_coef, cos_coef = coefficients[:k], coefficients[k:]
        amplitude = np.hypot(sin_coef, cos_coef)
        variance = values.var()
        # cos(pi t) has variance amp**2, every other harmonic amp**2 / 2
        component_variance = np.where(nyquist, amplitude**2, amplitude**2 / 2)
        share = component_variance / variance if variance > 0 else np.zeros(k)

        return pd.DataFrame(
            {
                "harmonic": harmonic,
                "period": self.period_length / harmonic,
                "amplitude": amplitude,
                "phase": np.arctan2(cos_coef, sin_coef),
                "variance_share": share,
                "cumulative_share": np.cumsum(share),
            }
        )

    def _range(self) -> range:
        return range(1, (self.harmonics or self._nyquist_frequency) + 1)
