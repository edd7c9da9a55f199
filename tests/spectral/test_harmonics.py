import numpy as np
import pandas as pd  # type: ignore
import pytest
from pydantic import ValidationError

from electricity_sales_analysis.spectral import HarmonicSeasonality


@pytest.mark.parametrize(
    "period_length, harmonics, expected",
    [(12, None, 6), (12, 2, 2), (7, None, 3)],
    ids=["monthly_default", "monthly_two", "odd_period"],
)
def test_harmonics_default(period_length: int, harmonics: int | None, expected: int) -> None:
    model = HarmonicSeasonality(period_length=period_length, harmonics=harmonics)
    assert model.harmonics == expected
    assert model.nyquist_frequency == period_length // 2
    assert np.isclose(model.base_angular_frequency, 2 * np.pi / period_length)
    assert len(model.get_names()) == 2 * expected


def test_features_are_periodic() -> None:
    model = HarmonicSeasonality(period_length=12, harmonics=3)
    features = model.compute_features(range(36))
    assert features.shape == (36, 6)
    assert np.allclose(features[:12], features[12:24])
    assert np.allclose(features[:12], features[24:])


def test_too_many_harmonics_warns() -> None:
    with pytest.warns(UserWarning, match="aliasing"):
        HarmonicSeasonality(period_length=12, harmonics=7)


@pytest.mark.parametrize("period_length", [0, 2])
def test_short_period_raises(period_length: int) -> None:
    with pytest.raises(ValidationError):
        HarmonicSeasonality(period_length=period_length)


def test_fit_recovers_amplitude_and_phase() -> None:
    t = np.arange(60)
    seasonal = pd.Series(
        2500 * np.cos(2 * np.pi * (t - 7) / 12) + 900 * np.cos(2 * np.pi * (t - 1) / 6)
    )
    table = HarmonicSeasonality(period_length=12, harmonics=3).fit(seasonal)

    assert table["harmonic"].tolist() == [1, 2, 3]
    assert np.allclose(table["period"], [12.0, 6.0, 4.0])
    assert np.allclose(table["amplitude"], [2500.0, 900.0, 0.0], atol=1e-6)
    assert table["cumulative_share"].iloc[1] == pytest.approx(1.0)
    assert table["variance_share"].iloc[2] == pytest.approx(0.0, abs=1e-12)


def test_fit_nyquist_harmonic() -> None:
    alternating = pd.Series(np.cos(np.pi * np.arange(48)))
    table = HarmonicSeasonality(period_length=12).fit(alternating)

    assert table["harmonic"].iloc[-1] == 6
    assert table["amplitude"].iloc[-1] == pytest.approx(1.0)
    assert table["variance_share"].iloc[-1] == pytest.approx(1.0)
    assert table["cumulative_share"].iloc[-1] == pytest.approx(1.0)


def test_fit_full_harmonics_explains_any_cycle() -> None:
    cycle = np.random.default_rng(4).normal(size=12)
    seasonal = pd.Series(np.tile(cycle, 4))
    table = HarmonicSeasonality(period_length=12).fit(seasonal)
    assert table["cumulative_share"].iloc[-1] == pytest.approx(1.0)


def test_fit_constant_series() -> None:
    table = HarmonicSeasonality(period_length=12, harmonics=2).fit(pd.Series([3.0] * 24))
    assert np.allclose(table["amplitude"], 0.0)
    assert np.allclose(table["variance_share"], 0.0)
