from collections.abc import Callable
from pathlib import Path

import numpy as np
import pandas as pd  # type: ignore
import pytest

MONTHS = 158

EIA_HEADER = [
    "Retail sales of electricity, monthly",
    "Source: U.S. Energy Information Administration",
    "https://www.eia.gov/electricity/data/browser/",
    "units: million kilowatthours",
]


def synthetic_sales(months: int = MONTHS, seed: int = 42) -> pd.Series:
    """Quadratic trend, annual and semi-annual cycles and AR(1) noise."""
    rng = np.random.default_rng(seed)
    t = np.arange(months)
    shocks = rng.normal(scale=150, size=months)
    noise = np.zeros(months)
    for i in range(1, months):
        noise[i] = 0.6 * noise[i - 1] + shocks[i]

    values = (
        21000
        + 8 * t
        - 0.03 * t**2
        + 2500 * np.cos(2 * np.pi * (t - 7) / 12)
        + 900 * np.cos(2 * np.pi * (t - 1) / 6)
        + noise
    )
    index = pd.date_range("2010-01-01", periods=months, freq="MS", name="ds")
    return pd.Series(values, index=index, name="total")


@pytest.fixture(scope="session")
def monthly_sales() -> pd.Series:
    """158 months of California-like retail sales from January 2010."""
    return synthetic_sales()


@pytest.fixture
def write_eia_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write sector columns the way the EIA data browser exports them.

    Months are written newest first with ``Mon YYYY`` labels and values with
    thousands separators; NaN values are written as ``--``.
    """

    def write(columns: dict[str, pd.Series], name: str = "sales.csv") -> Path:
        frame = pd.DataFrame(columns).sort_index(ascending=False)
        lines = [*EIA_HEADER, ",".join(["Month", *frame.columns])]
        for month, row in frame.iterrows():
            cells = ["--" if np.isnan(v) else f'"{v:,.2f}"' for v in row]
            lines.append(",".join([month.strftime("%b %Y"), *cells]))

        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return write
