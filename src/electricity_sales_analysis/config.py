import json
from os import PathLike
from typing import Annotated, Self

from pydantic import Field, NonNegativeInt, PositiveInt, TypeAdapter, field_validator
from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings shared by every step of the sales analysis.

    The defaults reproduce the reference study of California retail sales:
    an annual STL cycle, a quadratic trend, a 6 x 1 x 6 ARMA grid on the
    rough component and a two year forecast horizon.

    Examples:
        >>> config = AnalysisConfig()
        >>> config.period, config.trend_degree
        (12, 2)
        >>> config.arma_orders_count
        36
        >>> from pydantic import ValidationError
        >>> try:
        ...     AnalysisConfig(stl_seasonal=8)
        ... except ValidationError as exc:
        ...     print("odd integer" in str(exc))
        True
    """

    period: Annotated[int, Field(ge=2)] = 12
    """Number of observations per seasonal cycle."""
    robust: bool = True
    """Whether STL uses robust (outlier resistant) loess weights."""
    stl_seasonal: Annotated[int, Field(ge=7)] = 13
    """Length of the STL seasonal smoother, must be odd."""
    trend_degree: Annotated[int, Field(ge=0, le=5)] = 2
    """Degree of the polynomial used to extrapolate the trend."""
    max_p: Annotated[int, Field(ge=0, le=10)] = 5
    max_q: Annotated[int, Field(ge=0, le=10)] = 5
    d_values: tuple[NonNegativeInt, ...] = (0,)
    horizon: PositiveInt = 24
    """Number of months to forecast past the end of the series."""
    alpha: Annotated[float, Field(gt=0, lt=1)] = 0.05
    """Significance level for intervals and hypothesis tests."""
    holdout: NonNegativeInt = 0
    """Trailing months kept out of the fit to score the forecast."""
    ljung_box_lags: tuple[PositiveInt, ...] = (6, 12, 24)

    @field_validator("stl_seasonal")
    @classmethod
    def _odd_seasonal(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError("stl_seasonal must be an odd integer")
        return value

    @field_validator("d_values")
    @classmethod
    def _non_empty(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("d_values must contain at least one order")
        return value

    @property
    def arma_orders_count(self) -> int:
        """Number of (p, d, q) combinations the grid search will try."""
        return (self.max_p + 1) * len(self.d_values) * (self.max_q + 1)

    @classmethod
    def from_json(cls, path: str | PathLike[str]) -> Self:
        """Load a configuration from a JSON object, validating every field."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        return TypeAdapter(cls).validate_python(data)
