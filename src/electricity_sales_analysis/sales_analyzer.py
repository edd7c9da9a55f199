import logging
from functools import cached_property
from typing import Iterable, Literal, Self

import altair as alt
import numpy as np
import pandas as pd  # type: ignore
from altair.utils.display import MimeBundleType
from numpy.typing import NDArray

from .arma import ArmaGridSearch, ArmaSearchResult
from .config import AnalysisConfig
from .decomposition import STLDecomposition
from .diagnostics import adf_test, kpss_test, ljung_box_test, stationarity_summary
from .forecast import ComponentForecast, forecast_accuracy
from .shared.interfaces import Detrend, SpectralAnalysis
from .spectral import HarmonicSeasonality, Periodogram
from .trend import PolynomialTrend
from .utils import ensure_iterable

logger = logging.getLogger(__name__)

Component = Literal["observed", "trend", "seasonal", "rough"]
SpectralCache = dict[tuple[str, str | tuple[int, ...]], SpectralAnalysis]


class ElectricitySalesAnalyzer:
    """STL, ARMA and spectral analysis of a monthly electricity sales series.

    Wraps the full study of a single monthly series: STL decomposition into
    trend, seasonal and rough components, an AIC driven ARMA search on the
    rough, a recombined forecast, spectral validation and stationarity and
    white noise tests, with Altair charts for each step.

    Trailing months can be held out (``oot_periods``) to score the forecast.
    They are excluded from every fit and drawn in a different color.

    Attributes:
        df: DataFrame containing the complete series.
        y: Column name for sales values.
        ds: Column name for the month.
        unique_id: Column name for series identifier in panel frames.
        config: Analysis settings.

    Examples:
        >>> idx = pd.date_range("2010-01-01", periods=60, freq="MS")
        >>> t = np.arange(60)
        >>> sales = 20000 + 15 * t + 2500 * np.cos(2 * np.pi * (t - 7) / 12)
        >>> df = pd.DataFrame({"month": idx, "sales": sales})
        >>> esa = ElectricitySalesAnalyzer(df, y="sales", ds="month", oot_periods=12)
        >>> esa.train_size
        48
        >>> esa.series.index.freqstr
        'MS'
        >>> round(esa.find_period(detrend="linear"), 2)
        12.0
    """

    def __init__(
        self,
        df: pd.DataFrame,
        y: str = "y",
        ds: str = "ds",
        unique_id: str = "unique_id",
        series_id: str | None = None,
        y_name: str | None = None,
        ds_name: str | None = None,
        width: int = 600,
        height: int = 400,
        oot_periods: int | None = None,
        config: AnalysisConfig | None = None,
        spectral_analysis_tool: type[SpectralAnalysis] = Periodogram,
    ) -> None:
        """Initialize the analyzer with data and configuration options.

        Args:
            df: DataFrame with at least month and value columns, in long
                format when it holds several series.
            y: Column name for sales values.
            ds: Column name for the month of each observation.
            unique_id: Column name for series identifiers in long frames.
            series_id: Series to analyze when ``df`` holds several.
            y_name: Human-readable label for values in charts.
            ds_name: Human-readable label for the time axis in charts.
            width: Default chart width in pixels.
            height: Default chart height in pixels.
            oot_periods: Trailing months held out of every fit. Defaults to
                ``config.holdout``.
            config: Analysis settings, defaults to ``AnalysisConfig()``.
            spectral_analysis_tool: Class used for frequency domain analysis.

        Raises:
            ValueError: If ``df`` holds several series and none is selected.
        """
        if unique_id in df.columns:
            ids = df[unique_id].unique()
            if series_id is not None:
                df = df[df[unique_id] == series_id]
                if df.empty:
                    raise ValueError(f"Series {series_id!r} not found in {unique_id!r}")
            elif len(ids) > 1:
                msg = f"df holds {len(ids)} series, pass series_id to choose one of {list(ids)}"
                raise ValueError(msg)

        self.df = df.sort_values(ds, ignore_index=True)
        self.unique_id = unique_id
        self.ds = ds
        self.y = y
        self.config = config or AnalysisConfig()

        self._y_name = y_name or y
        self._ds_name = ds_name or ds
        self._oot_periods = self.config.holdout if oot_periods is None else oot_periods
        if not 0 <= self._oot_periods < len(self.df):
            raise ValueError("oot_periods must be non-negative and shorter than the series")

        self._width = width
        self._height = height

        self._var_name = "Series"
        self._value_name = "Values"

        self._spectral_cache: SpectralCache = {}
        self._spectral_analysis = spectral_analysis_tool

    @classmethod
    def from_series(cls, series: pd.Series, **kwargs) -> Self:
        """Build an analyzer from a month indexed series.

        Examples:
            >>> idx = pd.date_range("2020-01-01", periods=36, freq="MS")
            >>> esa = ElectricitySalesAnalyzer.from_series(pd.Series(np.arange(36.0), index=idx, name="total"))
            >>> esa.y, esa.ds
            ('total', 'ds')
        """
        name = series.name or "y"
        df = series.rename(name).rename_axis("ds").reset_index()
        return cls(df, y=str(name), ds="ds", **kwargs)

    @property
    def oot_periods(self) -> int:
        """Number of trailing months held out for validation."""
        return self._oot_periods

    @oot_periods.setter
    def oot_periods(self, value: int) -> None:
        """Set the held out months and invalidate every cached analysis."""
        if not 0 <= value < len(self.df):
            raise ValueError("oot_periods must be non-negative and shorter than the series")
        self._oot_periods = value
        self._invalidate_cache()

    @cached_property
    def train_data(self) -> pd.DataFrame:
        """Training rows with standardized ``unique_id``, ``ds``, ``y`` columns."""
        return self._standardize(self.df[: len(self.df) - self.oot_periods])

    @cached_property
    def oot_data(self) -> pd.DataFrame:
        """Held out rows with standardized ``unique_id``, ``ds``, ``y`` columns."""
        return self._standardize(self.df[len(self.df) - self.oot_periods :])

    @cached_property
    def dates(self) -> pd.Series:
        return self.df[self.ds][: len(self.df) - self.oot_periods]

    @cached_property
    def series(self) -> pd.Series:
        """Training values indexed by month with a regular frequency.

        Raises:
            ValueError: If the months are not regularly spaced.
        """
        return self._to_regular(self.df[: len(self.df) - self.oot_periods])

    @cached_property
    def oot_series(self) -> pd.Series:
        return self._to_regular(self.df[len(self.df) - self.oot_periods :], strict=False)

    @cached_property
    def train_size(self) -> int:
        return len(self.train_data)

    @cached_property
    def decomposition(self) -> STLDecomposition:
        """STL decomposition of the training series."""
        return STLDecomposition.from_series(
            self.series,
            period=self.config.period,
            robust=self.config.robust,
            seasonal=self.config.stl_seasonal,
        )

    @cached_property
    def arma_search(self) -> ArmaSearchResult:
        """AIC grid search of ARMA orders on the rough component."""
        search = ArmaGridSearch(
            p_values=tuple(range(self.config.max_p + 1)),
            d_values=self.config.d_values,
            q_values=tuple(range(self.config.max_q + 1)),
        )
        return search.run(self.decomposition.rough)

    def forecast(self, steps: int | None = None) -> ComponentForecast:
        """Forecast sales by recombining the projected STL components.

        Args:
            steps: Months to forecast past the training data. Defaults to
                ``config.horizon``.

        Raises:
            ValueError: If ``steps`` is not a positive integer.
        """
        return ComponentForecast.build(
            self.decomposition,
            self.arma_search.best,
            steps=self.config.horizon if steps is None else steps,
            trend_degree=self.config.trend_degree,
            alpha=self.config.alpha,
        )

    def evaluate_holdout(self) -> pd.Series:
        """Score a forecast over the held out months.

        Raises:
            ValueError: If no months are held out.
        """
        if self.oot_periods == 0:
            raise ValueError("Set oot_periods to hold out months before evaluating")

        predicted = self.forecast(self.oot_periods).forecast
        accuracy = forecast_accuracy(self.oot_series, predicted)
        logger.info(
            "Holdout of %d months: MAE=%.2f MAPE=%.2f%%",
            self.oot_periods,
            accuracy["MAE"],
            accuracy["MAPE (%)"],
        )
        return accuracy

    def adf_test(self, *diffs: int) -> pd.Series:
        """Augmented Dickey-Fuller test of the training series."""
        return adf_test(self.series, *diffs)

    def kpss_test(self, *diffs: int) -> pd.Series:
        """KPSS test of the training series."""
        return kpss_test(self.series, *diffs)

    def stationarity_tests(self) -> pd.DataFrame:
        """ADF and KPSS verdicts for the series, its differences and the rough.

        Returns:
            DataFrame indexed by ``observed``, ``diff 1``, ``diff 1, 12`` and
            ``rough`` with ADF and KPSS p-values and a combined verdict.
        """
        period = self.config.period
        alpha = self.config.alpha
        rows = {
            "observed": stationarity_summary(self.series, alpha=alpha),
            "diff 1": stationarity_summary(self.series, 1, alpha=alpha),
            f"diff 1, {period}": stationarity_summary(self.series, 1, period, alpha=alpha),
            "rough": stationarity_summary(self.decomposition.rough, alpha=alpha),
        }
        return pd.DataFrame(rows).T

    def residual_tests(self) -> pd.DataFrame:
        """Ljung-Box tests of the rough and of the selected ARMA residuals.

        The rough is expected to fail (it is what the ARMA model explains) and
        the ARMA residuals to pass, which supports the model choice.

        Returns:
            DataFrame with a ``series``/``lag`` MultiIndex and ``lb_stat``,
            ``lb_pvalue`` and ``white_noise`` columns.
        """
        best = self.arma_search.best
        p, _, q = best.order
        lags = self.config.ljung_box_lags
        tests = {
            "rough": ljung_box_test(self.decomposition.rough, lags),
            f"ARMA{best.order} residuals": ljung_box_test(best.residuals, lags, model_df=p + q),
        }
        result = pd.concat(tests, names=["series"])
        return result.assign(white_noise=result["lb_pvalue"] >= self.config.alpha)

    def component(self, name: Component) -> pd.Series:
        """Return the training series or one of its STL components.

        Args:
            name: ``observed`` for the training series itself, or ``trend``,
                ``seasonal`` or ``rough`` from the decomposition.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=36, freq="MS")
            >>> t = np.arange(36)
            >>> esa = ElectricitySalesAnalyzer.from_series(
            ...     pd.Series(100 + t + 10 * np.sin(2 * np.pi * t / 12), index=idx)
            ... )
            >>> esa.component("observed") is esa.series
            True
            >>> esa.component("rough").name
            'rough'
        """
        if name == "observed":
            return self.series
        return getattr(self.decomposition, name)

    def list_peaks(
        self,
        threshold: float = 0.5,
        detrend: Detrend = "linear",
        component: Component = "observed",
    ) -> pd.DataFrame:
        """List periodogram ordinates above a fraction of the largest one.

        Args:
            threshold: Minimum power as a fraction of the maximum power.
            detrend: Detrending applied before the transform.
            component: Which series to analyze.

        Returns:
            DataFrame with ``frequency``, ``period`` and ``power``, largest first.
        """
        return self._get_or_create_spectrum(component, detrend).get_peaks(threshold=threshold)

    def find_period(self, detrend: Detrend = "linear", component: Component = "observed") -> float:
        """Dominant period of a component, rounded to 2 decimals (inf if constant)."""
        spectrum = self._get_or_create_spectrum(component, detrend)
        return round(spectrum.dominant_period, 2)

    def seasonality_test(self, detrend: Detrend = "linear") -> pd.Series:
        """Fisher's g test of the dominant cycle of the observed series."""
        spectrum = self._get_or_create_spectrum("observed", detrend)
        g, p_value = spectrum.fisher_g_test()
        return pd.Series(
            {"dominant period": spectrum.dominant_period, "g statistic": g, "p-value": p_value},
            name="Fisher g",
        )

    def spectral_validation(self, max_freq: float = 0.5) -> pd.DataFrame:
        """Periodogram of the rough next to the spectrum implied by the ARMA fit.

        A good ARMA fit follows the broad shape of the rough periodogram and
        leaves no sharp peak unexplained.
        """
        spectrum = self._get_or_create_spectrum("rough", "mean").get_spectrum(max_freq)
        density = self.arma_search.best.spectral_density(spectrum["frequency"].to_numpy())
        return spectrum.assign(arma=density)

    def harmonic_summary(self, harmonics: int = 2) -> pd.DataFrame:
        """Share of the STL seasonal variance carried by the leading harmonics."""
        model = HarmonicSeasonality(period_length=self.config.period, harmonics=harmonics)
        return model.fit(self.decomposition.seasonal)

    def plot_trends(
        self,
        polyfit_degrees: int | Iterable[int] | None = None,
        moving_average_windows: int | Iterable[int] | None = None,
    ) -> alt.LayerChart | alt.VConcatChart:
        """Plot the series with polynomial fits and/or centered moving averages.

        Raises:
            ValueError: If both polyfit_degrees and moving_average_windows are None.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=48, freq="MS")
            >>> esa = ElectricitySalesAnalyzer.from_series(pd.Series(np.arange(48.0), index=idx))
            >>> esa.plot_trends(polyfit_degrees=[1, 2]).title
            'Polynomial Fits'
            >>> esa.plot_trends(polyfit_degrees=1, moving_average_windows=12).title
            'Trends'
        """
        if polyfit_degrees is None and moving_average_windows is None:
            msg = "At least one of polyfit_degrees or moving_average_windows must be provided"
            raise ValueError(msg)

        charts: list[alt.LayerChart] = []
        series_data = self._melt({self._y_name: self.series.to_numpy()})
        ts_line = alt.Chart(series_data).mark_line()

        for values, compute, title in [
            (polyfit_degrees, self._compute_polynomial_fit, "Polynomial Fits"),
            (moving_average_windows, self._compute_moving_averages, "Moving Averages"),
        ]:
            if values is None:
                continue
            line = self._highlight(alt.Chart(compute(values)).mark_line())
            charts.append(
                alt.layer(ts_line, line)
                .encode(
                    x=alt.X(f"{self._ds_name}:T"),
                    y=alt.Y(f"{self._value_name}:Q").scale(zero=False),
                    color=alt.Color(f"{self._var_name}:N"),
                )
                .properties(width=self._width, height=self._height, title=title)
            )

        if len(charts) == 1:
            return charts[0]

        return alt.vconcat(
            *(c.properties(width=self._width, height=self._height // 2) for c in charts)
        ).properties(title="Trends")

    def plot_decomposition(self) -> alt.VConcatChart:
        """Plot the observed series and its STL trend, seasonal and rough components.

        The four panels share the time axis. Observed and trend panels drop
        the zero baseline so the trend's curvature stays visible, and the
        rough is drawn as points.

        Returns:
            A vertical concatenation of the four component charts.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=36, freq="MS")
            >>> t = np.arange(36)
            >>> esa = ElectricitySalesAnalyzer.from_series(
            ...     pd.Series(100 + t + 10 * np.sin(2 * np.pi * t / 12), index=idx)
            ... )
            >>> chart = esa.plot_decomposition()
            >>> chart.title
            'STL Decomposition (Period=12, Robust=True)'
        """
        stl = self.decomposition
        data = stl.to_frame().rename_axis(self.ds).reset_index()
        title = f"STL Decomposition (Period={stl.period}, Robust={stl.robust})"

        base = (
            alt.Chart(data)
            .encode(x=alt.X(f"{self.ds}:T", title=self._ds_name))
            .properties(height=self._height // 4, width=self._width)
        )
        line, point = base.mark_line(), base.mark_point(size=8)

        return (
            line.encode(y=alt.Y("observed:Q", title=self._y_name).scale(zero=False))
            & line.encode(y=alt.Y("trend:Q").scale(zero=False))
            & line.encode(y=alt.Y("seasonal:Q"))
            & point.encode(y=alt.Y("rough:Q"))
        ).properties(title=title)

    def plot_periodogram(
        self,
        max_freq: float = 0.5,
        threshold: float = 0.3,
        detrend: Detrend = "linear",
        component: Component = "observed",
    ) -> alt.VConcatChart:
        """Plot the periodogram against frequency and period.

        Peaks above ``threshold`` are marked and the dominant period is noted
        in the title. For the rough component the spectrum implied by the
        selected ARMA model is overlaid.
        """
        spectrum = self._get_or_create_spectrum(component, detrend)

        data = spectrum.get_spectrum(max_freq).assign(series_type="Periodogram")
        peaks = spectrum.get_peaks(max_freq, threshold).assign(series_type="Peak")
        if component == "rough":
            arma = self.spectral_validation(max_freq)
            data = pd.concat(
                [data, arma.assign(power=arma["arma"], series_type="ARMA spectrum")]
            ).drop(columns="arma")

        dominant_period = str(round(spectrum.dominant_period, 2))
        if dominant_period == "inf":
            dominant_period = "DC (∞)"
        dominant_period_text = f"Dominant Period: {dominant_period}"

        y_power = alt.Y("power:Q", title="Power")
        color = alt.Color(
            "series_type:N",
            legend=alt.Legend(title="Components"),
            scale=alt.Scale(
                domain=["Periodogram", "Peak", "ARMA spectrum"],
                range=["#1f77b4", "red", "#ff7f0e"],
            ),
        )
        tooltip = [
            alt.Tooltip("frequency:Q"),
            alt.Tooltip("period:Q"),
            alt.Tooltip("power:Q"),
        ]

        base_spectrum = (
            alt.Chart(data)
            .mark_line()
            .encode(y=y_power, color=color)
            .properties(width=self._width, height=self._height // 2)
        )
        base_peaks = (
            alt.Chart(peaks)
            .mark_point(size=100)
            .encode(y=y_power, color=color, tooltip=tooltip)
        )

        x_frequency = alt.X("frequency:Q", title="Frequency (cycles per month)")
        x_period = alt.X("period:Q", title="Period (months)", scale=alt.Scale(type="log"))

        frequency = alt.layer(
            base_spectrum.encode(x=x_frequency), base_peaks.encode(x=x_frequency)
        )
        period = alt.layer(
            base_spectrum.transform_filter(alt.datum.period > 0).encode(x=x_period),
            base_peaks.transform_filter(alt.datum.period > 0).encode(x=x_period),
        )

        detrend_text = ""
        if detrend is not None:
            if isinstance(detrend, str):
                detrend_text = f" (Detrended: {detrend})"
            else:
                detrend_text = f" (Differenced: {list(detrend)})"

        return alt.vconcat(
            frequency.properties(title="Frequency Spectrum"),
            period.properties(title="Period Spectrum"),
        ).properties(title=f"Periodogram of {component}{detrend_text} - {dominant_period_text}")

    def plot_forecast(self, steps: int | None = None) -> alt.LayerChart:
        """Plot history, the recombined forecast with its interval and any holdout.

        Args:
            steps: Months to forecast. Defaults to the held out months when
                there are any, otherwise to ``config.horizon``.

        Returns:
            A layer of the interval band under the observed, forecast and
            holdout lines.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=48, freq="MS")
            >>> t = np.arange(48)
            >>> noise = np.random.default_rng(0).normal(size=48)
            >>> series = pd.Series(100 + t + 10 * np.sin(2 * np.pi * t / 12) + noise, index=idx)
            >>> config = AnalysisConfig(max_p=1, max_q=0)
            >>> esa = ElectricitySalesAnalyzer.from_series(series, config=config, oot_periods=6)
            >>> esa.plot_forecast().title.startswith("Forecast with 95% interval")
            True
        """
        if steps is None:
            steps = self.oot_periods or None
        result = self.forecast(steps)
        level = round((1 - result.alpha) * 100)

        history = self.series.rename("value").rename_axis("ds").reset_index()
        history["series_type"] = "Observed"

        forecast = result.frame.rename_axis("ds").reset_index()
        forecast_line = forecast.rename(columns={"forecast": "value"})[["ds", "value"]]
        forecast_line["series_type"] = "Forecast"

        frames = [history, forecast_line]
        if self.oot_periods:
            holdout = self.oot_series.rename("value").rename_axis("ds").reset_index()
            holdout["series_type"] = "Holdout"
            frames.append(holdout)

        x = alt.X("ds:T", title=self._ds_name)
        color = alt.Color(
            "series_type:N",
            legend=alt.Legend(title="Series"),
            scale=alt.Scale(
                domain=["Observed", "Forecast", "Holdout"],
                range=["#1f77b4", "#ff7f0e", "#d62728"],
            ),
        )
        lines = (
            alt.Chart(pd.concat(frames, ignore_index=True))
            .mark_line()
            .encode(x=x, y=alt.Y("value:Q", title=self._y_name).scale(zero=False), color=color)
        )
        band = (
            alt.Chart(forecast)
            .mark_area(opacity=0.25, color="#ff7f0e")
            .encode(x=x, y="lower:Q", y2="upper:Q")
        )
        return alt.layer(band, lines).properties(
            width=self._width,
            height=self._height,
            title=f"Forecast with {level}% interval (ARMA{self.arma_search.best_order} rough)",
        )

    def plot_aic_grid(self) -> alt.LayerChart:
        """Heatmap of the AIC of every ARMA order tried, failed fits left blank.

        Only orders sharing the differencing order of the selected model are
        shown. Each cell is labelled with its AIC, or ``failed`` when the fit
        raised.

        Returns:
            A layer of the colored grid and its text labels.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=48, freq="MS")
            >>> t = np.arange(48)
            >>> noise = np.random.default_rng(0).normal(size=48)
            >>> series = pd.Series(100 + t + 10 * np.sin(2 * np.pi * t / 12) + noise, index=idx)
            >>> esa = ElectricitySalesAnalyzer.from_series(series, config=AnalysisConfig(max_p=1, max_q=1))
            >>> esa.plot_aic_grid().title.startswith("ARMA AIC grid (best")
            True
        """
        search = self.arma_search
        grid = search.grid.assign(
            aic=search.grid["aic"].where(search.grid["error"] == ""),
            label=lambda d: d["aic"].round(1).astype(str).where(d["error"] == "", "failed"),
        )
        grid = grid[grid["d"] == search.best_order[1]]

        base = alt.Chart(grid).encode(x=alt.X("q:O", title="q"), y=alt.Y("p:O", title="p"))
        heatmap = base.mark_rect().encode(
            color=alt.Color("aic:Q", title="AIC").scale(scheme="viridis", reverse=True),
            tooltip=["p:O", "q:O", "aic:Q", "converged:N", "error:N"],
        )
        text = base.mark_text(fontSize=10).encode(text="label:N")
        return alt.layer(heatmap, text).properties(
            width=self._width // 2,
            height=self._height // 2,
            title=f"ARMA AIC grid (best {search.best_order})",
        )

    def _get_or_create_spectrum(
        self, component: Component = "observed", detrend: Detrend = "linear"
    ) -> SpectralAnalysis:
        """Compute or reuse the spectral analysis of a component.

        Examples:
            >>> idx = pd.date_range("2010-01-01", periods=48, freq="MS")
            >>> esa = ElectricitySalesAnalyzer.from_series(pd.Series(np.sin(np.arange(48.0)), index=idx))
            >>> first = esa._get_or_create_spectrum(detrend="linear")
            >>> first is esa._get_or_create_spectrum(detrend="linear")
            True
            >>> first is esa._get_or_create_spectrum(detrend=None)
            False
        """
        key_detrend: str | tuple[int, ...]
        if detrend is None:
            key_detrend = "none"
        elif isinstance(detrend, str):
            key_detrend = detrend
        else:
            key_detrend = tuple(detrend)

        key = (component, key_detrend)
        spectrum = self._spectral_cache.get(key, None)
        if spectrum is None:
            spectrum = self._spectral_analysis.from_series(
                self.component(component), detrend=detrend
            )
            self._spectral_cache[key] = spectrum
        return spectrum

    def _highlight(self, chart: alt.Chart, field: str | None = None) -> alt.LayerChart:
        """Thicken the hovered line of a multi-series chart."""
        if field is None:
            field = self._var_name
        hover = alt.selection_point(on="pointerover", fields=[field], nearest=True)
        line_size = alt.when(hover).then(alt.value(3)).otherwise(alt.value(1))

        return alt.layer(
            chart.mark_circle().encode(opacity=alt.value(0)).add_params(hover),
            chart.mark_line().encode(size=line_size),
        )

    def _compute_moving_averages(self, windows: int | Iterable[int]) -> pd.DataFrame:
        """Centered moving averages in long format, one ``ma_X`` series per window."""
        results: dict[str, NDArray[np.floating]] = {}
        for i in ensure_iterable(windows):
            series = self.series.rolling(i, min_periods=1, center=True).mean()
            results[f"ma_{i}"] = series.to_numpy()

        return self._melt(results)

    def _compute_polynomial_fit(self, degrees: int | Iterable[int]) -> pd.DataFrame:
        """Polynomial trend fits in long format, one ``pf_X`` series per degree."""
        results: dict[str, NDArray[np.floating]] = {}
        for deg in ensure_iterable(degrees):
            results[f"pf_{deg}"] = PolynomialTrend.fit(self.series, deg).fitted.to_numpy()

        return self._melt(results)

    def _melt(self, data: dict[str, NDArray[np.floating]]) -> pd.DataFrame:
        return (
            self.dates.reset_index(drop=True)
            .to_frame(self._ds_name)
            .join(pd.DataFrame(data))
            .melt(
                id_vars=self._ds_name,
                var_name=self._var_name,
                value_name=self._value_name,
            )
            .sort_values([self._ds_name, self._var_name], ignore_index=True)
        )

    def _standardize(self, df: pd.DataFrame) -> pd.DataFrame:
        columns = {self.unique_id: "unique_id", self.ds: "ds", self.y: "y"}
        if self.unique_id not in df.columns:
            df = df.assign(**{self.unique_id: self._y_name})
        return df[[self.unique_id, self.ds, self.y]].rename(columns=columns)

    def _to_regular(self, df: pd.DataFrame, strict: bool = True) -> pd.Series:
        index = pd.DatetimeIndex(df[self.ds], name=self.ds)
        series = pd.Series(df[self.y].to_numpy(dtype=float), index=index, name=self.y)
        if len(series) < 3:
            return series

        freq = pd.infer_freq(index)
        if freq is None:
            if strict:
                raise ValueError(f"Column {self.ds!r} must hold regularly spaced months")
            return series
        return series.asfreq(freq)

    def _invalidate_cache(self) -> None:
        """Drop cached data slices and analyses after the holdout changes."""
        self._spectral_cache = {}
        cached_props = [
            "train_data",
            "oot_data",
            "dates",
            "series",
            "oot_series",
            "train_size",
            "decomposition",
            "arma_search",
        ]
        for prop in cached_props:
            if prop in self.__dict__:
                del self.__dict__[prop]

    def _repr_mimebundle_(self, include=None, exclude=None) -> MimeBundleType | None:
        """Jupyter display: the series with held out months highlighted."""
        base_chart = (
            alt.Chart(self.df)
            .mark_line()
            .encode(
                x=alt.X(f"{self.ds}:T", title=self._ds_name),
                y=alt.Y(f"{self.y}:Q", title=self._y_name).scale(zero=False),
            )
        )
        color_chart = None

        if self._oot_periods > 0:
            period_types = np.full(len(self.df), "Training", dtype=object)
            period_types[-self._oot_periods :] = "OOT"
            df = self.df.assign(period_type=period_types).query("period_type=='OOT'")

            base_color = alt.Chart(df).encode(
                x=alt.X(f"{self.ds}:T", title=self._ds_name),
                y=alt.Y(f"{self.y}:Q", title=self._y_name),
                color=alt.Color(
                    "period_type:N",
                    scale=alt.Scale(
                        domain=["Training", "OOT"],
                        range=["#1f77b4", "#d62728"],
                    ),
                    legend=alt.Legend(title="Data Period"),
                ),
            )

            color_chart = (
                base_color.mark_point()
                if self._oot_periods == 1
                else base_color.mark_line()
            )

        return (
            (alt.layer(base_chart, color_chart) if color_chart else base_chart)
            .properties(
                width=self._width,
                height=self._height,
                title=f"Monthly Sales: {self._y_name} over {self._ds_name}",
            )
            ._repr_mimebundle_(include, exclude)
        )
