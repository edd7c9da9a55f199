import logging
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

import pandas as pd  # type: ignore

from .arma import ArmaSearchResult
from .config import AnalysisConfig
from .data import SalesDataConfig, load_sales
from .decomposition import STLDecomposition
from .forecast import ComponentForecast
from .sales_analyzer import ElectricitySalesAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Every statistic produced by a full run of the sales analysis."""

    analyzer: ElectricitySalesAnalyzer
    decomposition: STLDecomposition
    arma: ArmaSearchResult
    forecast: ComponentForecast
    stationarity: pd.DataFrame
    residual_tests: pd.DataFrame
    peaks: pd.DataFrame
    seasonality: pd.Series
    harmonics: pd.DataFrame
    holdout_accuracy: pd.Series | None = None

    def to_text(self) -> str:
        stl = self.decomposition
        best = self.arma.best
        sections = [
            (
                "STL decomposition",
                f"period={stl.period} robust={stl.robust} "
                f"trend strength={stl.trend_strength:.3f} "
                f"seasonal strength={stl.seasonal_strength:.3f}",
            ),
            ("Stationarity (ADF / KPSS)", self.stationarity.to_string()),
            ("Periodogram peaks", self.peaks.to_string(index=False)),
            ("Fisher g test", self.seasonality.to_string()),
            ("Seasonal harmonics", self.harmonics.to_string(index=False)),
            (
                "ARMA grid search",
                f"best order={best.order} AIC={best.aic:.2f} BIC={best.bic:.2f} "
                f"failed fits={len(self.arma.failures)}\n"
                + self.arma.aic_table().round(2).to_string(),
            ),
            ("Ljung-Box", self.residual_tests.to_string()),
            ("Forecast", self.forecast.frame.round(2).to_string()),
        ]
        if self.holdout_accuracy is not None:
            sections.append(("Holdout accuracy", self.holdout_accuracy.round(3).to_string()))

        return "\n\n".join(f"== {title} ==\n{body}" for title, body in sections)


def analyze_series(series: pd.Series, config: AnalysisConfig | None = None) -> AnalysisReport:
    """Run decomposition, ARMA search, forecast and validation on ``series``."""
    config = config or AnalysisConfig()
    analyzer = ElectricitySalesAnalyzer.from_series(series, config=config)
    logger.info(
        "Analyzing %r: %d training months, %d held out",
        analyzer.y,
        analyzer.train_size,
        analyzer.oot_periods,
    )

    holdout_accuracy = analyzer.evaluate_holdout() if analyzer.oot_periods else None

    return AnalysisReport(
        analyzer=analyzer,
        decomposition=analyzer.decomposition,
        arma=analyzer.arma_search,
        forecast=analyzer.forecast(),
        stationarity=analyzer.stationarity_tests(),
        residual_tests=analyzer.residual_tests(),
        peaks=analyzer.list_peaks(threshold=0.1),
        seasonality=analyzer.seasonality_test(),
        harmonics=analyzer.harmonic_summary(),
        holdout_accuracy=holdout_accuracy,
    )


def run_analysis(
    path: str | PathLike[str],
    config: AnalysisConfig | None = None,
    data_config: SalesDataConfig | None = None,
    column: str | None = None,
) -> AnalysisReport:
    """Load a sales export and run the complete analysis on one of its columns."""
    config = config or AnalysisConfig()
    series = load_sales(path, data_config, column=column, period=config.period)
    return analyze_series(series, config)


def save_charts(analyzer: ElectricitySalesAnalyzer, output_dir: str | PathLike[str]) -> list[Path]:
    """Write every chart of the analysis as a standalone HTML file."""
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)

    charts = {
        "decomposition": analyzer.plot_decomposition(),
        "trends": analyzer.plot_trends(
            polyfit_degrees=range(1, max(analyzer.config.trend_degree, 1) + 1),
            moving_average_windows=analyzer.config.period,
        ),
        "periodogram": analyzer.plot_periodogram(),
        "rough_periodogram": analyzer.plot_periodogram(detrend="mean", component="rough"),
        "aic_grid": analyzer.plot_aic_grid(),
        "forecast": analyzer.plot_forecast(),
    }

    paths = []
    for name, chart in charts.items():
        path = output / f"{name}.html"
        chart.save(str(path))
        logger.info("Saved %s", path)
        paths.append(path)
    return paths
