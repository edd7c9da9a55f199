from .arma import FAILED_FIT_AIC, ArmaGridSearch, ArmaModel, ArmaSearchResult
from .config import AnalysisConfig
from .data import SalesDataConfig, load_sales, read_sales_csv, to_long
from .decomposition import STLDecomposition
from .exceptions import ArmaFitError, DataValidationError, SalesAnalysisError
from .forecast import ComponentForecast, forecast_accuracy
from .report import AnalysisReport, analyze_series, run_analysis, save_charts
from .sales_analyzer import ElectricitySalesAnalyzer
from .trend import PolynomialTrend, compare_polynomial_degrees

__all__ = [
    "FAILED_FIT_AIC",
    "AnalysisConfig",
    "AnalysisReport",
    "ArmaFitError",
    "ArmaGridSearch",
    "ArmaModel",
    "ArmaSearchResult",
    "ComponentForecast",
    "DataValidationError",
    "ElectricitySalesAnalyzer",
    "PolynomialTrend",
    "STLDecomposition",
    "SalesAnalysisError",
    "SalesDataConfig",
    "analyze_series",
    "compare_polynomial_degrees",
    "forecast_accuracy",
    "load_sales",
    "read_sales_csv",
    "run_analysis",
    "save_charts",
    "to_long",
]
