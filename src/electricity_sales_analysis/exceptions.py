class SalesAnalysisError(Exception):
    """Base class for errors raised by the sales analysis package."""


class DataValidationError(SalesAnalysisError, ValueError):
    """Raised when an input file or series cannot support the analysis."""


class ArmaFitError(SalesAnalysisError):
    """Raised when no ARMA order in a grid search could be fitted."""
