import argparse
import dataclasses
import logging
import sys

from .config import AnalysisConfig
from .data import SalesDataConfig
from .exceptions import SalesAnalysisError
from .report import run_analysis, save_charts

logger = logging.getLogger("electricity_sales_analysis")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="electricity-sales-analysis",
        description="STL, ARMA and spectral analysis of monthly electricity sales.",
    )
    parser.add_argument("csv", help="Monthly sales export (EIA electricity data browser layout)")
    parser.add_argument("--column", help="Sector column to analyze, defaults to the first one")
    parser.add_argument("--config", help="JSON file with analysis settings")
    parser.add_argument("--skiprows", type=int, default=4, help="Metadata lines before the header")
    parser.add_argument("--start", default="2010-01", help="First month to keep (YYYY-MM)")
    parser.add_argument("--end", default=None, help="Last month to keep (YYYY-MM)")
    parser.add_argument("--horizon", type=int, help="Months to forecast")
    parser.add_argument("--holdout", type=int, help="Trailing months held out for scoring")
    parser.add_argument("--output", help="Directory where HTML charts are written")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        key: value
        for key, value in {"horizon": args.horizon, "holdout": args.holdout}.items()
        if value is not None
    }

    # ValueError also covers pydantic validation and malformed JSON
    try:
        config = AnalysisConfig.from_json(args.config) if args.config else AnalysisConfig()
        if overrides:
            config = AnalysisConfig(**{**dataclasses.asdict(config), **overrides})
        data_config = SalesDataConfig(skiprows=args.skiprows, start=args.start, end=args.end)
        report = run_analysis(args.csv, config, data_config, column=args.column)
    except (OSError, ValueError, SalesAnalysisError) as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    print(report.to_text())
    if args.output:
        save_charts(report.analyzer, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
