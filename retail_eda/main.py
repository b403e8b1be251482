"""
Retail Transaction EDA
Command Line Entry Point

Usage:
    retail-eda
    retail-eda --input data/raw/online_retail.parquet --output-dir data/curated
    retail-eda --no-charts --log-level DEBUG
"""

import argparse
import sys
from typing import List, Optional

import structlog

from retail_eda.config import get_settings
from retail_eda.config.logging import configure_logging
from retail_eda.pipeline import EDAReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retail-eda",
        description="Exploratory report over a retail transaction snapshot",
    )
    parser.add_argument(
        "--input",
        help="Raw snapshot (default: DATA_RAW_PATH setting)",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for the cleaned and time series snapshots",
    )
    parser.add_argument(
        "--no-charts",
        action="store_true",
        help="Skip chart rendering",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(args.log_level)
    log = structlog.get_logger(__name__)

    settings = get_settings()
    if args.output_dir:
        settings = settings.model_copy(
            update={"data": settings.data.model_copy(update={"curated_path": args.output_dir})}
        )

    result = EDAReport(settings, render_charts=not args.no_charts).run(args.input)

    log.info(
        "Outputs written",
        cleaned=result.output_paths["cleaned"],
        timeseries=result.output_paths["timeseries"],
        duplicates_removed=result.cleaning.duplicates_removed,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
