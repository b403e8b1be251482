"""
Exploratory Report Pipeline

Runs the report stages in order:

    load -> validate -> clean -> classify -> profile -> visualize -> aggregate -> persist

Every stage takes the frame it works on and returns a new frame or a
result object. Any failure aborts the run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog

from retail_eda.analytics.aggregators import SpendAggregator
from retail_eda.analytics.tail_index import HillEstimate, describe_spend, hill_estimator
from retail_eda.config import Settings, get_settings
from retail_eda.ingestion.loader import load_snapshot, write_snapshot
from retail_eda.quality.profiler import MissingProfile, MissingProfiler, continuous_summary
from retail_eda.quality.validators import (
    ValidationResult,
    create_cleaned_validator,
    create_transactions_validator,
)
from retail_eda.transformation.classifiers import ColumnClassification, ColumnType, classify_columns
from retail_eda.transformation.cleaners import CleaningResult, CleaningStats, DataCleaner
from retail_eda.visualization.charts import ChartOutput, ChartRenderer

logger = structlog.get_logger(__name__)


@dataclass
class Aggregates:
    """Spend aggregates computed for the report"""
    invoices: pl.DataFrame
    customers: pl.DataFrame
    timeseries: pl.DataFrame
    customer_spend: Dict[str, Any] = field(default_factory=dict)
    hill: Optional[HillEstimate] = None


@dataclass
class ReportResult:
    """Result of a report run"""
    input_rows: int
    output_rows: int
    rows_dropped: int
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    cleaning: CleaningStats
    validation: ValidationResult
    classification: ColumnClassification
    plot_classification: ColumnClassification
    missing: MissingProfile
    aggregates: Aggregates
    continuous_stats: pl.DataFrame
    charts: List[ChartOutput] = field(default_factory=list)
    output_paths: Dict[str, str] = field(default_factory=dict)


class EDAReport:
    """
    Exploratory report over a retail transaction snapshot.

    Example:
        report = EDAReport()
        result = report.run("data/raw/online_retail.parquet")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        render_charts: bool = True,
    ):
        self.settings = settings or get_settings()
        exploration = self.settings.exploration
        data = self.settings.data

        self.cleaner = DataCleaner(
            dedup_key=list(exploration.dedup_key),
            missing_level_threshold=exploration.missing_level_threshold,
            timestamp_col=exploration.timestamp_column,
        )
        self.profiler = MissingProfiler()
        self.aggregator = SpendAggregator()
        self.renderer = None
        if render_charts:
            self.renderer = ChartRenderer(
                output_dir=data.figures_path or None,
                max_categories=exploration.max_categories,
                histogram_bins=exploration.histogram_bins,
                label_max_length=exploration.label_max_length,
                sheet_column=exploration.sheet_column,
                dpi=exploration.figure_dpi,
                show=data.show_figures,
            )

    def load(self, path: Union[str, Path, None] = None) -> pl.DataFrame:
        return load_snapshot(path or self.settings.data.raw_path)

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """Check the raw frame after name normalization; errors abort"""
        normalized = self.cleaner.normalize_column_names(df)
        return create_transactions_validator().validate(normalized, raise_on_error=True)

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = self.cleaner.clean(df)
        create_cleaned_validator(self.cleaner.dedup_key).validate(result.df, raise_on_error=True)
        return result

    def classify(self, df: pl.DataFrame) -> ColumnClassification:
        return classify_columns(df)

    def profile(self, df: pl.DataFrame) -> MissingProfile:
        return self.profiler.profile(df)

    def visualize(
        self,
        df: pl.DataFrame,
        plot_classification: ColumnClassification,
        missing: MissingProfile,
    ) -> List[ChartOutput]:
        if self.renderer is None:
            return []
        charts = [
            self.renderer.missing_bar(missing.summary),
            self.renderer.missing_heatmap(missing.patterns),
        ]
        charts.extend(self.renderer.render_all(df, plot_classification))
        return charts

    def visualize_spend(self, aggregates: Aggregates) -> List[ChartOutput]:
        """Spend time series and customer spend distribution charts"""
        if self.renderer is None:
            return []
        return [
            self.renderer.spend_timeseries(aggregates.timeseries),
            self.renderer.spend_distribution(aggregates.customers["customer_amount"]),
        ]

    def summarize(self, df: pl.DataFrame, plot_classification: ColumnClassification) -> pl.DataFrame:
        """Descriptive statistics of the plotted continuous columns"""
        return continuous_summary(df, plot_classification.columns(ColumnType.CONTINUOUS))

    def aggregate(self, df: pl.DataFrame) -> Aggregates:
        invoices = self.aggregator.invoices(df)
        customers = self.aggregator.customers(df)
        timeseries = self.aggregator.timeseries(df)

        spend = customers["customer_amount"]
        hill = None
        if (spend > 0).sum() >= 2:
            hill = hill_estimator(spend)
            k = max(1, min(hill.n - 1, hill.n // 10))
            logger.info("Customer spend tail index", k=k, alpha=hill.at(k), positive_customers=hill.n)

        return Aggregates(
            invoices=invoices,
            customers=customers,
            timeseries=timeseries,
            customer_spend=describe_spend(spend),
            hill=hill,
        )

    def persist(self, cleaned: pl.DataFrame, timeseries: pl.DataFrame) -> Dict[str, str]:
        data = self.settings.data
        return {
            "cleaned": str(write_snapshot(cleaned, data.cleaned_output)),
            "timeseries": str(write_snapshot(timeseries, data.timeseries_output)),
        }

    def run(self, input_path: Union[str, Path, None] = None) -> ReportResult:
        """
        Run the full report.

        Args:
            input_path: Raw snapshot, defaults to the configured raw path

        Returns:
            ReportResult with every intermediate product
        """
        started_at = datetime.now(timezone.utc)
        logger.info("Starting exploratory report", input=str(input_path or self.settings.data.raw_path))

        try:
            raw = self.load(input_path)
            validation = self.validate(raw)

            cleaning = self.clean(raw)
            cleaned = cleaning.df

            classification = self.classify(cleaned)
            plot_classification = self.cleaner.plot_columns(cleaned, classification)

            missing = self.profile(cleaned)
            continuous_stats = self.summarize(cleaned, plot_classification)

            aggregates = self.aggregate(cleaned)

            charts = self.visualize(cleaned, plot_classification, missing)
            charts.extend(self.visualize_spend(aggregates))

            output_paths = self.persist(cleaned, aggregates.timeseries)
        except Exception:
            logger.exception("Exploratory report failed")
            raise

        completed_at = datetime.now(timezone.utc)
        result = ReportResult(
            input_rows=raw.height,
            output_rows=cleaned.height,
            rows_dropped=raw.height - cleaned.height,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            cleaning=cleaning.stats,
            validation=validation,
            classification=classification,
            plot_classification=plot_classification,
            missing=missing,
            aggregates=aggregates,
            continuous_stats=continuous_stats,
            charts=charts,
            output_paths=output_paths,
        )

        logger.info(
            f"Report complete: {result.input_rows} input -> {result.output_rows} rows, "
            f"duration: {result.duration_seconds:.2f}s",
            charts=len(charts),
        )
        return result
