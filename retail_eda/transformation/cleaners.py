"""
Data Cleaning Module

Cleaning transformations for retail transaction lines.
Handles:
- Column name normalization
- Derived calendar and cancellation fields
- Deduplication on the composite line key
- Pruning of fully missing columns
- Selection of the columns worth plotting
"""

from dataclasses import dataclass, field
from typing import List, Optional
import re

import polars as pl
import structlog

from retail_eda.config import get_settings
from .classifiers import ColumnClassification, ColumnType, count_missing
from .enrichers import DataEnricher

logger = structlog.get_logger(__name__)
settings = get_settings()

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")


def normalize_column_name(name: str) -> str:
    """Lowercase/underscore form: 'StockCode' -> 'stock_code', 'Customer ID' -> 'customer_id'"""
    name = _CAMEL_BOUNDARY.sub("_", name.strip())
    name = _NON_ALNUM.sub("_", name)
    return name.strip("_").lower()


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    rows_after_cleaning: int
    duplicates_removed: int
    columns_dropped: List[str] = field(default_factory=list)


@dataclass
class CleaningResult:
    """Cleaned frame and what happened to it"""
    df: pl.DataFrame
    stats: CleaningStats


class DataCleaner:
    """
    Data cleaner for retail transaction snapshots.

    Example:
        cleaner = DataCleaner()
        result = cleaner.clean(df)
        plot_cols = cleaner.plot_columns(result.df, classify_columns(result.df))
    """

    def __init__(
        self,
        dedup_key: Optional[List[str]] = None,
        missing_level_threshold: Optional[int] = None,
        timestamp_col: Optional[str] = None,
    ):
        self.dedup_key = list(dedup_key) if dedup_key is not None else list(settings.exploration.dedup_key)
        self.missing_level_threshold = (
            missing_level_threshold if missing_level_threshold is not None else settings.exploration.missing_level_threshold
        )
        self.timestamp_col = timestamp_col if timestamp_col is not None else settings.exploration.timestamp_column
        self.enricher = DataEnricher()

    def normalize_column_names(self, df: pl.DataFrame) -> pl.DataFrame:
        """Rename every column to lowercase/underscore form"""
        renamed = {col: normalize_column_name(col) for col in df.columns}
        targets = list(renamed.values())
        if len(set(targets)) != len(targets):
            raise ValueError(f"Column names collide after normalization: {targets}")
        return df.rename(renamed)

    def remove_duplicates(
        self,
        df: pl.DataFrame,
        subset: Optional[List[str]] = None,
    ) -> pl.DataFrame:
        """Keep the first row in file order for each key"""
        subset = subset if subset is not None else self.dedup_key
        missing = [c for c in subset if c not in df.columns]
        if missing:
            raise KeyError(f"Deduplication key columns not found: {missing}")
        return df.unique(subset=subset, keep="first", maintain_order=True)

    def drop_empty_columns(self, df: pl.DataFrame) -> pl.DataFrame:
        """Drop columns where every value is missing"""
        empty = [
            col for col in df.columns
            if df.height == 0 or count_missing(df.get_column(col)) == df.height
        ]
        if empty:
            logger.info("Dropping empty columns", columns=empty)
        return df.drop(empty)

    def identifier_columns(self, df: pl.DataFrame) -> List[str]:
        """Columns with one distinct value per row"""
        if df.height < 2:
            return []
        return [col for col in df.columns if df.get_column(col).n_unique() == df.height]

    def high_cardinality_columns(
        self,
        df: pl.DataFrame,
        classification: ColumnClassification,
        threshold: Optional[int] = None,
    ) -> List[str]:
        """Discrete columns with more levels than the threshold"""
        threshold = threshold if threshold is not None else self.missing_level_threshold
        return [
            col for col in classification.columns(ColumnType.DISCRETE)
            if col in df.columns and df.get_column(col).n_unique() > threshold
        ]

    def plot_columns(
        self,
        df: pl.DataFrame,
        classification: ColumnClassification,
    ) -> ColumnClassification:
        """
        Classification restricted to the columns worth plotting.

        Identifier and high-cardinality columns are left out here only;
        they remain in the cleaned dataset.
        """
        identifiers = self.identifier_columns(df)
        high_cardinality = self.high_cardinality_columns(df, classification)
        excluded = set(identifiers) | set(high_cardinality)

        logger.info(
            "Columns excluded from plotting",
            identifiers=identifiers,
            high_cardinality=high_cardinality,
        )
        return classification.without(excluded)

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        """
        Apply the full cleaning sequence.

        Pipeline:
        1. Normalize column names
        2. Derive calendar fields, cancellation flag and line amount
        3. Remove duplicates on the composite key
        4. Drop fully missing columns
        """
        total_rows = df.height

        df = self.normalize_column_names(df)
        df = self.enricher.add_calendar_features(df, self.timestamp_col)
        if "invoice" in df.columns:
            df = self.enricher.add_cancellation_flag(df)
        if "price" in df.columns and "quantity" in df.columns:
            df = self.enricher.add_line_amount(df)

        df = self.remove_duplicates(df)
        rows_after_dedup = df.height

        before = set(df.columns)
        df = self.drop_empty_columns(df)
        dropped = [col for col in before if col not in df.columns]

        stats = CleaningStats(
            total_rows=total_rows,
            rows_after_cleaning=df.height,
            duplicates_removed=total_rows - rows_after_dedup,
            columns_dropped=sorted(dropped),
        )
        logger.info(
            "Cleaning complete",
            total_rows=stats.total_rows,
            rows_after_cleaning=stats.rows_after_cleaning,
            duplicates_removed=stats.duplicates_removed,
            columns_dropped=stats.columns_dropped,
        )
        return CleaningResult(df=df, stats=stats)


def clean_dataframe(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to clean a raw transaction DataFrame.

    Args:
        df: Raw transactions

    Returns:
        Cleaned DataFrame
    """
    return DataCleaner().clean(df).df
