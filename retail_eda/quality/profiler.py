"""
Missing Value Profiling

Univariate and multivariate views of missing data:
- Per-column missing counts and proportions
- Missingness signatures (which columns are missing together) with
  their frequencies, and the combination matrix used for heatmaps
- Severity flags for columns with a notable share of missing values
- Summary statistics for continuous columns
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import polars as pl
import structlog

from retail_eda.transformation.classifiers import count_missing, missing_expr

logger = structlog.get_logger(__name__)

PATTERN_COUNT = "pattern_count"
PATTERN_PROPORTION = "pattern_proportion"


class MissingSeverity(str, Enum):
    """Severity of a column's missing share"""
    CRITICAL = "critical"  # more than half missing
    HIGH = "high"
    MEDIUM = "medium"


@dataclass
class MissingFlag:
    """A column with a notable share of missing values"""
    column: str
    severity: MissingSeverity
    missing_count: int
    missing_proportion: float
    message: str


@dataclass
class MissingProfile:
    """Complete missing-value profile of a frame"""
    total_rows: int
    summary: pl.DataFrame
    patterns: pl.DataFrame
    flags: List[MissingFlag] = field(default_factory=list)

    @property
    def complete_rows(self) -> int:
        """Rows with no missing value in any column"""
        if self.patterns.is_empty():
            return 0
        value_cols = [c for c in self.patterns.columns if c not in (PATTERN_COUNT, PATTERN_PROPORTION)]
        complete = self.patterns.filter(
            pl.sum_horizontal([pl.col(c) for c in value_cols]) == 0
        ) if value_cols else self.patterns
        return int(complete[PATTERN_COUNT].sum())

    @property
    def columns_with_missing(self) -> List[str]:
        return self.summary.filter(pl.col("missing_count") > 0)["column"].to_list()


def missing_summary(df: pl.DataFrame) -> pl.DataFrame:
    """
    Count missing entries per column.

    Returns:
        DataFrame with column, missing_count and missing_proportion,
        one row per input column in frame order
    """
    total = df.height
    counts = [count_missing(df.get_column(col)) for col in df.columns]
    proportions = [(count / total) if total > 0 else 0.0 for count in counts]

    return pl.DataFrame(
        {
            "column": df.columns,
            "missing_count": counts,
            "missing_proportion": proportions,
        },
        schema={
            "column": pl.String,
            "missing_count": pl.Int64,
            "missing_proportion": pl.Float64,
        },
    )


def missing_patterns(df: pl.DataFrame) -> pl.DataFrame:
    """
    Group rows by their joint missingness signature.

    Each input column becomes a 0/1 indicator (1 = missing). Rows are counted
    per distinct signature and each signature's share of all rows is added.
    Sorted by count descending; ties keep first-seen order.
    """
    if df.width == 0 or df.height == 0:
        schema = {col: pl.Int8 for col in df.columns}
        schema.update({PATTERN_COUNT: pl.UInt32, PATTERN_PROPORTION: pl.Float64})
        return pl.DataFrame(schema=schema)

    indicators = df.select([
        missing_expr(col, dtype).cast(pl.Int8).alias(col)
        for col, dtype in df.schema.items()
    ])

    return (
        indicators
        .group_by(indicators.columns, maintain_order=True)
        .agg(pl.len().alias(PATTERN_COUNT))
        .with_columns((pl.col(PATTERN_COUNT) / df.height).alias(PATTERN_PROPORTION))
        .sort(PATTERN_COUNT, descending=True, maintain_order=True)
    )


def combination_matrix(patterns: pl.DataFrame) -> Tuple[np.ndarray, List[str], List[str]]:
    """
    Turn a missing-pattern table into a heatmap-ready matrix.

    Returns:
        (matrix of signatures x columns, column labels, row labels showing
        each signature's proportion)
    """
    value_cols = [c for c in patterns.columns if c not in (PATTERN_COUNT, PATTERN_PROPORTION)]
    if patterns.is_empty():
        return np.zeros((0, len(value_cols)), dtype=np.int8), value_cols, []

    matrix = patterns.select(value_cols).to_numpy().astype(np.int8)
    row_labels = [
        f"{count} ({proportion:.1%})"
        for count, proportion in zip(patterns[PATTERN_COUNT], patterns[PATTERN_PROPORTION])
    ]
    return matrix, value_cols, row_labels


def flag_missing_columns(
    summary: pl.DataFrame,
    threshold: float = 0.05,
) -> List[MissingFlag]:
    """Flag columns whose missing share exceeds the threshold"""
    flags = []
    for row in summary.iter_rows(named=True):
        proportion = row["missing_proportion"]
        if proportion <= threshold:
            continue

        severity = (
            MissingSeverity.CRITICAL if proportion > 0.5
            else MissingSeverity.HIGH if proportion > 0.2
            else MissingSeverity.MEDIUM
        )
        flags.append(MissingFlag(
            column=row["column"],
            severity=severity,
            missing_count=row["missing_count"],
            missing_proportion=proportion,
            message=f"{row['column']} has {row['missing_count']} ({proportion:.1%}) missing values",
        ))
    return flags


def continuous_summary(df: pl.DataFrame, columns: Optional[List[str]] = None) -> pl.DataFrame:
    """Descriptive statistics for numeric columns"""
    columns = columns if columns is not None else [
        col for col, dtype in df.schema.items() if dtype.is_numeric()
    ]
    if not columns:
        return pl.DataFrame()
    return df.select(columns).describe()


class MissingProfiler:
    """
    Builds the missing-value profile of a frame.

    Example:
        profile = MissingProfiler().profile(df)
        profile.summary        # per column
        profile.patterns       # per signature
    """

    def __init__(self, flag_threshold: float = 0.05):
        self.flag_threshold = flag_threshold

    def profile(self, df: pl.DataFrame) -> MissingProfile:
        summary = missing_summary(df)
        patterns = missing_patterns(df)
        flags = flag_missing_columns(summary, self.flag_threshold)

        profile = MissingProfile(
            total_rows=df.height,
            summary=summary,
            patterns=patterns,
            flags=flags,
        )

        logger.info(
            "Missing value profile",
            rows=df.height,
            columns_with_missing=len(profile.columns_with_missing),
            distinct_patterns=patterns.height,
            complete_rows=profile.complete_rows,
        )
        for flag in flags:
            logger.warning(flag.message, severity=flag.severity.value)

        return profile

