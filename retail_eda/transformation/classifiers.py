"""
Column Classification

Tags every column of a frame with exactly one type bucket so later stages
(plotting, profiling, pruning) select columns from one explicit mapping
instead of re-inspecting dtypes.

Rules are ordered and the first match wins:
1. every value missing -> na
2. date / datetime / time dtype -> datetime
3. categorical or textual values -> discrete
4. boolean -> logical
5. anything else -> continuous
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class ColumnType(str, Enum):
    """Column type buckets"""
    DATETIME = "datetime"
    DISCRETE = "discrete"
    LOGICAL = "logical"
    CONTINUOUS = "continuous"
    NA = "na"


_TEMPORAL = (pl.Date, pl.Datetime, pl.Time)
_CATEGORICAL = (pl.Categorical, pl.Enum)


def missing_expr(name: str, dtype: pl.DataType) -> pl.Expr:
    """Missing-value mask for a column; NaN counts as missing for floats"""
    expr = pl.col(name).is_null()
    if dtype.is_float():
        expr = expr | pl.col(name).is_nan()
    return expr


def count_missing(series: pl.Series) -> int:
    """Number of missing entries in a series"""
    count = series.null_count()
    if series.dtype.is_float():
        count += int(series.is_nan().sum() or 0)
    return count


def _is_textual(series: pl.Series) -> bool:
    if series.dtype == pl.String:
        return True
    if series.dtype == pl.Object:
        return all(isinstance(v, str) for v in series.drop_nulls().to_list())
    return False


def classify_column(series: pl.Series) -> ColumnType:
    """Return the type bucket for a single column"""
    dtype = series.dtype

    if series.len() == 0 or dtype == pl.Null or count_missing(series) == series.len():
        return ColumnType.NA

    if dtype.base_type() in _TEMPORAL:
        return ColumnType.DATETIME

    if dtype.base_type() in _CATEGORICAL or _is_textual(series):
        return ColumnType.DISCRETE

    if dtype == pl.Boolean:
        return ColumnType.LOGICAL

    return ColumnType.CONTINUOUS


@dataclass(frozen=True)
class ColumnClassification:
    """Mapping from column name to its type bucket"""
    types: Dict[str, ColumnType] = field(default_factory=dict)

    @property
    def buckets(self) -> Dict[ColumnType, List[str]]:
        """Every bucket with its columns, in frame order"""
        return {column_type: self.columns(column_type) for column_type in ColumnType}

    def columns(self, column_type: ColumnType) -> List[str]:
        return [name for name, t in self.types.items() if t == column_type]

    def type_of(self, column: str) -> ColumnType:
        return self.types[column]

    def without(self, columns: Iterable[str]) -> "ColumnClassification":
        """Copy with the given columns removed"""
        excluded = set(columns)
        return ColumnClassification(
            {name: t for name, t in self.types.items() if name not in excluded}
        )

    def summary(self) -> Dict[str, int]:
        return {column_type.value: len(cols) for column_type, cols in self.buckets.items()}

    def __contains__(self, column: str) -> bool:
        return column in self.types

    def __len__(self) -> int:
        return len(self.types)


def classify_columns(df: pl.DataFrame) -> ColumnClassification:
    """
    Classify every column of a DataFrame.

    Args:
        df: Input DataFrame

    Returns:
        ColumnClassification covering all columns exactly once
    """
    classification = ColumnClassification(
        {name: classify_column(df.get_column(name)) for name in df.columns}
    )
    logger.info("Columns classified", **classification.summary())
    return classification
