"""
Spend Aggregation

Grouped sums of line spend (price x quantity):
- Per invoice
- Per customer
- Per day, ISO week and month, unioned into one time series table

Returns and cancellations (negative quantities) net against regular lines.
"""

from enum import Enum
from typing import Dict, Optional

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class SpendSeries(str, Enum):
    """Time bucket granularities"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _amount_expr(df: pl.DataFrame) -> pl.Expr:
    if "amount" in df.columns:
        return pl.col("amount")
    return pl.col("price").cast(pl.Float64) * pl.col("quantity")


def invoice_totals(df: pl.DataFrame, invoice_col: str = "invoice") -> pl.DataFrame:
    """Sum of line spend per invoice, invoices in first-seen order"""
    return (
        df.group_by(invoice_col, maintain_order=True)
        .agg(_amount_expr(df).sum().alias("invoice_amount"))
    )


def customer_totals(df: pl.DataFrame, customer_col: str = "customer_id") -> pl.DataFrame:
    """Sum of line spend per customer; lines without a customer are left out"""
    if customer_col not in df.columns:
        # fully missing columns are dropped during cleaning
        return pl.DataFrame(schema={customer_col: pl.String, "customer_amount": pl.Float64})
    return (
        df.filter(pl.col(customer_col).is_not_null())
        .group_by(customer_col, maintain_order=True)
        .agg(_amount_expr(df).sum().alias("customer_amount"))
    )


def _period_labels(date_col: str) -> Dict[SpendSeries, pl.Expr]:
    date = pl.col(date_col)
    return {
        SpendSeries.DAILY: date.dt.strftime("%Y-%m-%d"),
        SpendSeries.WEEKLY: pl.format(
            "{}-W{}",
            date.dt.iso_year(),
            date.dt.week().cast(pl.String).str.zfill(2),
        ),
        SpendSeries.MONTHLY: date.dt.strftime("%Y-%m"),
    }


def bucket_spend(
    df: pl.DataFrame,
    series: SpendSeries,
    date_col: str = "date",
) -> pl.DataFrame:
    """
    Spend for one granularity.

    Returns:
        DataFrame with series, period (label), date (earliest date in the
        bucket) and total_spend
    """
    label = _period_labels(date_col)[series]
    return (
        df.with_columns(label.alias("period"))
        .group_by("period")
        .agg([
            pl.col(date_col).min().alias("date"),
            _amount_expr(df).sum().alias("total_spend"),
        ])
        .select([
            pl.lit(series.value).alias("series"),
            pl.col("period"),
            pl.col("date"),
            pl.col("total_spend"),
        ])
    )


def spend_timeseries(df: pl.DataFrame, date_col: str = "date") -> pl.DataFrame:
    """
    Daily, weekly and monthly spend in one table.

    Sorted by (series, date).
    """
    if date_col not in df.columns:
        raise KeyError(f"Date column '{date_col}' not found")

    timeseries = pl.concat(
        [bucket_spend(df, series, date_col) for series in SpendSeries],
        how="vertical",
    ).sort(["series", "date"])

    logger.info(
        "Spend time series built",
        **{
            series.value: timeseries.filter(pl.col("series") == series.value).height
            for series in SpendSeries
        },
    )
    return timeseries


class SpendAggregator:
    """
    Computes every spend aggregate for a cleaned frame.

    Example:
        aggregator = SpendAggregator()
        invoices = aggregator.invoices(df)
        timeseries = aggregator.timeseries(df)
    """

    def __init__(
        self,
        invoice_col: str = "invoice",
        customer_col: str = "customer_id",
        date_col: str = "date",
    ):
        self.invoice_col = invoice_col
        self.customer_col = customer_col
        self.date_col = date_col

    def invoices(self, df: pl.DataFrame) -> pl.DataFrame:
        totals = invoice_totals(df, self.invoice_col)
        logger.info("Invoice totals", invoices=totals.height, total=totals["invoice_amount"].sum())
        return totals

    def customers(self, df: pl.DataFrame) -> pl.DataFrame:
        totals = customer_totals(df, self.customer_col)
        logger.info("Customer totals", customers=totals.height, total=totals["customer_amount"].sum())
        return totals

    def timeseries(self, df: pl.DataFrame, series: Optional[SpendSeries] = None) -> pl.DataFrame:
        if series is not None:
            return bucket_spend(df, series, self.date_col).sort("date")
        return spend_timeseries(df, self.date_col)
