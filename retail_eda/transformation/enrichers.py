"""
Data Enrichment Module

Derives attributes from the raw transaction lines:
- Calendar fields from the invoice timestamp
- Cancellation flag from the invoice prefix
- Line amount (price x quantity)
"""

from typing import Optional

import polars as pl
import structlog

from retail_eda.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

CALENDAR_FEATURES = [
    "date",
    "year",
    "month",
    "day_of_week",
    "day_of_month",
    "hour",
    "minute",
    "week_of_year",
    "year_month",
    "month_day_proportion",
]


class DataEnricher:
    """
    Adds derived columns to transaction lines.

    Example:
        enricher = DataEnricher()
        df = enricher.add_calendar_features(df)
        df = enricher.add_cancellation_flag(df)
    """

    def __init__(self, cancellation_prefix: Optional[str] = None):
        self.cancellation_prefix = cancellation_prefix if cancellation_prefix is not None else settings.exploration.cancellation_prefix

    def add_calendar_features(
        self,
        df: pl.DataFrame,
        timestamp_col: str = "invoice_date",
    ) -> pl.DataFrame:
        """
        Add calendar fields derived from a timestamp column.

        Features added:
        - date, year, month name, weekday name
        - day of month, hour, minute, ISO week
        - year-month key
        - month_day_proportion: day of month over the largest day of month
          seen in the data for that year-month
        """
        if timestamp_col not in df.columns:
            raise KeyError(f"Timestamp column '{timestamp_col}' not found")

        ts = pl.col(timestamp_col)
        if df.schema[timestamp_col] == pl.String:
            ts = ts.str.to_datetime()

        df = df.with_columns([
            ts.dt.date().alias("date"),
            ts.dt.year().alias("year"),
            ts.dt.strftime("%B").alias("month"),
            ts.dt.strftime("%A").alias("day_of_week"),
            ts.dt.day().alias("day_of_month"),
            ts.dt.hour().alias("hour"),
            ts.dt.minute().alias("minute"),
            ts.dt.week().alias("week_of_year"),
            ts.dt.strftime("%Y-%m").alias("year_month"),
        ])

        # Observed maximum, not the calendar length of the month
        df = df.with_columns(
            (
                pl.col("day_of_month").cast(pl.Float64)
                / pl.col("day_of_month").max().over("year_month")
            ).alias("month_day_proportion")
        )

        return df

    def add_cancellation_flag(
        self,
        df: pl.DataFrame,
        invoice_col: str = "invoice",
    ) -> pl.DataFrame:
        """Flag lines whose invoice id carries the cancellation prefix"""
        return df.with_columns(
            pl.col(invoice_col)
            .cast(pl.String)
            .str.starts_with(self.cancellation_prefix)
            .fill_null(False)
            .alias("is_cancelled")
        )

    def add_line_amount(
        self,
        df: pl.DataFrame,
        price_col: str = "price",
        quantity_col: str = "quantity",
    ) -> pl.DataFrame:
        """Add amount = price x quantity"""
        return df.with_columns(
            (pl.col(price_col).cast(pl.Float64) * pl.col(quantity_col)).alias("amount")
        )


def enrich_transactions(
    df: pl.DataFrame,
    timestamp_col: str = "invoice_date",
) -> pl.DataFrame:
    """
    Convenience function applying all enrichments in order.

    Args:
        df: Transactions with normalized column names
        timestamp_col: Timestamp to derive calendar fields from

    Returns:
        Enriched DataFrame
    """
    enricher = DataEnricher()
    df = enricher.add_calendar_features(df, timestamp_col)
    df = enricher.add_cancellation_flag(df)
    df = enricher.add_line_amount(df)
    logger.debug("Transactions enriched", columns=df.width)
    return df
