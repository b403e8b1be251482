"""
Data Transformation Module
"""
from .classifiers import ColumnClassification, ColumnType, classify_column, classify_columns
from .cleaners import CleaningResult, CleaningStats, DataCleaner, clean_dataframe, normalize_column_name
from .enrichers import DataEnricher, enrich_transactions

__all__ = [
    "ColumnClassification",
    "ColumnType",
    "classify_column",
    "classify_columns",
    "CleaningResult",
    "CleaningStats",
    "DataCleaner",
    "clean_dataframe",
    "normalize_column_name",
    "DataEnricher",
    "enrich_transactions",
]
