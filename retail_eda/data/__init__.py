"""
Data Generation Module
"""
from .generators import RAW_COLUMNS, TransactionGenerator

__all__ = [
    "RAW_COLUMNS",
    "TransactionGenerator",
]
