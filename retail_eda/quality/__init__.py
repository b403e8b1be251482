"""
Data Quality Module
"""
from .profiler import MissingProfile, MissingProfiler, missing_patterns, missing_summary
from .validators import DataValidationError, DataValidator, ValidationResult

__all__ = [
    "MissingProfile",
    "MissingProfiler",
    "missing_patterns",
    "missing_summary",
    "DataValidationError",
    "DataValidator",
    "ValidationResult",
]
