"""
Visualization Module
"""
from .charts import ChartOutput, ChartRenderer, lump_categories, truncate_label

__all__ = [
    "ChartOutput",
    "ChartRenderer",
    "lump_categories",
    "truncate_label",
]
