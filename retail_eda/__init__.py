"""
Retail Transaction EDA

Exploratory report over retail transaction snapshots: cleaning, column
classification, missing-value profiling, charts and spend aggregates.
"""

__version__ = "1.0.0"
