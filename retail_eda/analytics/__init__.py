"""
Spend Analytics Module
"""
from .aggregators import SpendAggregator, SpendSeries, customer_totals, invoice_totals, spend_timeseries
from .tail_index import HillEstimate, describe_spend, hill_estimator

__all__ = [
    "SpendAggregator",
    "SpendSeries",
    "customer_totals",
    "invoice_totals",
    "spend_timeseries",
    "HillEstimate",
    "describe_spend",
    "hill_estimator",
]
