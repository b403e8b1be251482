"""
Tail Index Estimation

Descriptive heavy-tail statistics for spend distributions. Nothing here
drives a threshold or decision downstream.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

import numpy as np
import polars as pl
from scipy import stats
import structlog

logger = structlog.get_logger(__name__)

ArrayLike = Union[np.ndarray, pl.Series, Sequence[float]]


@dataclass
class HillEstimate:
    """Hill estimates for every number of upper order statistics k"""
    k: np.ndarray
    gamma: np.ndarray  # extreme value index
    alpha: np.ndarray  # tail index, 1 / gamma
    n: int

    def at(self, k: int) -> float:
        """Tail index using the k largest observations"""
        if not 1 <= k < self.n:
            raise ValueError(f"k must be in [1, {self.n - 1}], got {k}")
        return float(self.alpha[k - 1])

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame({"k": self.k, "gamma": self.gamma, "alpha": self.alpha})


def _positive_finite(values: ArrayLike) -> np.ndarray:
    if isinstance(values, pl.Series):
        values = values.drop_nulls().to_numpy()
    x = np.asarray(values, dtype=float)
    return x[np.isfinite(x) & (x > 0)]


def hill_estimator(values: ArrayLike) -> HillEstimate:
    """
    Hill estimator over the positive values.

    With X(1) >= X(2) >= ... >= X(n):
        gamma_k = (1/k) * sum_{i<=k} ln X(i) - ln X(k+1),  k = 1..n-1
        alpha_k = 1 / gamma_k
    """
    x = np.sort(_positive_finite(values))[::-1]
    n = x.size
    if n < 2:
        raise ValueError("Hill estimator needs at least two positive values")

    log_x = np.log(x)
    k = np.arange(1, n)
    gamma = np.cumsum(log_x)[:-1] / k - log_x[1:]

    with np.errstate(divide="ignore"):
        alpha = np.where(gamma > 0, 1.0 / gamma, np.inf)

    return HillEstimate(k=k, gamma=gamma, alpha=alpha, n=n)


def describe_spend(values: ArrayLike) -> Dict[str, Optional[float]]:
    """Location, spread and shape of a spend distribution"""
    if isinstance(values, pl.Series):
        values = values.drop_nulls().to_numpy()
    x = np.asarray(values, dtype=float)
    x = x[np.isfinite(x)]

    if x.size == 0:
        return {
            "count": 0, "mean": None, "median": None, "p90": None,
            "p99": None, "skewness": None, "kurtosis": None,
        }

    summary = {
        "count": int(x.size),
        "mean": float(np.mean(x)),
        "median": float(np.median(x)),
        "p90": float(np.percentile(x, 90)),
        "p99": float(np.percentile(x, 99)),
        "skewness": float(stats.skew(x)) if x.size > 2 else None,
        "kurtosis": float(stats.kurtosis(x)) if x.size > 3 else None,
    }
    logger.info("Spend distribution", **summary)
    return summary
