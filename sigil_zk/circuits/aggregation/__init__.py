"""Aggregation circuits."""

from .repository import RepositoryAggregator, evaluate_portfolio
from .statistics import StatisticsAggregator, noise_bound

__all__ = [
    "RepositoryAggregator",
    "StatisticsAggregator",
    "evaluate_portfolio",
    "noise_bound",
]
