"""
Domain Services Package

Architectural Intent:
- Contains domain services implementing rollout logic that does not belong to
  a single entity
"""

from factroll.domain.services.fact_grouper import (
    FactGrouper,
    Grouping,
    MissingFactPolicy,
)
from factroll.domain.services.result_aggregator import ResultAggregator

__all__ = [
    "FactGrouper",
    "Grouping",
    "MissingFactPolicy",
    "ResultAggregator",
]
