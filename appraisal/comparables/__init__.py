"""
Comparable Analysis Aggregator

Turns a list of market comparables into a weighted market-price estimate.
"""

from .models import (
    ComparableAdjustment,
    MarketComparable,
    ComparableAnalysisSummary,
)
from .analysis import (
    DEFAULT_WEIGHT_TARGET,
    DEFAULT_WEIGHT_TOLERANCE,
    derive_comparable,
    normalise_comparables,
    effective_weight,
    compute_comparable_analysis,
    weight_total_within_target,
)

__all__ = [
    "ComparableAdjustment",
    "MarketComparable",
    "ComparableAnalysisSummary",
    "DEFAULT_WEIGHT_TARGET",
    "DEFAULT_WEIGHT_TOLERANCE",
    "derive_comparable",
    "normalise_comparables",
    "effective_weight",
    "compute_comparable_analysis",
    "weight_total_within_target",
]
