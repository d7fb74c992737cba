"""
Comparable Analysis Aggregator

Derives adjusted prices for market comparables and aggregates them into a
weighted market-price estimate.

Rules:
- adjusted_price = caller value, else round(price + sum of adjustment amounts)
- final_price_per_square = round(adjusted_price / (land_area + building_area))
  when the area sum is positive, else the caller value (or None)
- Weighted means use only comparables that carry an explicit positive weight;
  unweighted comparables are reference-only, never given an equal share
- total_weight is returned verbatim; deviation from the target is flagged
  by the quality engine, never rejected here
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence

from appraisal.comparables.models import ComparableAnalysisSummary, MarketComparable
from appraisal.valuation.calculator import coerce_amount, round_half_up


logger = logging.getLogger(__name__)


DEFAULT_WEIGHT_TARGET = 100.0
DEFAULT_WEIGHT_TOLERANCE = 0.5


def _finite_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _rounded_or_none(value: Any) -> Optional[int]:
    number = _finite_or_none(value)
    return round_half_up(number) if number is not None else None


def derive_comparable(comparable: MarketComparable) -> MarketComparable:
    """Fill in adjusted_price and final_price_per_square where derivable."""
    adjusted_price = _rounded_or_none(comparable.adjusted_price)
    if adjusted_price is None:
        amounts = (_finite_or_none(a.amount) for a in comparable.adjustments)
        adjustment_total = sum(amount for amount in amounts if amount is not None)
        adjusted_price = max(0, round_half_up(coerce_amount(comparable.price) + adjustment_total))

    final_price_per_square = _rounded_or_none(comparable.final_price_per_square)
    area = coerce_amount(comparable.land_area) + coerce_amount(comparable.building_area)
    if area > 0:
        final_price_per_square = round_half_up(adjusted_price / area)

    return replace(
        comparable,
        adjusted_price=adjusted_price,
        final_price_per_square=final_price_per_square,
    )


def normalise_comparables(comparables: Iterable[MarketComparable]) -> tuple[MarketComparable, ...]:
    """Derive every comparable in input order."""
    return tuple(derive_comparable(c) for c in comparables)


def effective_weight(comparable: MarketComparable) -> Optional[float]:
    """Explicit positive weight, or None for a reference-only comparable."""
    if comparable.weight is None:
        return None
    weight = coerce_amount(comparable.weight)
    return weight if weight > 0 else None


def compute_comparable_analysis(
    comparables: Sequence[MarketComparable],
    notes: Iterable[str] = (),
) -> ComparableAnalysisSummary:
    """
    Aggregate comparables into a weighted market-price estimate.

    Args:
        comparables: Comparables (raw or already derived)
        notes: Caller-supplied commentary, passed through untouched

    Returns:
        ComparableAnalysisSummary; empty or all-unweighted input yields
        total_weight == 0 and no averages
    """
    total_weight = 0.0
    price_accumulator = 0.0
    pps_accumulator = 0.0
    pps_weight = 0.0

    for comparable in normalise_comparables(comparables):
        weight = effective_weight(comparable)
        if weight is None:
            continue

        total_weight += weight
        price_accumulator += comparable.adjusted_price * weight
        if comparable.final_price_per_square is not None:
            pps_accumulator += comparable.final_price_per_square * weight
            pps_weight += weight

    summary = ComparableAnalysisSummary(
        total_weight=total_weight,
        weighted_average_price=(
            round_half_up(price_accumulator / total_weight) if total_weight > 0 else None
        ),
        weighted_average_price_per_square=(
            round_half_up(pps_accumulator / pps_weight) if pps_weight > 0 else None
        ),
        notes=tuple(notes),
    )

    logger.debug(
        "Comparable analysis: %d comparables, total_weight=%.2f",
        len(comparables),
        total_weight,
    )
    return summary


def weight_total_within_target(
    total_weight: float,
    target: float = DEFAULT_WEIGHT_TARGET,
    tolerance: float = DEFAULT_WEIGHT_TOLERANCE,
) -> bool:
    """Whether a weight total is within tolerance of the target."""
    return abs(total_weight - target) <= tolerance
