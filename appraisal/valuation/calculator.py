"""
Valuation Calculator

Implements:
- Building rate resolution (standard rate + age-based depreciation)
- Per-component values (before safety, safety deduction, after safety, liquidation)
- Triangulation average value (never fed back into the adopted value)
- Aggregation of rounded components into report totals

This is the single calculation path shared by the draft preview and the
persisted report. Every function is total: invalid numbers degrade to 0,
nothing here raises on numeric input.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from appraisal.valuation.models import (
    AssetType,
    BuildingRate,
    BuildingStandard,
    ComponentValue,
    DepreciationRule,
    MovableAssetValuationInput,
    PropertyValuationInput,
    ValuationInput,
    ValuationResult,
    ValuationTotals,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Numeric Policy
# =============================================================================


def round_half_up(value: float) -> int:
    """
    Round to the nearest whole currency unit, halves away from zero.

    Python's round() uses banker's rounding, which would make
    12.5 -> 12. Valuation figures always round 12.5 -> 13.
    """
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def coerce_amount(value: Any) -> float:
    """Coerce an area, rate or price to a finite non-negative float (else 0)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def clamp_percent(value: Any) -> float:
    """Coerce a percentage into [0, 100]."""
    return min(coerce_amount(value), 100.0)


# =============================================================================
# Building Rate
# =============================================================================


def select_building_standard(
    standards: Sequence[BuildingStandard],
    code: Optional[str],
) -> tuple[Optional[BuildingStandard], bool]:
    """
    Pick the building standard for a code.

    Args:
        standards: Full catalog from the metadata provider
        code: Requested standard code (empty means none selected)

    Returns:
        Tuple of (standard or None, fallback_applied). An unknown code
        falls back to the first catalog entry with fallback_applied=True.
    """
    if not code or not standards:
        return None, False

    for standard in standards:
        if standard.code == code:
            return standard, False

    return standards[0], True


def depreciation_percent_for_age(age: int, rules: Iterable[DepreciationRule]) -> float:
    """First matching rule in supplied order wins; no match means 0%."""
    for rule in rules:
        if rule.matches(age):
            return clamp_percent(rule.percent)
    return 0.0


def resolve_building_rate(
    standard: Optional[BuildingStandard],
    year_built: Optional[int] = None,
    reference_date: Optional[date] = None,
    rules: Iterable[DepreciationRule] = (),
) -> BuildingRate:
    """
    Resolve the depreciated building rate.

    Age = max(0, reference year - year built). The reference year comes
    from reference_date (the appraisal date) or the current year.

    Args:
        standard: Selected building standard (None -> all zeros)
        year_built: Construction year (None -> no depreciation)
        reference_date: Date the age is measured at
        rules: Ordered depreciation rules

    Returns:
        BuildingRate with standard rate, depreciation percent and adjusted rate
    """
    if standard is None:
        return BuildingRate.zero()

    standard_rate = int(coerce_amount(standard.base_rate))

    age: Optional[int] = None
    depreciation_percent = 0.0
    if year_built is not None and coerce_amount(year_built) > 0:
        reference_year = (reference_date or date.today()).year
        age = max(0, reference_year - int(year_built))
        depreciation_percent = depreciation_percent_for_age(age, rules)

    adjusted_rate = round_half_up(standard_rate * (100 - depreciation_percent) / 100)

    return BuildingRate(
        standard_code=standard.code,
        standard_rate=standard_rate,
        depreciation_percent=depreciation_percent,
        adjusted_rate=adjusted_rate,
        age=age,
    )


# =============================================================================
# Components
# =============================================================================


def _component_from_value(
    value_before_safety: int,
    safety_margin_percent: float,
    liquidation_factor_percent: float,
    apply_safety: bool,
) -> ComponentValue:
    safety_deduction = 0
    if apply_safety:
        safety_deduction = round_half_up(
            value_before_safety * clamp_percent(safety_margin_percent) / 100
        )
    value_after_safety = value_before_safety - safety_deduction
    liquidation_value = round_half_up(
        value_after_safety * clamp_percent(liquidation_factor_percent) / 100
    )
    return ComponentValue(
        value_before_safety=value_before_safety,
        safety_deduction=safety_deduction,
        value_after_safety=value_after_safety,
        liquidation_value=liquidation_value,
    )


def compute_component(
    area: Any,
    rate: Any,
    safety_margin_percent: Any,
    liquidation_factor_percent: Any,
    apply_safety: bool,
) -> ComponentValue:
    """
    Value one land or building component.

    value_before_safety = round(area x rate)
    safety_deduction    = round(value_before_safety x margin%) if apply_safety else 0
    value_after_safety  = value_before_safety - safety_deduction
    liquidation_value   = round(value_after_safety x liquidation%)

    Negative, NaN or non-numeric area/rate count as 0.
    """
    value_before_safety = round_half_up(coerce_amount(area) * coerce_amount(rate))
    return _component_from_value(
        value_before_safety,
        safety_margin_percent,
        liquidation_factor_percent,
        apply_safety,
    )


def compute_average_value(*candidates: Optional[float]) -> Optional[int]:
    """
    Triangulation figure: mean of the defined, positive candidates.

    Returns None when no candidate is positive.
    """
    values = [coerce_amount(c) for c in candidates if c is not None]
    values = [v for v in values if v > 0]
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def _reference_value(area: float, reference_rate: Optional[float]) -> Optional[float]:
    if reference_rate is None:
        return None
    return coerce_amount(area) * coerce_amount(reference_rate)


def _totals(components: Sequence[ComponentValue]) -> ValuationTotals:
    before_safety = sum(c.value_before_safety for c in components)
    averages = [c.average_value for c in components if c.average_value is not None]
    return ValuationTotals(
        market_value=before_safety,
        market_value_before_safety=before_safety,
        total_safety_deduction=sum(c.safety_deduction for c in components),
        collateral_value_after_safety=sum(c.value_after_safety for c in components),
        liquidation_value=sum(c.liquidation_value for c in components),
        total_average_value=sum(averages) if averages else None,
    )


def aggregate(land: ComponentValue, building: ComponentValue) -> ValuationTotals:
    """
    Sum land and building into report totals.

    Market value is reported before safety margin. Totals are sums of
    the rounded component figures, never re-rounded.
    """
    return _totals((land, building))


# =============================================================================
# Full Valuation
# =============================================================================


def _calculate_property(
    valuation_input: PropertyValuationInput,
    standards: Sequence[BuildingStandard],
    rules: Sequence[DepreciationRule],
    year_built: Optional[int],
    reference_date: Optional[date],
) -> ValuationResult:
    # Step 1: Resolve building standard (fallback to first catalog entry)
    standard, fallback_applied = select_building_standard(
        standards, valuation_input.building_standard_code
    )
    if fallback_applied:
        logger.warning(
            "Building standard %r not in catalog, falling back to %s",
            valuation_input.building_standard_code,
            standard.code,
        )

    # Step 2: Depreciated building rate
    building_rate = resolve_building_rate(standard, year_built, reference_date, rules)
    if fallback_applied:
        building_rate = replace(building_rate, fallback_applied=True)

    # Step 3: Components (land never receives a safety deduction)
    land = compute_component(
        valuation_input.land_area,
        valuation_input.land_rate,
        valuation_input.safety_margin_percent,
        valuation_input.liquidation_factor_percent,
        apply_safety=False,
    )
    building = compute_component(
        valuation_input.building_area,
        building_rate.adjusted_rate,
        valuation_input.safety_margin_percent,
        valuation_input.liquidation_factor_percent,
        apply_safety=True,
    )

    # Step 4: Triangulation averages
    land = replace(land, average_value=compute_average_value(
        land.value_before_safety,
        _reference_value(valuation_input.land_area, valuation_input.land_reference_rate),
        valuation_input.njop_land,
    ))
    building = replace(building, average_value=compute_average_value(
        building.value_before_safety,
        _reference_value(valuation_input.building_area, valuation_input.building_reference_rate),
        valuation_input.njop_building,
    ))

    # Step 5: Aggregate
    totals = aggregate(land, building)

    return ValuationResult(
        asset_type=AssetType.PROPERTY,
        market_value=totals.market_value,
        market_value_before_safety=totals.market_value_before_safety,
        total_safety_deduction=totals.total_safety_deduction,
        collateral_value_after_safety=totals.collateral_value_after_safety,
        liquidation_value=totals.liquidation_value,
        total_average_value=totals.total_average_value,
        land=land,
        building=building,
        building_rate=building_rate,
    )


def _calculate_movable_asset(valuation_input: MovableAssetValuationInput) -> ValuationResult:
    asset = _component_from_value(
        round_half_up(coerce_amount(valuation_input.market_price)),
        valuation_input.safety_margin_percent,
        valuation_input.liquidation_factor_percent,
        apply_safety=True,
    )
    totals = _totals((asset,))

    return ValuationResult(
        asset_type=valuation_input.asset_type,
        market_value=totals.market_value,
        market_value_before_safety=totals.market_value_before_safety,
        total_safety_deduction=totals.total_safety_deduction,
        collateral_value_after_safety=totals.collateral_value_after_safety,
        liquidation_value=totals.liquidation_value,
        asset=asset,
    )


def calculate_valuation(
    valuation_input: ValuationInput,
    standards: Sequence[BuildingStandard] = (),
    rules: Sequence[DepreciationRule] = (),
    year_built: Optional[int] = None,
    reference_date: Optional[date] = None,
) -> ValuationResult:
    """
    Compute the complete valuation for one collateral input.

    Args:
        valuation_input: Property or movable-asset input
        standards: Building standard catalog (property only)
        rules: Ordered depreciation rules (property only)
        year_built: Construction year from the technical survey
        reference_date: Appraisal date used for building age

    Returns:
        ValuationResult with components and aggregate totals

    Raises:
        TypeError: If valuation_input is not one of the known variants
    """
    if isinstance(valuation_input, PropertyValuationInput):
        result = _calculate_property(valuation_input, standards, rules, year_built, reference_date)
    elif isinstance(valuation_input, MovableAssetValuationInput):
        result = _calculate_movable_asset(valuation_input)
    else:
        raise TypeError(f"Unsupported valuation input: {type(valuation_input).__name__}")

    logger.debug(
        "Valuation computed: asset_type=%s market_value=%d liquidation_value=%d",
        result.asset_type.value,
        result.market_value,
        result.liquidation_value,
    )
    return result
