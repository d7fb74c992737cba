"""
Valuation Calculator

Derives land, building and movable-asset values from survey inputs:
standard building rate with age depreciation, safety margin, liquidation
factor and a triangulation average. One calculation path serves both the
draft preview and the persisted report.
"""

from .models import (
    AssetType,
    BuildingCategory,
    BuildingStandard,
    DepreciationRule,
    PropertyValuationInput,
    MovableAssetValuationInput,
    ValuationInput,
    valuation_input_from_dict,
    BuildingRate,
    ComponentValue,
    ValuationTotals,
    ValuationResult,
)
from .catalog import (
    DEFAULT_BUILDING_STANDARDS,
    DEFAULT_DEPRECIATION_RULES,
    MetadataProvider,
    StaticMetadataProvider,
)
from .calculator import (
    round_half_up,
    coerce_amount,
    clamp_percent,
    select_building_standard,
    resolve_building_rate,
    compute_component,
    compute_average_value,
    aggregate,
    calculate_valuation,
)

__all__ = [
    # Models
    "AssetType",
    "BuildingCategory",
    "BuildingStandard",
    "DepreciationRule",
    "PropertyValuationInput",
    "MovableAssetValuationInput",
    "ValuationInput",
    "valuation_input_from_dict",
    "BuildingRate",
    "ComponentValue",
    "ValuationTotals",
    "ValuationResult",
    # Catalog
    "DEFAULT_BUILDING_STANDARDS",
    "DEFAULT_DEPRECIATION_RULES",
    "MetadataProvider",
    "StaticMetadataProvider",
    # Calculator
    "round_half_up",
    "coerce_amount",
    "clamp_percent",
    "select_building_standard",
    "resolve_building_rate",
    "compute_component",
    "compute_average_value",
    "aggregate",
    "calculate_valuation",
]
