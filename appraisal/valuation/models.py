"""
Data models for the Valuation Calculator

Defines the reference data (building standards, depreciation rules), the
asset-type tagged valuation input and the valuation result structures.

Monetary outputs are whole currency units (int). Aggregate fields of a
ValuationResult are always sums of the already-rounded component fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class AssetType(Enum):
    """
    Collateral asset type.

    PROPERTY is valued as land + building.
    VEHICLE and MACHINE are valued from a single market price.
    """
    PROPERTY = "property"
    VEHICLE = "vehicle"
    MACHINE = "machine"

    @classmethod
    def from_string(cls, value: str) -> Optional["AssetType"]:
        """Convert string to AssetType, case-insensitive."""
        normalised = str(value).lower().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


class BuildingCategory(Enum):
    """Building standard category."""
    HOUSE_SHOPHOUSE = "rumah_ruko"
    SIMPLE_HOUSE = "rumah_sederhana"


# =============================================================================
# Reference Data
# =============================================================================


@dataclass(frozen=True)
class BuildingStandard:
    """
    A building construction standard with its replacement rate per m2.

    Immutable reference data supplied by the metadata provider.
    """
    code: str
    name: str
    category: BuildingCategory
    floors: int
    base_rate: int  # Currency per m2
    specification: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "category": self.category.value,
            "floors": self.floors,
            "base_rate": self.base_rate,
            "specification": list(self.specification),
        }


@dataclass(frozen=True)
class DepreciationRule:
    """
    Age bracket for building depreciation.

    Matches ages in [min_age, max_age). max_age None means unbounded.
    """
    min_age: int
    max_age: Optional[int]
    percent: float

    def matches(self, age: int) -> bool:
        """Whether an age in whole years falls inside this bracket."""
        if age < self.min_age:
            return False
        return self.max_age is None or age < self.max_age

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_age": self.min_age,
            "max_age": self.max_age,
            "percent": self.percent,
        }


# =============================================================================
# Valuation Input (closed tagged variant)
# =============================================================================


@dataclass(frozen=True)
class PropertyValuationInput:
    """
    Valuation input for land and building collateral.

    NJOP figures and reference rates only feed the triangulation
    average value, never the adopted value.
    """
    land_area: float = 0.0
    building_area: float = 0.0
    land_rate: float = 0.0
    building_standard_code: str = ""
    safety_margin_percent: float = 0.0
    liquidation_factor_percent: float = 0.0

    # Triangulation inputs
    njop_land: Optional[float] = None
    njop_building: Optional[float] = None
    land_reference_rate: Optional[float] = None
    building_reference_rate: Optional[float] = None

    @property
    def asset_type(self) -> AssetType:
        return AssetType.PROPERTY

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_type": self.asset_type.value,
            "land_area": self.land_area,
            "building_area": self.building_area,
            "land_rate": self.land_rate,
            "building_standard_code": self.building_standard_code,
            "safety_margin_percent": self.safety_margin_percent,
            "liquidation_factor_percent": self.liquidation_factor_percent,
            "njop_land": self.njop_land,
            "njop_building": self.njop_building,
            "land_reference_rate": self.land_reference_rate,
            "building_reference_rate": self.building_reference_rate,
        }


@dataclass(frozen=True)
class MovableAssetValuationInput:
    """Valuation input for vehicles and machines (single market price)."""
    asset_type: AssetType = AssetType.VEHICLE
    market_price: float = 0.0
    safety_margin_percent: float = 0.0
    liquidation_factor_percent: float = 0.0

    def __post_init__(self) -> None:
        if self.asset_type == AssetType.PROPERTY:
            raise ValueError("Property collateral requires PropertyValuationInput")

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_type": self.asset_type.value,
            "market_price": self.market_price,
            "safety_margin_percent": self.safety_margin_percent,
            "liquidation_factor_percent": self.liquidation_factor_percent,
        }


ValuationInput = Union[PropertyValuationInput, MovableAssetValuationInput]


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _number(value: Any) -> float:
    parsed = _optional_number(value)
    return 0.0 if parsed is None else parsed


def valuation_input_from_dict(data: Optional[dict[str, Any]]) -> ValuationInput:
    """
    Build the asset-type variant from a raw dictionary.

    Missing or unparsable numbers become 0 / None so that incomplete
    drafts always produce an input.

    Raises:
        ValueError: If asset_type is present but not a known type
    """
    data = data or {}
    raw_type = data.get("asset_type") or AssetType.PROPERTY.value
    asset_type = AssetType.from_string(raw_type)
    if asset_type is None:
        raise ValueError(f"Invalid asset_type: {raw_type}")

    if asset_type == AssetType.PROPERTY:
        return PropertyValuationInput(
            land_area=_number(data.get("land_area")),
            building_area=_number(data.get("building_area")),
            land_rate=_number(data.get("land_rate")),
            building_standard_code=str(data.get("building_standard_code") or ""),
            safety_margin_percent=_number(data.get("safety_margin_percent")),
            liquidation_factor_percent=_number(data.get("liquidation_factor_percent")),
            njop_land=_optional_number(data.get("njop_land")),
            njop_building=_optional_number(data.get("njop_building")),
            land_reference_rate=_optional_number(data.get("land_reference_rate")),
            building_reference_rate=_optional_number(data.get("building_reference_rate")),
        )

    return MovableAssetValuationInput(
        asset_type=asset_type,
        market_price=_number(data.get("market_price")),
        safety_margin_percent=_number(data.get("safety_margin_percent")),
        liquidation_factor_percent=_number(data.get("liquidation_factor_percent")),
    )


# =============================================================================
# Valuation Result
# =============================================================================


@dataclass(frozen=True)
class BuildingRate:
    """Resolved building rate after depreciation."""
    standard_code: Optional[str]
    standard_rate: int
    depreciation_percent: float
    adjusted_rate: int
    age: Optional[int] = None
    fallback_applied: bool = False  # Requested code absent from catalog

    @classmethod
    def zero(cls) -> "BuildingRate":
        return cls(standard_code=None, standard_rate=0, depreciation_percent=0, adjusted_rate=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "standard_code": self.standard_code,
            "standard_rate": self.standard_rate,
            "depreciation_percent": self.depreciation_percent,
            "adjusted_rate": self.adjusted_rate,
            "age": self.age,
            "fallback_applied": self.fallback_applied,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildingRate":
        return cls(
            standard_code=data.get("standard_code"),
            standard_rate=int(data.get("standard_rate", 0)),
            depreciation_percent=float(data.get("depreciation_percent", 0)),
            adjusted_rate=int(data.get("adjusted_rate", 0)),
            age=data.get("age"),
            fallback_applied=bool(data.get("fallback_applied", False)),
        )


@dataclass(frozen=True)
class ComponentValue:
    """Valuation of one component (land, building or a movable asset)."""
    value_before_safety: int
    safety_deduction: int
    value_after_safety: int
    liquidation_value: int
    average_value: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value_before_safety": self.value_before_safety,
            "safety_deduction": self.safety_deduction,
            "value_after_safety": self.value_after_safety,
            "liquidation_value": self.liquidation_value,
            "average_value": self.average_value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentValue":
        average = data.get("average_value")
        return cls(
            value_before_safety=int(data.get("value_before_safety", 0)),
            safety_deduction=int(data.get("safety_deduction", 0)),
            value_after_safety=int(data.get("value_after_safety", 0)),
            liquidation_value=int(data.get("liquidation_value", 0)),
            average_value=int(average) if average is not None else None,
        )


@dataclass(frozen=True)
class ValuationTotals:
    """
    Aggregate figures summed from rounded components.

    market_value is reported before safety margin; the margin only
    affects collateral_value_after_safety.
    """
    market_value: int
    market_value_before_safety: int
    total_safety_deduction: int
    collateral_value_after_safety: int
    liquidation_value: int
    total_average_value: Optional[int] = None


@dataclass(frozen=True)
class ValuationResult:
    """
    Complete valuation result for one collateral input.

    Property results carry land and building components; vehicle and
    machine results carry a single asset component.
    """
    asset_type: AssetType
    market_value: int
    market_value_before_safety: int
    total_safety_deduction: int
    collateral_value_after_safety: int
    liquidation_value: int
    total_average_value: Optional[int] = None

    land: Optional[ComponentValue] = None
    building: Optional[ComponentValue] = None
    asset: Optional[ComponentValue] = None
    building_rate: Optional[BuildingRate] = None

    @classmethod
    def empty(cls, asset_type: AssetType = AssetType.PROPERTY) -> "ValuationResult":
        return cls(
            asset_type=asset_type,
            market_value=0,
            market_value_before_safety=0,
            total_safety_deduction=0,
            collateral_value_after_safety=0,
            liquidation_value=0,
        )

    @property
    def components(self) -> tuple[ComponentValue, ...]:
        return tuple(c for c in (self.land, self.building, self.asset) if c is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_type": self.asset_type.value,
            "market_value": self.market_value,
            "market_value_before_safety": self.market_value_before_safety,
            "total_safety_deduction": self.total_safety_deduction,
            "collateral_value_after_safety": self.collateral_value_after_safety,
            "liquidation_value": self.liquidation_value,
            "total_average_value": self.total_average_value,
            "land": self.land.to_dict() if self.land else None,
            "building": self.building.to_dict() if self.building else None,
            "asset": self.asset.to_dict() if self.asset else None,
            "building_rate": self.building_rate.to_dict() if self.building_rate else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ValuationResult":
        def component(key: str) -> Optional[ComponentValue]:
            raw = data.get(key)
            return ComponentValue.from_dict(raw) if raw else None

        asset_type = AssetType.from_string(data.get("asset_type", "property")) or AssetType.PROPERTY
        total_average = data.get("total_average_value")
        rate = data.get("building_rate")
        return cls(
            asset_type=asset_type,
            market_value=int(data.get("market_value", 0)),
            market_value_before_safety=int(data.get("market_value_before_safety", 0)),
            total_safety_deduction=int(data.get("total_safety_deduction", 0)),
            collateral_value_after_safety=int(data.get("collateral_value_after_safety", 0)),
            liquidation_value=int(data.get("liquidation_value", 0)),
            total_average_value=int(total_average) if total_average is not None else None,
            land=component("land"),
            building=component("building"),
            asset=component("asset"),
            building_rate=BuildingRate.from_dict(rate) if rate else None,
        )
