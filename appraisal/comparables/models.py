"""
Data models for the Comparable Analysis Aggregator

Market comparables are third-party transaction records used, with
adjustments and weighting, to triangulate a fair market price.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional


def _optional_float(value: Any) -> Optional[float]:
    """Parse a number; blanks, junk and non-finite values become None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class ComparableAdjustment:
    """A single price adjustment on a comparable (e.g. location, size)."""
    factor: str
    amount: float
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "factor": self.factor,
            "amount": self.amount,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComparableAdjustment":
        return cls(
            factor=str(data.get("factor", "")),
            amount=_optional_float(data.get("amount")) or 0.0,
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class MarketComparable:
    """
    A market comparable transaction or listing.

    weight is optional: a comparable without an explicit weight is
    reference-only and excluded from the weighted means.
    adjusted_price and final_price_per_square are derived unless the
    caller supplies them.
    """
    comparable_id: str
    source: str = ""
    address: str = ""
    distance: Optional[float] = None  # Metres from the subject
    land_area: float = 0.0
    building_area: float = 0.0
    price: float = 0.0
    adjustments: tuple[ComparableAdjustment, ...] = ()
    weight: Optional[float] = None

    # Derived (or caller-supplied)
    adjusted_price: Optional[int] = None
    final_price_per_square: Optional[int] = None

    transaction_date: Optional[str] = None  # ISO date
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "comparable_id": self.comparable_id,
            "source": self.source,
            "address": self.address,
            "distance": self.distance,
            "land_area": self.land_area,
            "building_area": self.building_area,
            "price": self.price,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "weight": self.weight,
            "adjusted_price": self.adjusted_price,
            "final_price_per_square": self.final_price_per_square,
            "transaction_date": self.transaction_date,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MarketComparable":
        """
        Build from a dictionary.

        Raises:
            ValueError: If comparable_id is missing
        """
        comparable_id = data.get("comparable_id") or data.get("id")
        if not comparable_id:
            raise ValueError("Comparable requires comparable_id")

        adjusted_price = _optional_float(data.get("adjusted_price"))
        final_pps = _optional_float(data.get("final_price_per_square"))

        return cls(
            comparable_id=str(comparable_id),
            source=str(data.get("source") or ""),
            address=str(data.get("address") or ""),
            distance=_optional_float(data.get("distance")),
            land_area=_optional_float(data.get("land_area")) or 0.0,
            building_area=_optional_float(data.get("building_area")) or 0.0,
            price=_optional_float(data.get("price")) or 0.0,
            adjustments=tuple(
                ComparableAdjustment.from_dict(a) for a in data.get("adjustments") or []
            ),
            weight=_optional_float(data.get("weight")),
            adjusted_price=int(adjusted_price) if adjusted_price is not None else None,
            final_price_per_square=int(final_pps) if final_pps is not None else None,
            transaction_date=data.get("transaction_date"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class ComparableAnalysisSummary:
    """
    Weighted market-price estimate from the weighted comparables.

    total_weight is the raw sum of explicit weights, not normalised, so
    callers can flag a deviation from the target total.
    """
    total_weight: float = 0.0
    weighted_average_price: Optional[int] = None
    weighted_average_price_per_square: Optional[int] = None
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_weight": self.total_weight,
            "weighted_average_price": self.weighted_average_price,
            "weighted_average_price_per_square": self.weighted_average_price_per_square,
            "notes": list(self.notes),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComparableAnalysisSummary":
        avg = data.get("weighted_average_price")
        avg_pps = data.get("weighted_average_price_per_square")
        return cls(
            total_weight=float(data.get("total_weight", 0)),
            weighted_average_price=int(avg) if avg is not None else None,
            weighted_average_price_per_square=int(avg_pps) if avg_pps is not None else None,
            notes=tuple(data.get("notes") or ()),
        )
