"""
Building Standard Catalog - Metadata Provider

Supplies the building standard catalog and the ordered depreciation rules
handed to the calculator on every computation. The calculator never caches
this data; callers fetch the whole catalog per call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Final, Optional

from appraisal.valuation.models import (
    BuildingCategory,
    BuildingStandard,
    DepreciationRule,
)


# =============================================================================
# Default Catalog
# =============================================================================

DEFAULT_BUILDING_STANDARDS: Final[tuple[BuildingStandard, ...]] = (
    BuildingStandard(
        code="house_two_story_type_a",
        name="Bangunan Dua Lantai Rumah/Ruko Type A",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=2,
        base_rate=3_500_000,
        specification=(
            "Dinding batu dan beton di plester (permanen)",
            "Lantai granit",
            "Atap genteng metal / atap semen cor",
        ),
    ),
    BuildingStandard(
        code="house_two_story_type_b",
        name="Bangunan Dua Lantai Rumah/Ruko Type B",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=2,
        base_rate=3_200_000,
        specification=(
            "Dinding batu dan beton di plester (permanen)",
            "Lantai keramik standar",
            "Atap genteng metal / atap semen cor",
        ),
    ),
    BuildingStandard(
        code="house_two_story_type_c",
        name="Bangunan Dua Lantai Rumah/Ruko Type C",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=2,
        base_rate=2_750_000,
        specification=(
            "Lantai 1 dinding batu dan beton di plester (permanen)",
            "Lantai 2 dinding GRC atau sejenisnya / papan dan sejenisnya",
            "Lantai granit",
            "Atap genteng metal",
        ),
    ),
    BuildingStandard(
        code="house_two_story_type_d",
        name="Bangunan Dua Lantai Rumah/Ruko Type D",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=2,
        base_rate=2_300_000,
        specification=(
            "Lantai 1 dinding batu dan beton di plester (permanen)",
            "Lantai 2 dinding GRC atau sejenisnya / papan dan sejenisnya",
            "Lantai keramik standar",
            "Atap seng gelombang",
        ),
    ),
    BuildingStandard(
        code="house_one_story_type_a",
        name="Bangunan Satu Lantai Rumah/Ruko Type A",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=1,
        base_rate=2_900_000,
        specification=(
            "Dinding batu-beton di plester (permanen)",
            "Lantai granit",
            "Atap genteng metal / atap semen cor",
        ),
    ),
    BuildingStandard(
        code="house_one_story_type_b",
        name="Bangunan Satu Lantai Rumah/Ruko Type B",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=1,
        base_rate=2_600_000,
        specification=(
            "Dinding batu-beton di plester (permanen)",
            "Lantai keramik standar",
            "Atap genteng metal / atap semen cor",
        ),
    ),
    BuildingStandard(
        code="house_one_story_type_c",
        name="Bangunan Satu Lantai Rumah/Ruko Type C",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=1,
        base_rate=2_500_000,
        specification=(
            "Dinding batu-beton di plester (permanen)",
            "Lantai granit",
            "Atap seng gelombang",
        ),
    ),
    BuildingStandard(
        code="house_one_story_type_d",
        name="Bangunan Satu Lantai Rumah/Ruko Type D",
        category=BuildingCategory.HOUSE_SHOPHOUSE,
        floors=1,
        base_rate=2_300_000,
        specification=(
            "Dinding batu-beton di plester (permanen)",
            "Lantai keramik standar",
            "Atap seng gelombang",
        ),
    ),
    BuildingStandard(
        code="house_one_story_simple_type_a",
        name="Bangunan Satu Lantai Sederhana Type A",
        category=BuildingCategory.SIMPLE_HOUSE,
        floors=1,
        base_rate=2_000_000,
        specification=(
            "Dinding batu dan beton di plester (permanen)",
            "Lantai semen biasa",
            "Atap genteng metal / atap semen cor",
        ),
    ),
    BuildingStandard(
        code="house_one_story_simple_type_b",
        name="Bangunan Satu Lantai Sederhana Type B",
        category=BuildingCategory.SIMPLE_HOUSE,
        floors=1,
        base_rate=1_500_000,
        specification=(
            "Dinding batu dan beton di plester (semi permanen)",
            "Lantai semen biasa",
            "Atap seng gelombang",
        ),
    ),
)

# Ordered, non-overlapping age brackets in years
DEFAULT_DEPRECIATION_RULES: Final[tuple[DepreciationRule, ...]] = (
    DepreciationRule(min_age=0, max_age=5, percent=5),
    DepreciationRule(min_age=5, max_age=10, percent=15),
    DepreciationRule(min_age=10, max_age=20, percent=25),
    DepreciationRule(min_age=20, max_age=None, percent=50),
)


# =============================================================================
# Provider Interface
# =============================================================================


class MetadataProvider(ABC):
    """Source of building standards and depreciation rules."""

    @abstractmethod
    def building_standards(self) -> tuple[BuildingStandard, ...]:
        """
        Return the full building standard catalog.

        The first entry is the fallback used when a requested code is
        absent from the catalog.
        """
        pass

    @abstractmethod
    def depreciation_rules(self) -> tuple[DepreciationRule, ...]:
        """Return depreciation rules in evaluation order."""
        pass


class StaticMetadataProvider(MetadataProvider):
    """Metadata provider backed by fixed tuples (defaults to the built-in catalog)."""

    def __init__(
        self,
        standards: Optional[tuple[BuildingStandard, ...]] = None,
        rules: Optional[tuple[DepreciationRule, ...]] = None,
    ):
        self._standards = tuple(DEFAULT_BUILDING_STANDARDS if standards is None else standards)
        self._rules = tuple(DEFAULT_DEPRECIATION_RULES if rules is None else rules)

    def building_standards(self) -> tuple[BuildingStandard, ...]:
        return self._standards

    def depreciation_rules(self) -> tuple[DepreciationRule, ...]:
        return self._rules
