"""
Tests for the Comparable Analysis Aggregator
"""

import math

import pytest

from appraisal.comparables import (
    ComparableAdjustment,
    MarketComparable,
    compute_comparable_analysis,
    derive_comparable,
    weight_total_within_target,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def weighted_pair():
    """Two comparables sharing the weight equally."""
    return [
        MarketComparable(comparable_id="CMP-1", price=1_000_000, land_area=100, weight=50),
        MarketComparable(comparable_id="CMP-2", price=2_000_000, land_area=100, weight=50),
    ]


# =============================================================================
# Derivation Tests
# =============================================================================


class TestDeriveComparable:
    """Tests for adjusted price and price per square."""

    def test_adjustments_are_summed_into_price(self):
        comparable = MarketComparable(
            comparable_id="CMP-1",
            price=500_000_000,
            land_area=120,
            building_area=80,
            adjustments=(
                ComparableAdjustment(factor="location", amount=-25_000_000),
                ComparableAdjustment(factor="condition", amount=10_000_000),
            ),
        )
        derived = derive_comparable(comparable)
        assert derived.adjusted_price == 485_000_000
        assert derived.final_price_per_square == 2_425_000

    def test_caller_adjusted_price_is_kept(self):
        comparable = MarketComparable(
            comparable_id="CMP-1", price=100, adjusted_price=90, land_area=10
        )
        derived = derive_comparable(comparable)
        assert derived.adjusted_price == 90
        assert derived.final_price_per_square == 9

    def test_no_area_keeps_caller_price_per_square(self):
        comparable = MarketComparable(
            comparable_id="CMP-1", price=100, final_price_per_square=7
        )
        assert derive_comparable(comparable).final_price_per_square == 7

    def test_no_area_and_no_caller_value_leaves_none(self):
        comparable = MarketComparable(comparable_id="CMP-1", price=100)
        assert derive_comparable(comparable).final_price_per_square is None

    def test_from_dict_requires_id(self):
        with pytest.raises(ValueError):
            MarketComparable.from_dict({"price": 100})


# =============================================================================
# Aggregation Tests
# =============================================================================


class TestComparableAnalysis:
    """Tests for the weighted market-price estimate."""

    def test_equal_weights(self, weighted_pair):
        summary = compute_comparable_analysis(weighted_pair)
        assert summary.weighted_average_price == 1_500_000
        assert summary.total_weight == 100
        assert summary.weighted_average_price_per_square == 15_000

    def test_empty_list(self):
        summary = compute_comparable_analysis([])
        assert summary.total_weight == 0
        assert summary.weighted_average_price is None
        assert summary.weighted_average_price_per_square is None
        assert summary.notes == ()

    def test_unweighted_comparables_are_reference_only(self, weighted_pair):
        reference = MarketComparable(comparable_id="CMP-3", price=9_000_000)
        summary = compute_comparable_analysis(weighted_pair + [reference])
        assert summary.weighted_average_price == 1_500_000
        assert summary.total_weight == 100

    def test_all_unweighted(self):
        summary = compute_comparable_analysis([
            MarketComparable(comparable_id="CMP-1", price=1_000_000),
        ])
        assert summary.total_weight == 0
        assert summary.weighted_average_price is None

    def test_total_weight_is_not_normalised(self):
        summary = compute_comparable_analysis([
            MarketComparable(comparable_id="CMP-1", price=1_000_000, weight=30),
            MarketComparable(comparable_id="CMP-2", price=2_000_000, weight=30),
        ])
        assert summary.total_weight == 60
        assert summary.weighted_average_price == 1_500_000

    def test_per_square_mean_skips_comparables_without_area(self):
        summary = compute_comparable_analysis([
            MarketComparable(comparable_id="CMP-1", price=1_000_000, land_area=100, weight=50),
            MarketComparable(comparable_id="CMP-2", price=2_000_000, weight=50),
        ])
        assert summary.weighted_average_price_per_square == 10_000

    def test_notes_pass_through(self, weighted_pair):
        summary = compute_comparable_analysis(weighted_pair, notes=["Harga pasar stabil"])
        assert summary.notes == ("Harga pasar stabil",)


class TestWeightTarget:
    """Tests for the weight total tolerance helper."""

    @pytest.mark.parametrize("total,expected", [
        (100, True),
        (99.5, True),
        (100.5, True),
        (99.4, False),
        (0, False),
    ])
    def test_default_target(self, total, expected):
        assert weight_total_within_target(total) is expected


# =============================================================================
# Non-finite Input
# =============================================================================


class TestNonFiniteInput:
    """NaN and infinite numbers are ignored, never raised."""

    @pytest.mark.parametrize("amount", [math.nan, math.inf, -math.inf])
    def test_non_finite_adjustment_is_ignored(self, amount):
        comparable = MarketComparable(
            comparable_id="CMP-1",
            price=1_000_000,
            land_area=100,
            weight=100,
            adjustments=(
                ComparableAdjustment(factor="location", amount=amount),
                ComparableAdjustment(factor="size", amount=50_000),
            ),
        )
        summary = compute_comparable_analysis([comparable])
        assert summary.weighted_average_price == 1_050_000
        assert summary.weighted_average_price_per_square == 10_500

    def test_non_finite_caller_prices_are_derived_instead(self):
        comparable = MarketComparable(
            comparable_id="CMP-1",
            price=200,
            land_area=10,
            adjusted_price=math.nan,
            final_price_per_square=math.inf,
        )
        derived = derive_comparable(comparable)
        assert derived.adjusted_price == 200
        assert derived.final_price_per_square == 20

    @pytest.mark.parametrize("value", ["NaN", "inf", "-Infinity"])
    def test_from_dict_drops_non_finite_numbers(self, value):
        comparable = MarketComparable.from_dict({
            "comparable_id": "CMP-1",
            "price": 300_000,
            "land_area": value,
            "weight": value,
            "adjusted_price": value,
            "final_price_per_square": value,
            "adjustments": [{"factor": "location", "amount": value}],
        })
        assert comparable.land_area == 0.0
        assert comparable.weight is None
        assert comparable.adjusted_price is None
        assert comparable.final_price_per_square is None
        assert comparable.adjustments[0].amount == 0.0
        assert derive_comparable(comparable).adjusted_price == 300_000
