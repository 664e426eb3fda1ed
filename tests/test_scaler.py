"""Tests for nutrient scaling."""

import pytest

from pku_planner.domain.errors import DishCalculationError
from pku_planner.domain.nutrition import NutrientProfile, ServingUnit
from pku_planner.services.scaler import per_100_values, scale

PROFILE = NutrientProfile(phe_mg=40.0, protein_g=2.0, kcal=150.0, fat_g=3.0)


def test_scale_grams() -> None:
    breakdown = scale(PROFILE, 50)

    assert breakdown.phe_mg == 20.0
    assert breakdown.protein_g == 1.0
    assert breakdown.kcal == 75
    assert breakdown.fat_g == 1.5
    assert breakdown.quantity == 50
    assert breakdown.unit == ServingUnit.GRAM


def test_scale_is_linear_in_quantity() -> None:
    profile = NutrientProfile(phe_mg=12.34, protein_g=0.5, kcal=80.0, fat_g=0.1)

    single = scale(profile, 100)
    double = scale(profile, 200)

    assert single.phe_mg == 12.34
    assert double.phe_mg == 24.68
    assert double.kcal == 2 * single.kcal


def test_scale_rounds_kcal_half_up() -> None:
    profile = NutrientProfile(phe_mg=1.0, kcal=105.0)

    assert scale(profile, 50).kcal == 53


def test_scale_milliliters_like_grams() -> None:
    breakdown = scale(PROFILE, 200, ServingUnit.MILLILITER)

    assert breakdown.phe_mg == 80.0
    assert breakdown.unit == ServingUnit.MILLILITER


def test_scale_pieces_uses_nominal_serving() -> None:
    breakdown = scale(PROFILE, 2, ServingUnit.PIECE, nominal_serving_g=30)

    assert breakdown.phe_mg == 24.0
    assert breakdown.kcal == 90


def test_scale_pieces_without_nominal_serving_is_zero() -> None:
    breakdown = scale(PROFILE, 2, ServingUnit.PIECE)

    assert breakdown.phe_mg == 0.0
    assert breakdown.kcal == 0
    assert breakdown.quantity == 2


@pytest.mark.parametrize("quantity", [None, 0, -5])
def test_scale_non_positive_quantity_is_zero(quantity) -> None:
    breakdown = scale(PROFILE, quantity)

    assert breakdown.phe_mg == 0.0
    assert breakdown.protein_g == 0.0
    assert breakdown.kcal == 0
    assert breakdown.fat_g == 0.0


def test_scale_missing_values_count_as_zero() -> None:
    breakdown = scale(NutrientProfile(phe_mg=10.0), 100)

    assert breakdown.phe_mg == 10.0
    assert breakdown.protein_g == 0.0
    assert breakdown.kcal == 0


def test_per_100_values_normalises_dish_totals() -> None:
    totals = NutrientProfile(phe_mg=90.0, protein_g=3.0, kcal=300.0, fat_g=6.0)

    per_100 = per_100_values(totals, 300)

    assert per_100.phe_mg == 30.0
    assert per_100.kcal == 100.0
    assert per_100.carbs_g == 0.0


def test_per_100_values_rejects_zero_weight() -> None:
    with pytest.raises(DishCalculationError):
        per_100_values(PROFILE, 0)
