"""Scale per-100g nutrient profiles to concrete servings."""

import logging

from pku_planner.domain.catalog import CatalogItem
from pku_planner.domain.errors import DishCalculationError, ScalingError
from pku_planner.domain.nutrition import (
    NutrientProfile,
    NutritionBreakdown,
    ServingUnit,
    round_half_up,
    round_kcal,
)

_logger = logging.getLogger(__name__)


def scale(
    profile: NutrientProfile,
    quantity: float | None,
    unit: ServingUnit = ServingUnit.GRAM,
    nominal_serving_g: float | None = None,
) -> NutritionBreakdown:
    """Return the nutrient breakdown for a quantity of an item."""
    if quantity is None or quantity <= 0:
        return NutritionBreakdown.zero(quantity or 0.0, unit)
    try:
        factor = _scale_factor(quantity, unit, nominal_serving_g)
    except ScalingError as exc:
        _logger.warning("Cannot scale %s %s: %s", quantity, unit.value, exc)
        return NutritionBreakdown.zero(quantity, unit)
    return NutritionBreakdown(
        phe_mg=_scaled(profile.phe_mg, factor),
        protein_g=_scaled(profile.protein_g, factor),
        kcal=round_kcal((profile.kcal or 0.0) * factor),
        fat_g=_scaled(profile.fat_g, factor),
        quantity=quantity,
        unit=unit,
    )


def scale_item(
    item: CatalogItem, quantity: float | None, unit: ServingUnit = ServingUnit.GRAM
) -> NutritionBreakdown:
    """Scale a catalog item of any variant."""
    return scale(item.profile, quantity, unit, item.nominal_serving_g)


def per_100_values(total: NutrientProfile, total_grams: float) -> NutrientProfile:
    """Normalise a dish's absolute totals to per-100g values."""
    if total_grams == 0:
        raise DishCalculationError("Nominal serving grams cannot be zero")
    factor = 100 / total_grams
    return NutrientProfile(
        phe_mg=_scaled(total.phe_mg, factor),
        protein_g=_scaled(total.protein_g, factor),
        kcal=_scaled(total.kcal, factor),
        fat_g=_scaled(total.fat_g, factor),
        carbs_g=_scaled(total.carbs_g, factor),
        kilojoules=_scaled(total.kilojoules, factor),
        leucine_mg=_scaled(total.leucine_mg, factor),
        tyrosine_mg=_scaled(total.tyrosine_mg, factor),
        methionine_mg=_scaled(total.methionine_mg, factor),
    )


def _scale_factor(
    quantity: float, unit: ServingUnit, nominal_serving_g: float | None
) -> float:
    if unit == ServingUnit.PIECE:
        if not nominal_serving_g:
            raise ScalingError("piece unit requires a nominal serving size")
        return round_half_up(nominal_serving_g * quantity / 100, 4)
    return round_half_up(quantity / 100, 4)


def _scaled(value: float | None, factor: float) -> float:
    if value is None:
        return 0.0
    return round_half_up(value * factor)
