"""Nutrition domain models."""

from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from enum import StrEnum


class ServingUnit(StrEnum):
    """Unit a serving quantity is expressed in."""

    GRAM = "g"
    MILLILITER = "ml"
    PIECE = "pcs"


@dataclass(frozen=True)
class NutrientProfile:
    """Per-100g (or per-100ml) nutrient values of a catalog item."""

    phe_mg: float | None = None
    protein_g: float | None = None
    kcal: float | None = None
    fat_g: float | None = None
    carbs_g: float | None = None
    kilojoules: float | None = None
    leucine_mg: float | None = None
    tyrosine_mg: float | None = None
    methionine_mg: float | None = None


@dataclass(frozen=True)
class NutritionBreakdown:
    """Absolute nutrient values for a concrete quantity."""

    phe_mg: float
    protein_g: float
    kcal: int
    fat_g: float
    quantity: float = 0.0
    unit: ServingUnit = ServingUnit.GRAM

    @classmethod
    def zero(
        cls, quantity: float = 0.0, unit: ServingUnit = ServingUnit.GRAM
    ) -> "NutritionBreakdown":
        """Return an all-zero breakdown."""
        return cls(0.0, 0.0, 0, 0.0, quantity, unit)


@dataclass(frozen=True)
class DayTotals:
    """Aggregated nutrient totals for a slot, day or week."""

    phe_mg: float
    protein_g: float
    kcal: int
    fat_g: float

    @classmethod
    def zero(cls) -> "DayTotals":
        """Return empty totals."""
        return cls(0.0, 0.0, 0, 0.0)

    def __add__(self, other: "DayTotals") -> "DayTotals":
        return DayTotals(
            phe_mg=round_half_up(self.phe_mg + other.phe_mg),
            protein_g=round_half_up(self.protein_g + other.protein_g),
            kcal=self.kcal + other.kcal,
            fat_g=round_half_up(self.fat_g + other.fat_g),
        )


def round_half_up(value: float, places: int = 2) -> float:
    """Round a float half-up to the given number of decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round_down(value: float, places: int = 2) -> float:
    """Truncate a float toward zero at the given number of decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_DOWN))


def round_kcal(value: float) -> int:
    """Round a calorie value half-up to a whole number."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
