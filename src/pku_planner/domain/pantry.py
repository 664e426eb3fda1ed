"""Pantry domain models."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from pku_planner.domain.catalog import ItemRef
from pku_planner.domain.nutrition import round_half_up


@dataclass(frozen=True)
class PantryLot:
    """On-hand stock of a catalog item."""

    id: UUID
    item: ItemRef
    quantity_g: float
    cost_per_unit: float | None
    expiry_date: date | None

    @property
    def cost_per_gram(self) -> float | None:
        """Return the lot cost spread over its weight."""
        if self.cost_per_unit is None or self.quantity_g <= 0:
            return None
        return round_half_up(self.cost_per_unit / self.quantity_g, 4)

    def is_expiring_soon(self, today: date, within_days: int = 3) -> bool:
        """Return true when the lot expires before the cutoff."""
        if self.expiry_date is None:
            return False
        return self.expiry_date < today + timedelta(days=within_days)


@dataclass(frozen=True)
class PantryAvailability:
    """Pantry stock check result for a requested quantity."""

    available: bool
    sufficient: bool
    available_quantity_g: float
    estimated_cost: float
    expiring_soon: bool
    lots: list[PantryLot] = field(default_factory=list)

    @classmethod
    def not_available(cls) -> "PantryAvailability":
        """Return the result for an item with no usable stock."""
        return cls(False, False, 0.0, 0.0, False)
