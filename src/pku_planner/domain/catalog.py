"""Catalog domain models."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from pku_planner.domain.nutrition import NutrientProfile


class ItemKind(StrEnum):
    """Variant tag of a catalog item."""

    PRODUCT = "product"
    CUSTOM_PRODUCT = "custom_product"
    DISH = "dish"
    CUSTOM_DISH = "custom_dish"

    @property
    def is_dish(self) -> bool:
        """Return true for dish variants."""
        return self in {ItemKind.DISH, ItemKind.CUSTOM_DISH}


@dataclass(frozen=True)
class ItemRef:
    """Persisted reference to exactly one catalog item."""

    kind: ItemKind
    id: UUID


@dataclass(frozen=True)
class CatalogItem:
    """Product, custom product, dish or custom dish with a nutrient profile."""

    id: UUID
    kind: ItemKind
    name: str
    category: str | None
    profile: NutrientProfile
    nominal_serving_g: float | None = None

    @property
    def ref(self) -> ItemRef:
        """Return the reference used to persist this item."""
        return ItemRef(kind=self.kind, id=self.id)
