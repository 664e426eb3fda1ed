"""Supabase repository for products, custom products and dishes."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from pku_planner.domain.catalog import CatalogItem, ItemKind, ItemRef
from pku_planner.domain.nutrition import NutrientProfile
from pku_planner.services.candidates import CatalogRepository

CATALOG_TABLES = {
    ItemKind.PRODUCT: "products",
    ItemKind.CUSTOM_PRODUCT: "custom_products",
    ItemKind.DISH: "dishes",
    ItemKind.CUSTOM_DISH: "custom_dishes",
}
PROFILE_COLUMNS = (
    "phe_mg",
    "protein_g",
    "kcal",
    "fat_g",
    "carbs_g",
    "kilojoules",
    "leucine_mg",
    "tyrosine_mg",
    "methionine_mg",
)


@dataclass
class SupabaseCatalogRepository(CatalogRepository):
    """Supabase implementation for catalog lookups."""

    client: Client

    def find_all_items(self) -> list[CatalogItem]:
        """Return every catalog item, products first, each table by name."""
        items: list[CatalogItem] = []
        for kind, table in CATALOG_TABLES.items():
            response = self.client.table(table).select("*").order("name").execute()
            items.extend(_parse_item(kind, row) for row in response.data or [])
        return items

    def get_item(self, ref: ItemRef) -> CatalogItem | None:
        """Return a single catalog item by reference."""
        response = (
            self.client.table(CATALOG_TABLES[ref.kind])
            .select("*")
            .eq("id", str(ref.id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_item(ref.kind, response.data[0])


def profile_from_row(row: dict[str, object]) -> NutrientProfile:
    """Parse per-100 g nutrient columns into a profile."""
    return NutrientProfile(
        **{column: _optional_float(row.get(column)) for column in PROFILE_COLUMNS}
    )


def profile_to_row(profile: NutrientProfile) -> dict[str, float | None]:
    """Serialize a profile into per-100 g nutrient columns."""
    return {column: getattr(profile, column) for column in PROFILE_COLUMNS}


def _parse_item(kind: ItemKind, row: dict[str, object]) -> CatalogItem:
    return CatalogItem(
        id=UUID(str(row["id"])),
        kind=kind,
        name=str(row.get("name", "")),
        category=row.get("category"),
        profile=profile_from_row(row),
        nominal_serving_g=_optional_float(row.get("nominal_serving_g")),
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
