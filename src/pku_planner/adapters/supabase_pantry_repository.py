"""Supabase repository for pantry stock and market prices."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from pku_planner.domain.catalog import ItemKind, ItemRef
from pku_planner.domain.pantry import PantryLot
from pku_planner.services.pantry import PantryRepository, PriceRepository


@dataclass
class SupabasePantryRepository(PantryRepository, PriceRepository):
    """Supabase implementation for pantry lots and price entries."""

    client: Client

    def find_available_lots(self, patient_id: UUID, item: ItemRef) -> list[PantryLot]:
        """Return in-stock lots of an item, earliest expiry first."""
        response = (
            self.client.table("pantry_items")
            .select("*")
            .eq("patient_id", str(patient_id))
            .eq("item_kind", item.kind.value)
            .eq("item_id", str(item.id))
            .gt("quantity_g", 0)
            .order("expiry_date")
            .execute()
        )
        return [_parse_lot(row) for row in response.data or []]

    def find_expiring(
        self, patient_id: UUID, start: date, end: date
    ) -> list[PantryLot]:
        """Return in-stock lots expiring between start and end."""
        response = (
            self.client.table("pantry_items")
            .select("*")
            .eq("patient_id", str(patient_id))
            .gt("quantity_g", 0)
            .gte("expiry_date", start.isoformat())
            .lte("expiry_date", end.isoformat())
            .order("expiry_date")
            .execute()
        )
        return [_parse_lot(row) for row in response.data or []]

    def find_best_price(self, item: ItemRef) -> float | None:
        """Return the lowest known price per gram for an item."""
        response = (
            self.client.table("price_entries")
            .select("price_per_gram")
            .eq("item_kind", item.kind.value)
            .eq("item_id", str(item.id))
            .order("price_per_gram")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        price = response.data[0].get("price_per_gram")
        return float(price) if price is not None else None


def _parse_lot(row: dict[str, object]) -> PantryLot:
    expiry_raw = row.get("expiry_date")
    cost = row.get("cost_per_unit")
    return PantryLot(
        id=UUID(row["id"]),
        item=ItemRef(kind=ItemKind(row["item_kind"]), id=UUID(row["item_id"])),
        quantity_g=float(row.get("quantity_g", 0.0)),
        cost_per_unit=float(cost) if cost is not None else None,
        expiry_date=(
            date.fromisoformat(expiry_raw)
            if isinstance(expiry_raw, str) and expiry_raw
            else None
        ),
    )
