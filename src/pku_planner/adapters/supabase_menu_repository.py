"""Supabase repository for menu weeks, days, slots and entries."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from pku_planner.adapters.supabase_catalog_repository import (
    profile_from_row,
    profile_to_row,
)
from pku_planner.domain.catalog import CatalogItem, ItemKind
from pku_planner.domain.menus import (
    MealSlot,
    MenuDay,
    MenuEntry,
    MenuStatus,
    MenuWeek,
    SlotName,
)
from pku_planner.domain.nutrition import DayTotals, NutritionBreakdown, ServingUnit
from pku_planner.services.menus import MenuRepository

DAY_SELECT = "*, meal_slots(*, menu_entries(*))"
WEEK_SELECT = f"*, menu_days({DAY_SELECT})"


@dataclass
class SupabaseMenuRepository(MenuRepository):
    """Supabase implementation for menu storage."""

    client: Client

    def find_days_in_range(
        self, patient_id: UUID, start: date, end: date
    ) -> list[MenuDay]:
        """Return a patient's days between start and end inclusive."""
        response = (
            self.client.table("menu_days")
            .select(DAY_SELECT)
            .eq("patient_id", str(patient_id))
            .gte("menu_date", start.isoformat())
            .lte("menu_date", end.isoformat())
            .order("menu_date", desc=True)
            .execute()
        )
        return [_parse_day(row) for row in response.data or []]

    def get_day(self, day_id: UUID) -> MenuDay | None:
        """Return a day with its slots and entries."""
        response = (
            self.client.table("menu_days")
            .select(DAY_SELECT)
            .eq("id", str(day_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_day(response.data[0])

    def get_day_for_slot(self, slot_id: UUID) -> MenuDay | None:
        """Return the day that owns a slot."""
        response = (
            self.client.table("meal_slots")
            .select("day_id")
            .eq("id", str(slot_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self.get_day(UUID(response.data[0]["day_id"]))

    def get_day_for_entry(self, entry_id: UUID) -> MenuDay | None:
        """Return the day that owns an entry."""
        response = (
            self.client.table("menu_entries")
            .select("slot_id")
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self.get_day_for_slot(UUID(response.data[0]["slot_id"]))

    def get_week(self, week_id: UUID) -> MenuWeek | None:
        """Return a week with its days."""
        response = (
            self.client.table("menu_weeks")
            .select(WEEK_SELECT)
            .eq("id", str(week_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_week(response.data[0])

    def save_day(self, day: MenuDay) -> MenuDay:
        """Replace a day and its slots in one transaction."""
        response = self.client.rpc(
            "save_menu_day", {"payload": _day_payload(day)}
        ).execute()
        if not response.data:
            raise RuntimeError("Failed to save menu day")
        return day

    def save_week(self, week: MenuWeek) -> MenuWeek:
        """Replace a week and every day in one transaction."""
        response = self.client.rpc(
            "save_menu_week", {"payload": _week_payload(week)}
        ).execute()
        if not response.data:
            raise RuntimeError("Failed to save menu week")
        return week


def _week_payload(week: MenuWeek) -> dict[str, object]:
    return {
        "id": str(week.id),
        "patient_id": str(week.patient_id),
        "week_start": week.week_start.isoformat(),
        "week_end": week.week_end.isoformat(),
        "status": week.status.value,
        "generation_method": week.generation_method,
        **_totals_payload(week.totals),
        "days": [_day_payload(day) for day in week.days],
    }


def _day_payload(day: MenuDay) -> dict[str, object]:
    return {
        "id": str(day.id),
        "patient_id": str(day.patient_id),
        "week_id": str(day.week_id) if day.week_id else None,
        "menu_date": day.menu_date.isoformat(),
        "status": day.status.value,
        **_totals_payload(day.totals),
        "slots": [_slot_payload(slot) for slot in day.ordered_slots()],
    }


def _slot_payload(slot: MealSlot) -> dict[str, object]:
    return {
        "id": str(slot.id),
        "slot_name": slot.slot_name.value,
        "slot_order": slot.slot_name.order,
        "target_phe_mg": slot.target_phe_mg,
        "target_kcal": slot.target_kcal,
        **_totals_payload(slot.totals),
        "entries": [_entry_payload(entry) for entry in slot.entries],
    }


def _entry_payload(entry: MenuEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "item_kind": entry.item.kind.value,
        "item_id": str(entry.item.id),
        "item_name": entry.item.name,
        "item_category": entry.item.category,
        "item_profile": profile_to_row(entry.item.profile),
        "item_nominal_serving_g": entry.item.nominal_serving_g,
        "planned_serving_g": entry.planned_serving_g,
        "unit": entry.unit.value,
        "actual_serving_g": entry.actual_serving_g,
        "consumed_qty": entry.consumed_qty,
        "is_consumed": entry.is_consumed,
        "phe_mg": entry.nutrition.phe_mg,
        "protein_g": entry.nutrition.protein_g,
        "kcal": entry.nutrition.kcal,
        "fat_g": entry.nutrition.fat_g,
        "notes": entry.notes,
    }


def _totals_payload(totals: DayTotals) -> dict[str, object]:
    return {
        "total_phe_mg": totals.phe_mg,
        "total_protein_g": totals.protein_g,
        "total_kcal": totals.kcal,
        "total_fat_g": totals.fat_g,
    }


def _parse_week(row: dict[str, object]) -> MenuWeek:
    days = sorted(
        (_parse_day(day_row) for day_row in row.get("menu_days") or []),
        key=lambda day: day.menu_date,
    )
    return MenuWeek(
        id=UUID(row["id"]),
        patient_id=UUID(row["patient_id"]),
        week_start=date.fromisoformat(row["week_start"]),
        week_end=date.fromisoformat(row["week_end"]),
        days=days,
        totals=_parse_totals(row),
        status=MenuStatus(row.get("status", MenuStatus.DRAFT)),
        generation_method=str(row.get("generation_method", "AUTO")),
    )


def _parse_day(row: dict[str, object]) -> MenuDay:
    day_id = UUID(row["id"])
    slots = [_parse_slot(slot_row, day_id) for slot_row in row.get("meal_slots") or []]
    week_raw = row.get("week_id")
    return MenuDay(
        id=day_id,
        patient_id=UUID(row["patient_id"]),
        menu_date=date.fromisoformat(row["menu_date"]),
        slots=sorted(slots, key=lambda slot: slot.slot_name.order),
        totals=_parse_totals(row),
        status=MenuStatus(row.get("status", MenuStatus.DRAFT)),
        week_id=UUID(week_raw) if week_raw else None,
    )


def _parse_slot(row: dict[str, object], day_id: UUID) -> MealSlot:
    slot_id = UUID(row["id"])
    target_kcal = row.get("target_kcal")
    target_phe = row.get("target_phe_mg")
    return MealSlot(
        id=slot_id,
        day_id=day_id,
        slot_name=SlotName(row["slot_name"]),
        target_phe_mg=float(target_phe) if target_phe is not None else None,
        target_kcal=int(target_kcal) if target_kcal is not None else None,
        entries=[
            _parse_entry(entry_row, slot_id)
            for entry_row in row.get("menu_entries") or []
        ],
        totals=_parse_totals(row),
    )


def _parse_entry(row: dict[str, object], slot_id: UUID) -> MenuEntry:
    unit = ServingUnit(row.get("unit", ServingUnit.GRAM))
    planned = float(row.get("planned_serving_g", 0.0))
    nominal = row.get("item_nominal_serving_g")
    item = CatalogItem(
        id=UUID(row["item_id"]),
        kind=ItemKind(row["item_kind"]),
        name=str(row.get("item_name", "")),
        category=row.get("item_category"),
        profile=profile_from_row(row.get("item_profile") or {}),
        nominal_serving_g=float(nominal) if nominal is not None else None,
    )
    return MenuEntry(
        id=UUID(row["id"]),
        slot_id=slot_id,
        item=item,
        planned_serving_g=planned,
        unit=unit,
        actual_serving_g=_optional_float(row.get("actual_serving_g")),
        consumed_qty=_optional_float(row.get("consumed_qty")),
        is_consumed=bool(row.get("is_consumed", False)),
        nutrition=NutritionBreakdown(
            phe_mg=float(row.get("phe_mg", 0.0)),
            protein_g=float(row.get("protein_g", 0.0)),
            kcal=int(row.get("kcal", 0)),
            fat_g=float(row.get("fat_g", 0.0)),
            quantity=planned,
            unit=unit,
        ),
        notes=row.get("notes"),
    )


def _parse_totals(row: dict[str, object]) -> DayTotals:
    return DayTotals(
        phe_mg=float(row.get("total_phe_mg") or 0.0),
        protein_g=float(row.get("total_protein_g") or 0.0),
        kcal=int(row.get("total_kcal") or 0),
        fat_g=float(row.get("total_fat_g") or 0.0),
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
