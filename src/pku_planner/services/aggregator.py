"""Aggregate entry nutrition into slot, day and week totals."""

from collections.abc import Iterable

from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry, MenuWeek
from pku_planner.domain.nutrition import (
    DayTotals,
    NutritionBreakdown,
    round_half_up,
)
from pku_planner.services.scaler import scale_item


def planned_nutrition(entry: MenuEntry) -> NutritionBreakdown:
    """Return the breakdown of an entry's planned serving."""
    return scale_item(entry.item, entry.planned_serving_g, entry.unit)


def consumed_nutrition(entry: MenuEntry) -> NutritionBreakdown | None:
    """Return the breakdown of what was eaten, or None when not consumed."""
    quantity = entry.effective_consumed_qty
    if not entry.is_consumed or quantity is None:
        return None
    return scale_item(entry.item, quantity, entry.unit)


def slot_totals(slot: MealSlot) -> DayTotals:
    """Return planned totals for a single slot."""
    return _sum_breakdowns(planned_nutrition(entry) for entry in slot.entries)


def planned_totals(day: MenuDay) -> DayTotals:
    """Return planned totals over every entry of a day."""
    return _sum_breakdowns(
        planned_nutrition(entry) for slot in day.slots for entry in slot.entries
    )


def consumed_totals(day: MenuDay) -> DayTotals:
    """Return consumed totals over the entries flagged as eaten."""
    breakdowns = (
        consumed_nutrition(entry) for slot in day.slots for entry in slot.entries
    )
    return _sum_breakdowns(item for item in breakdowns if item is not None)


def has_consumption(day: MenuDay) -> bool:
    """Return true when any entry of the day is flagged as eaten."""
    return any(entry.is_consumed for slot in day.slots for entry in slot.entries)


def recalculate_entry(entry: MenuEntry) -> MenuEntry:
    """Refresh the stored nutrient snapshot of an entry."""
    entry.nutrition = planned_nutrition(entry)
    return entry


def recalculate_slot(slot: MealSlot) -> MealSlot:
    """Refresh entry snapshots and slot totals."""
    for entry in slot.entries:
        recalculate_entry(entry)
    slot.totals = slot_totals(slot)
    return slot


def recalculate_day(day: MenuDay) -> MenuDay:
    """Refresh every slot and the day totals."""
    for slot in day.slots:
        recalculate_slot(slot)
    day.totals = planned_totals(day)
    return day


def recalculate_week(week: MenuWeek) -> MenuWeek:
    """Refresh every day and the week totals."""
    totals = DayTotals.zero()
    for day in week.days:
        recalculate_day(day)
        totals = totals + day.totals
    week.totals = totals
    return week


def _sum_breakdowns(breakdowns: Iterable[NutritionBreakdown]) -> DayTotals:
    phe = protein = fat = 0.0
    kcal = 0
    for item in breakdowns:
        phe += item.phe_mg
        protein += item.protein_g
        kcal += item.kcal
        fat += item.fat_g
    return DayTotals(
        phe_mg=round_half_up(phe),
        protein_g=round_half_up(protein),
        kcal=kcal,
        fat_g=round_half_up(fat),
    )
