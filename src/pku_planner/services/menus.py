"""Menu day maintenance: entry edits, consumption tracking and validation."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from pku_planner.domain.catalog import ItemRef
from pku_planner.domain.errors import NotFoundError
from pku_planner.domain.generation import VarietyAnalysis
from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry, MenuWeek
from pku_planner.domain.nutrition import ServingUnit
from pku_planner.domain.validation import DayValidation, ProgressReport
from pku_planner.services.aggregator import (
    consumed_totals,
    recalculate_day,
    recalculate_week,
)
from pku_planner.services.candidates import CatalogRepository
from pku_planner.services.patients import PatientService
from pku_planner.services.validation import daily_progress, validate_day
from pku_planner.services.variety import VarietyEngine

_logger = logging.getLogger(__name__)


class MenuRepository(Protocol):
    """Persistence interface for menu days and weeks."""

    def find_days_in_range(
        self, patient_id: UUID, start: date, end: date
    ) -> list[MenuDay]:
        """Return a patient's days between start and end inclusive."""

    def get_day(self, day_id: UUID) -> MenuDay | None:
        """Return a day with its slots and entries."""

    def get_day_for_slot(self, slot_id: UUID) -> MenuDay | None:
        """Return the day that owns a slot."""

    def get_day_for_entry(self, entry_id: UUID) -> MenuDay | None:
        """Return the day that owns an entry."""

    def get_week(self, week_id: UUID) -> MenuWeek | None:
        """Return a week with its days."""

    def save_day(self, day: MenuDay) -> MenuDay:
        """Persist a whole day atomically."""

    def save_week(self, week: MenuWeek) -> MenuWeek:
        """Persist a whole week and its days atomically."""


@dataclass
class MenuService:
    """Read, edit and validate persisted menus."""

    menus: MenuRepository
    patients: PatientService
    catalog: CatalogRepository
    variety: VarietyEngine

    def get_day(self, day_id: UUID) -> MenuDay:
        """Return a day or raise NotFoundError."""
        day = self.menus.get_day(day_id)
        if day is None:
            raise NotFoundError("Menu day", day_id)
        return day

    def get_week(self, week_id: UUID) -> MenuWeek:
        """Return a week or raise NotFoundError."""
        week = self.menus.get_week(week_id)
        if week is None:
            raise NotFoundError("Menu week", week_id)
        return week

    def validate_menu_day(self, day_id: UUID) -> DayValidation:
        """Validate a stored day against the patient's current norm."""
        day = self.get_day(day_id)
        norm = self.patients.require_current_norm(day.patient_id)
        return validate_day(day, norm)

    def daily_progress(self, day_id: UUID) -> ProgressReport:
        """Return PHE progress for what has been eaten so far."""
        day = self.get_day(day_id)
        norm = self.patients.require_current_norm(day.patient_id)
        return daily_progress(consumed_totals(day), norm)

    def add_entry(
        self,
        slot_id: UUID,
        ref: ItemRef,
        planned_serving_g: float,
        unit: ServingUnit = ServingUnit.GRAM,
    ) -> MenuEntry:
        """Place a catalog item into a slot and refresh totals."""
        day = self.menus.get_day_for_slot(slot_id)
        if day is None:
            raise NotFoundError("Meal slot", slot_id)
        item = self.catalog.get_item(ref)
        if item is None:
            raise NotFoundError("Catalog item", ref.id)
        slot = _find_slot(day, slot_id)
        entry = MenuEntry(
            item=item, planned_serving_g=planned_serving_g, unit=unit, slot_id=slot.id
        )
        slot.entries.append(entry)
        self._persist(day)
        _logger.info("Added %s to slot %s", item.name, slot_id)
        return entry

    def update_entry(
        self,
        entry_id: UUID,
        planned_serving_g: float | None = None,
        notes: str | None = None,
    ) -> MenuEntry:
        """Change an entry's planned serving or notes."""
        day, _, entry = self._locate_entry(entry_id)
        if planned_serving_g is not None:
            entry.planned_serving_g = planned_serving_g
        if notes is not None:
            entry.notes = notes
        self._persist(day)
        return entry

    def delete_entry(self, entry_id: UUID) -> None:
        """Remove an entry from its slot."""
        day, slot, entry = self._locate_entry(entry_id)
        slot.entries.remove(entry)
        self._persist(day)
        _logger.info("Deleted menu entry %s", entry_id)

    def mark_consumed(self, entry_id: UUID, consumed: bool) -> MenuEntry:
        """Flag an entry as eaten or not eaten."""
        day, _, entry = self._locate_entry(entry_id)
        entry.is_consumed = consumed
        self._persist(day)
        return entry

    def update_consumed_quantity(
        self, entry_id: UUID, consumed_qty: float | None, is_consumed: bool = True
    ) -> DayValidation:
        """Record how much of an entry was eaten and revalidate the day."""
        if consumed_qty is not None and consumed_qty < 0:
            raise ValueError("Consumed quantity must be >= 0")
        day, _, entry = self._locate_entry(entry_id)
        if consumed_qty is not None:
            entry.consumed_qty = consumed_qty
        entry.is_consumed = is_consumed
        self._persist(day)
        norm = self.patients.require_current_norm(day.patient_id)
        return validate_day(day, norm)

    def analyze_week_variety(
        self, week_id: UUID, emergency_mode: bool = False
    ) -> VarietyAnalysis:
        """Return repeat statistics for a stored week."""
        week = self.get_week(week_id)
        return self.variety.analyze_weekly_variety(week.days, emergency_mode)

    def _locate_entry(self, entry_id: UUID) -> tuple[MenuDay, MealSlot, MenuEntry]:
        day = self.menus.get_day_for_entry(entry_id)
        if day is None:
            raise NotFoundError("Menu entry", entry_id)
        for slot in day.slots:
            for entry in slot.entries:
                if entry.id == entry_id:
                    return day, slot, entry
        raise NotFoundError("Menu entry", entry_id)

    def _persist(self, day: MenuDay) -> None:
        recalculate_day(day)
        if day.week_id is None:
            self.menus.save_day(day)
            return
        week = self.get_week(day.week_id)
        week.days = [day if stored.id == day.id else stored for stored in week.days]
        recalculate_week(week)
        self.menus.save_week(week)


def _find_slot(day: MenuDay, slot_id: UUID) -> MealSlot:
    for slot in day.slots:
        if slot.id == slot_id:
            return slot
    raise NotFoundError("Meal slot", slot_id)
