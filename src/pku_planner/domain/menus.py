"""Menu domain models."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from uuid import UUID, uuid4

from pku_planner.domain.catalog import CatalogItem
from pku_planner.domain.nutrition import DayTotals, NutritionBreakdown, ServingUnit


class SlotName(StrEnum):
    """Fixed meal periods of a day."""

    BREAKFAST = "BREAKFAST"
    MORNING_SNACK = "MORNING_SNACK"
    LUNCH = "LUNCH"
    AFTERNOON_SNACK = "AFTERNOON_SNACK"
    DINNER = "DINNER"
    EVENING_SNACK = "EVENING_SNACK"

    @property
    def order(self) -> int:
        """Return the 1-based position of the slot within a day."""
        return list(SlotName).index(self) + 1


class MenuStatus(StrEnum):
    """Lifecycle status of a menu day or week."""

    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    APPROVED = "APPROVED"


@dataclass
class MenuEntry:
    """A catalog item placed in a meal slot."""

    item: CatalogItem
    planned_serving_g: float
    unit: ServingUnit = ServingUnit.GRAM
    actual_serving_g: float | None = None
    consumed_qty: float | None = None
    is_consumed: bool = False
    nutrition: NutritionBreakdown = field(default_factory=NutritionBreakdown.zero)
    notes: str | None = None
    slot_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if self.consumed_qty is not None and self.consumed_qty < 0:
            raise ValueError("Consumed quantity must be >= 0")

    @property
    def effective_consumed_qty(self) -> float | None:
        """Return the consumed quantity, falling back to the actual serving."""
        if self.consumed_qty is not None:
            return self.consumed_qty
        return self.actual_serving_g


@dataclass
class MealSlot:
    """A meal period with targets and running totals."""

    slot_name: SlotName
    target_phe_mg: float | None = None
    target_kcal: int | None = None
    entries: list[MenuEntry] = field(default_factory=list)
    totals: DayTotals = field(default_factory=DayTotals.zero)
    day_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)


@dataclass
class MenuDay:
    """A single day's menu made of ordered meal slots."""

    patient_id: UUID
    menu_date: date
    slots: list[MealSlot] = field(default_factory=list)
    totals: DayTotals = field(default_factory=DayTotals.zero)
    status: MenuStatus = MenuStatus.DRAFT
    week_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    def ordered_slots(self) -> list[MealSlot]:
        """Return slots sorted by their fixed daily order."""
        return sorted(self.slots, key=lambda slot: slot.slot_name.order)

    def find_slot(self, slot_name: SlotName) -> MealSlot | None:
        """Return the slot with the given name, if present."""
        for slot in self.slots:
            if slot.slot_name == slot_name:
                return slot
        return None


@dataclass
class MenuWeek:
    """Seven consecutive menu days."""

    patient_id: UUID
    week_start: date
    week_end: date
    days: list[MenuDay] = field(default_factory=list)
    totals: DayTotals = field(default_factory=DayTotals.zero)
    status: MenuStatus = MenuStatus.DRAFT
    generation_method: str = "AUTO"
    id: UUID = field(default_factory=uuid4)
