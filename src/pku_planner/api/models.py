"""Pydantic request models for the menu planner API."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field

from pku_planner.domain.catalog import ItemKind
from pku_planner.domain.generation import GenerationOptions
from pku_planner.domain.nutrition import ServingUnit


class DailyMenuRequest(BaseModel):
    """Request to generate a single day."""

    date: date
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class WeeklyMenuRequest(BaseModel):
    """Request to generate seven days starting at start_date."""

    start_date: date
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class AddEntryRequest(BaseModel):
    """Catalog item to place into a meal slot."""

    item_kind: ItemKind
    item_id: UUID
    planned_serving_g: float = Field(gt=0)
    unit: ServingUnit = ServingUnit.GRAM


class UpdateEntryRequest(BaseModel):
    """Editable fields of a menu entry."""

    planned_serving_g: float | None = Field(default=None, gt=0)
    notes: str | None = None


class ConsumptionRequest(BaseModel):
    """Consumption record for a menu entry."""

    consumed_qty: float | None = Field(default=None, ge=0)
    is_consumed: bool = True
