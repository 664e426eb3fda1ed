"""Menu generation models."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from pku_planner.domain.catalog import CatalogItem
from pku_planner.domain.menus import SlotName
from pku_planner.domain.nutrition import NutritionBreakdown


class GenerationOptions(BaseModel):
    """Caller-supplied knobs for a generation run."""

    foods_to_avoid: list[str] = Field(default_factory=list)
    max_phe_per_meal: float | None = Field(default=None, ge=0)
    daily_budget_limit: float | None = Field(default=None, ge=0)
    weekly_budget_limit: float | None = Field(default=None, ge=0)
    budget_currency: str = "USD"
    respect_pantry: bool = True
    emergency_mode: bool = False
    generate_alternatives: bool = False


class GenerationState(StrEnum):
    """Per-day generation progress."""

    NOT_STARTED = "NOT_STARTED"
    GENERATING_SLOTS = "GENERATING_SLOTS"
    AGGREGATING = "AGGREGATING"
    VALIDATED = "VALIDATED"


@dataclass
class FoodCandidate:
    """A scored, not yet committed proposal for a meal slot."""

    item: CatalogItem
    serving_g: float
    nutrition: NutritionBreakdown
    cost_per_serving: float = 0.0
    available_in_pantry: bool = False
    pantry_quantity_g: float = 0.0
    expiring_soon: bool = False
    days_since_last_use: int | None = None
    phe_penalty: float = 0.0
    protein_penalty: float = 0.0
    kcal_penalty: float = 0.0
    cost_penalty: float = 0.0
    repeat_penalty: float = 0.0
    total_score: float = 0.0

    @property
    def has_sufficient_pantry(self) -> bool:
        """Return true when pantry stock covers the serving or is not tracked."""
        if not self.available_in_pantry:
            return True
        return self.pantry_quantity_g >= self.serving_g


@dataclass(frozen=True)
class MealAlternative:
    """A runner-up candidate offered next to the selected items."""

    menu_date: date
    slot_name: SlotName
    item_name: str
    serving_g: float
    score: float
    cost: float
    reason: str


@dataclass
class GenerationResult:
    """Outcome of a daily or weekly generation."""

    success: bool
    menu_id: UUID | None
    message: str
    generated_at: datetime
    warnings: list[str] = field(default_factory=list)
    error_details: str | None = None
    alternatives: list[MealAlternative] = field(default_factory=list)

    @classmethod
    def succeeded(
        cls,
        menu_id: UUID,
        message: str,
        warnings: list[str] | None = None,
        alternatives: list[MealAlternative] | None = None,
    ) -> "GenerationResult":
        """Build a successful result."""
        return cls(
            success=True,
            menu_id=menu_id,
            message=message,
            generated_at=datetime.now(tz=UTC),
            warnings=warnings or [],
            alternatives=alternatives or [],
        )

    @classmethod
    def failed(cls, error_details: str) -> "GenerationResult":
        """Build a failed result carrying the error description."""
        return cls(
            success=False,
            menu_id=None,
            message="Generation failed",
            generated_at=datetime.now(tz=UTC),
            error_details=error_details,
        )


@dataclass(frozen=True)
class VarietyAnalysis:
    """Repeat statistics across a set of menu days."""

    total_unique_items: int
    repeated_items: int
    variety_score: float
    item_frequencies: dict[str, int]
    violations: list[str]
    emergency_mode: bool
