"""Snack suggestion models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SnackSuggestion:
    """A low-PHE item proposed to close a calorie gap."""

    item_name: str
    category: str | None
    serving_g: float
    cost_per_serving: float
    available_in_pantry: bool
    reason: str
    safety_score: int
    phe_mg: float
    protein_g: float
    kcal: int
    fat_g: float


@dataclass(frozen=True)
class SnackSuggestions:
    """Snack suggestions for a day with the remaining budgets."""

    calorie_deficit: int
    target_kcal_to_add: int
    remaining_phe_mg: float
    remaining_protein_g: float
    suggestions: list[SnackSuggestion] = field(default_factory=list)
    warning: str | None = None
