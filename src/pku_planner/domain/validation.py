"""Validation result models."""

from dataclasses import dataclass, field
from enum import StrEnum

from pku_planner.domain.nutrition import DayTotals


class ValidationLevel(StrEnum):
    """Outcome severity of a validation pass."""

    OK = "OK"
    WARN = "WARN"
    BREACH = "BREACH"

    @property
    def rank(self) -> int:
        """Return the severity rank, higher is worse."""
        return list(ValidationLevel).index(self)


class Nutrient(StrEnum):
    """Nutrients checked against a prescription."""

    PHE = "phe"
    PROTEIN = "protein"
    KCAL = "kcal"
    FAT = "fat"


@dataclass(frozen=True)
class NutrientDelta:
    """Difference between a total and its prescribed bound."""

    nutrient: Nutrient
    actual: float
    limit: float
    delta: float
    level: ValidationLevel


@dataclass(frozen=True)
class ValidationResult:
    """Validation of one set of totals against a prescription."""

    level: ValidationLevel
    deltas: dict[Nutrient, NutrientDelta] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Return true when no hard limit is breached."""
        return self.level != ValidationLevel.BREACH

    @property
    def violations(self) -> list[NutrientDelta]:
        """Return the deltas that are not OK."""
        return [
            delta for delta in self.deltas.values() if delta.level != ValidationLevel.OK
        ]


@dataclass(frozen=True)
class DayValidation:
    """Planned and consumed totals with the merged validation result."""

    planned_totals: DayTotals
    consumed_totals: DayTotals
    result: ValidationResult


@dataclass(frozen=True)
class ProgressReport:
    """Share of the daily PHE limit already used."""

    phe_percent_used: float | None
    lines: list[str]
    warnings: list[str]
